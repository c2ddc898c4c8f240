from dataclasses import dataclass
import typing


@dataclass(frozen=True)
class PropertyChange:

    """A PropertyChange is sent to subscribers of a Bindable object each time
    one of its public attributes is assigned a different value.
    """

    name: str
    oldValue: typing.Any
    newValue: typing.Any


class Subscription:

    """Handle returned by Bindable.subscribe(). Calling unsubscribe() stops
    the callback from being called; calling it again does nothing.
    """

    def __init__(self, subscribers, callback):
        self._subscribers = subscribers
        self._subscribers[self] = callback

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.unsubscribe()

    @property
    def isActive(self):
        return self in self._subscribers

    def unsubscribe(self):
        self._subscribers.pop(self, None)


_missing = object()


class Bindable:

    """Mixin for model objects that announce changes to their attributes.

        >>> class Person(Bindable):
        ...     def __init__(self, name):
        ...         self.name = name
        ...
        >>> person = Person("Venus")
        >>> subscription = person.subscribe(print)
        >>> person.name = "Yamada"
        PropertyChange(name='name', oldValue='Venus', newValue='Yamada')
        >>> subscription.unsubscribe()
        >>> person.name = "Tanaka"

    Only public attributes are observed. The first assignment of an
    attribute, typically in __init__, is not announced.
    """

    def subscribe(self, callback):
        """Call `callback` with a PropertyChange for every change. Returns a
        Subscription.
        """
        subscribers = self.__dict__.get("_subscribers")
        if subscribers is None:
            subscribers = {}
            super().__setattr__("_subscribers", subscribers)
        return Subscription(subscribers, callback)

    def __setattr__(self, name, value):
        if name.startswith("_"):
            super().__setattr__(name, value)
            return
        oldValue = getattr(self, name, _missing)
        super().__setattr__(name, value)
        if oldValue is _missing or oldValue == value:
            return
        subscribers = self.__dict__.get("_subscribers")
        if subscribers:
            change = PropertyChange(name, oldValue, value)
            for callback in list(subscribers.values()):
                callback(change)
