from contextlib import contextmanager
import logging

from .operations import PropertySetOperation


logger = logging.getLogger(__name__)


class ChangeWatcher:

    """A ChangeWatcher turns change notifications of one property of a
    target object into operations executed by a controller, so plain
    assignments to the property become undoable.

    The target must have a subscribe(callback) method that returns a handle
    with an unsubscribe() method. The callback is called with an object
    having `name`, `oldValue` and `newValue` attributes, after the property
    has changed. Bindable objects provide this.

    The watcher ignores notifications that arrive while the controller, or a
    recorder of the controller, is applying or reverting operations: those
    changes are already recorded.
    """

    def __init__(self, controller, target, propertyName, mergeEnabled=True):
        self.controller = controller
        self.target = target
        self.propertyName = propertyName
        self.mergeEnabled = mergeEnabled
        self._suppressLevel = 0
        self._subscription = target.subscribe(self._propertyChanged)

    def __repr__(self):
        return f"{self.__class__.__name__}(propertyName={self.propertyName!r}, isActive={self.isActive})"

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.dispose()

    @property
    def isActive(self):
        return self._subscription is not None

    def dispose(self):
        """Stop watching. Recorded history is kept. Calling dispose() more
        than once is harmless.
        """
        if self._subscription is None:
            return
        self._subscription.unsubscribe()
        self._subscription = None
        logger.debug("disposed %r", self)

    @contextmanager
    def suppressed(self):
        """Context manager during which notifications are ignored."""
        self._suppressLevel += 1
        try:
            yield
        finally:
            self._suppressLevel -= 1

    def _propertyChanged(self, change):
        if self._subscription is None or self._suppressLevel or self.controller.isApplying:
            return
        if change.name != self.propertyName or change.oldValue == change.newValue:
            return
        operation = WatchedPropertySetOperation(
            self,
            self.target,
            self.propertyName,
            change.newValue,
            oldValue=change.oldValue,
            timestamp=self.controller.clock(),
            mergeSpan=self.controller.mergeSpan,
            mergeable=self.mergeEnabled,
        )
        self.controller.execute(operation)


class WatchedPropertySetOperation(PropertySetOperation):

    """A PropertySetOperation created by a ChangeWatcher. Applying or
    reverting it does not trigger the watcher again.
    """

    def __init__(self, watcher, target, key, newValue, **kwargs):
        super().__init__(target, key, newValue, **kwargs)
        self.watcher = watcher

    def apply(self):
        with self.watcher.suppressed():
            super().apply()

    def revert(self):
        with self.watcher.suppressed():
            super().revert()
