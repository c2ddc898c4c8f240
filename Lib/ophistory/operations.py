from collections.abc import Mapping
from functools import singledispatch
from operator import getitem, setitem
import copy
import logging
import time


logger = logging.getLogger(__name__)


# Merge span configuration

_defaultMergeSpan = 0.5  # seconds


def getDefaultMergeSpan():
    """Return the process-wide default merge span, in seconds."""
    return _defaultMergeSpan


def setDefaultMergeSpan(seconds):
    """Set the process-wide default merge span, in seconds. This only affects
    operations created after the call; operations that were given an explicit
    span, or that are built by a controller with an explicit span, ignore it.
    """
    global _defaultMergeSpan
    if seconds < 0:
        raise ValueError("merge span must not be negative")
    _defaultMergeSpan = seconds


class _NotSet:

    def __repr__(self):
        return "NOTSET"


NOTSET = _NotSet()


# Operation Classes

class Operation:

    """An Operation is a reversible unit of mutation. Calling apply() performs
    the mutation, revert() undoes it. Operations do not know about undo or
    redo stacks: placing them is the job of the OperationController.

    Every operation carries a creation timestamp and a merge span (both in
    seconds). Two consecutive operations may be merged into one when the
    first one's canMergeWith() returns True for the second:

        >>> target = {"age": 14}
        >>> op1 = PropertySetOperation(target, "age", 30, timestamp=10.0, mergeSpan=0.07)
        >>> op2 = PropertySetOperation(target, "age", 100, timestamp=10.01, mergeSpan=0.07)
        >>> op1.apply(); op2.apply()
        >>> op1.canMergeWith(op2)
        True
        >>> merged = op1.mergeWith(op2)
        >>> merged.revert()
        >>> target
        {'age': 14}

    Subclasses implement apply(), revert(), and, when they can be merged,
    mergeKey() and mergeWith().
    """

    def __init__(self, label=None, timestamp=None, mergeSpan=None, mergeable=True):
        self.label = label
        self.timestamp = time.time() if timestamp is None else timestamp
        self.mergeSpan = getDefaultMergeSpan() if mergeSpan is None else mergeSpan
        self.mergeable = mergeable

    def __repr__(self):
        return f"{self.__class__.__name__}(label={self.label!r})"

    def apply(self):
        raise NotImplementedError()

    def revert(self):
        raise NotImplementedError()

    def mergeKey(self):
        """Return a hashable key identifying the object and slot this
        operation touches, or None if the operation can't be merged.
        """
        return None

    def canMergeWith(self, other):
        if not (self.mergeable and other.mergeable):
            return False
        if type(other) is not type(self):
            return False
        key = self.mergeKey()
        if key is None or key != other.mergeKey():
            return False
        elapsed = other.timestamp - self.timestamp
        return 0 <= elapsed <= self.mergeSpan

    def mergeWith(self, other):
        """Return a single operation equivalent to applying self, then other.
        Only valid if self.canMergeWith(other) is True.
        """
        raise NotImplementedError()


#
# Property access. An accessor is a (getter, setter) pair of functions with
# the signatures getter(target, key) and setter(target, key, value). The pair
# is looked up once per operation, based on the type of the target.
#

@singledispatch
def propertyAccessor(target):
    return getattr, setattr


def registerPropertyAccessor(type, getter, setter):
    """Register a getter/setter pair to be used for targets of `type`."""
    propertyAccessor.register(type, lambda target: (getter, setter))


registerPropertyAccessor(Mapping, getitem, setitem)


class PropertySetOperation(Operation):

    """Set a named property of a target object to a new value. Attribute
    access is used by default, item access for Mapping objects.

    If `oldValue` is not passed, it is captured when the operation is first
    applied.
    """

    def __init__(self, target, key, newValue, oldValue=NOTSET, **kwargs):
        super().__init__(**kwargs)
        self.target = target
        self.key = key
        self.newValue = newValue
        self.oldValue = oldValue
        self._getProperty, self._setProperty = propertyAccessor(target)

    def __repr__(self):
        return (f"{self.__class__.__name__}(key={self.key!r}, "
                f"oldValue={self.oldValue!r}, newValue={self.newValue!r})")

    def apply(self):
        if self.oldValue is NOTSET:
            oldValue = self._getProperty(self.target, self.key)
            self._setProperty(self.target, self.key, self.newValue)
            self.oldValue = oldValue
        else:
            self._setProperty(self.target, self.key, self.newValue)

    def revert(self):
        assert self.oldValue is not NOTSET, "can't revert an operation that was never applied"
        self._setProperty(self.target, self.key, self.oldValue)

    def mergeKey(self):
        return (id(self.target), self.key)

    def mergeWith(self, other):
        assert self.canMergeWith(other)
        merged = copy.copy(self)
        merged.newValue = other.newValue
        merged.timestamp = other.timestamp
        return merged


class _CollectionOperation(Operation):

    # Collection operations address a run of items starting at a fixed
    # index. A freshly created operation has a run of length 1; merging
    # operations at the same index makes the run longer.

    def __init__(self, collection, index, **kwargs):
        super().__init__(**kwargs)
        self.collection = collection
        self.index = index
        self.items = ()

    def __repr__(self):
        return f"{self.__class__.__name__}(index={self.index}, items={self.items!r})"

    def mergeKey(self):
        return (id(self.collection), self.index)

    def _insertItems(self):
        for offset, item in enumerate(self.items):
            self.collection.insert(self.index + offset, item)

    def _removeItems(self, count):
        removed = tuple(self.collection[self.index + offset] for offset in range(count))
        for _ in range(count):
            del self.collection[self.index]
        return removed


class InsertOperation(_CollectionOperation):

    """Insert an item into a mutable sequence. An index beyond the end of the
    sequence appends. Negative indices count from the end, clamped to the
    start, as with list.insert().
    """

    def __init__(self, collection, index, item, **kwargs):
        numItems = len(collection)
        if index >= numItems:
            index = numItems
        elif index < 0:
            index = max(index + numItems, 0)
        super().__init__(collection, index, **kwargs)
        self.items = (item,)

    @property
    def item(self):
        return self.items[0]

    def apply(self):
        self._insertItems()

    def revert(self):
        self._removeItems(len(self.items))

    def mergeWith(self, other):
        assert self.canMergeWith(other)
        merged = copy.copy(self)
        # the later insert ends up in front of the earlier one
        merged.items = other.items + self.items
        merged.timestamp = other.timestamp
        return merged


class RemoveAtOperation(_CollectionOperation):

    """Remove the item at `index` from a mutable sequence. The removed item
    is captured when the operation is applied, and is reinserted at the same
    index when it is reverted.
    """

    def __init__(self, collection, index, **kwargs):
        if index < 0:
            index += len(collection)
        super().__init__(collection, index, **kwargs)
        self.count = 1

    def apply(self):
        if not (0 <= self.index <= len(self.collection) - self.count):
            raise IndexError("sequence index out of range")
        self.items = self._removeItems(self.count)

    def revert(self):
        self._insertItems()

    def mergeWith(self, other):
        assert self.canMergeWith(other)
        merged = copy.copy(self)
        merged.count = self.count + other.count
        merged.items = self.items + other.items
        merged.timestamp = other.timestamp
        return merged


class CompositeOperation(Operation):

    """An ordered group of operations that behaves as one. Children are
    applied in order and reverted in reverse order. If a child fails, the
    children that were already handled are rolled back before the error
    propagates, so the composite either fully succeeds or leaves the model
    as it found it.

    A composite never merges with another operation.
    """

    def __init__(self, operations, label=None, timestamp=None):
        super().__init__(label=label, timestamp=timestamp, mergeable=False)
        self.operations = tuple(operations)

    def __repr__(self):
        return f"{self.__class__.__name__}({list(self.operations)!r}, label={self.label!r})"

    def __iter__(self):
        return iter(self.operations)

    def __len__(self):
        return len(self.operations)

    def apply(self):
        applied = []
        try:
            for operation in self.operations:
                operation.apply()
                applied.append(operation)
        except Exception:
            logger.debug("rolling back %d operation(s) of %r", len(applied), self.label)
            for operation in reversed(applied):
                operation.revert()
            raise

    def revert(self):
        reverted = []
        try:
            for operation in reversed(self.operations):
                operation.revert()
                reverted.append(operation)
        except Exception:
            logger.debug("reapplying %d operation(s) of %r", len(reverted), self.label)
            for operation in reversed(reverted):
                operation.apply()
            raise


class DelegateOperation(Operation):

    """An operation defined by a pair of callables, for mutations that are
    neither property sets nor sequence edits. Never merges.
    """

    def __init__(self, apply, revert, label=None, timestamp=None):
        super().__init__(label=label, timestamp=timestamp, mergeable=False)
        self._apply = apply
        self._revert = revert

    def apply(self):
        self._apply()

    def revert(self):
        self._revert()
