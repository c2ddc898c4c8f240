from contextlib import contextmanager
import logging
import time

from .operations import (
    DelegateOperation,
    InsertOperation,
    PropertySetOperation,
    RemoveAtOperation,
)
from .watcher import ChangeWatcher


logger = logging.getLogger(__name__)


class OperationExecutor:

    """Base class for objects that execute operations. Subclasses implement
    execute(); the convenience methods build an operation from their
    arguments and pass it on to execute().
    """

    mergeSpan = None
    clock = staticmethod(time.time)

    def execute(self, operation):
        raise NotImplementedError()

    def _operationArgs(self):
        return dict(timestamp=self.clock(), mergeSpan=self.mergeSpan)

    def executeSetProperty(self, target, propertyName, newValue):
        operation = PropertySetOperation(target, propertyName, newValue, **self._operationArgs())
        self.execute(operation)
        return operation

    def executeAdd(self, collection, item):
        return self.executeInsert(collection, len(collection), item)

    def executeInsert(self, collection, index, item):
        operation = InsertOperation(collection, index, item, **self._operationArgs())
        self.execute(operation)
        return operation

    def executeRemoveAt(self, collection, index):
        operation = RemoveAtOperation(collection, index, **self._operationArgs())
        self.execute(operation)
        return operation

    def executeRemove(self, collection, item):
        """Remove the first occurrence of `item`. Raises ValueError if the
        item is not present.
        """
        return self.executeRemoveAt(collection, collection.index(item))

    def executeDelegate(self, apply, revert, label=None):
        operation = DelegateOperation(apply, revert, label=label, timestamp=self.clock())
        self.execute(operation)
        return operation


class OperationController(OperationExecutor):

    """An OperationController manages a stack of undo items and a stack of
    redo items. Each item is an Operation.

        >>> model = {"name": "Venus"}
        >>> controller = OperationController()
        >>> _ = controller.executeSetProperty(model, "name", "Yamada")
        >>> model
        {'name': 'Yamada'}
        >>> controller.undo()
        True
        >>> model
        {'name': 'Venus'}
        >>> controller.redo()
        True
        >>> model
        {'name': 'Yamada'}

    Undo or redo with an empty stack does nothing and returns False; check
    canUndo and canRedo to find out in advance.

    Consecutive operations on the same target and property are merged into
    a single undo item if they happen within the merge span. `mergeSpan`
    (seconds) is used for operations built by the execute* convenience
    methods; if it is None, the process-wide default is used. `clock` is a
    callable returning the current time in seconds, used to timestamp those
    operations.

    `changeMonitor` is an optional callable taking one positional argument.
    It will be called with the operation involved whenever an operation is
    executed, pushed, undone or redone. This can be used to trigger view
    updates in a GUI application.
    """

    def __init__(self, mergeSpan=None, clock=None, changeMonitor=None):
        self.undoStack = []
        self.redoStack = []
        self.mergeSpan = mergeSpan
        if clock is not None:
            self.clock = clock
        self._changeMonitor = changeMonitor
        self._applyLevel = 0

    @property
    def canUndo(self):
        return bool(self.undoStack)

    @property
    def canRedo(self):
        return bool(self.redoStack)

    def execute(self, operation):
        """Apply the operation and record it on the undo stack, merging it
        into the topmost undo item if possible. Clears the redo stack.

        If applying the operation raises an exception, the stacks are left
        untouched and the exception propagates.
        """
        with self.applying():
            operation.apply()
        top = self.undoStack[-1] if self.undoStack else None
        if top is not None and top.canMergeWith(operation):
            logger.debug("merging %r into %r", operation, top)
            self.undoStack[-1] = top.mergeWith(operation)
        else:
            self.undoStack.append(operation)
        self.redoStack = []
        self._notify(operation)

    def pushExecuted(self, operation):
        """Push an operation that has already been applied onto the undo
        stack, without applying it again and without merging. Clears the
        redo stack.
        """
        self.undoStack.append(operation)
        self.redoStack = []
        self._notify(operation)

    def undo(self):
        """Revert the item on the top of the undo stack and move it to the
        redo stack. Return False if there was nothing to undo.
        """
        return self._performUndo(self.undoStack, self.redoStack, "revert")

    def redo(self):
        """Apply the item on the top of the redo stack and move it to the
        undo stack. Return False if there was nothing to redo.
        """
        return self._performUndo(self.redoStack, self.undoStack, "apply")

    def _performUndo(self, popStack, pushStack, methodName):
        if not popStack:
            logger.debug("nothing to %s", methodName)
            return False
        operation = popStack.pop()
        try:
            with self.applying():
                getattr(operation, methodName)()
        except Exception:
            popStack.append(operation)
            raise
        pushStack.append(operation)
        self._notify(operation)
        return True

    @property
    def isApplying(self):
        """True while the controller, or a recorder working on its behalf, is
        applying or reverting operations. Change notifications arriving in
        that time are side effects of those operations.
        """
        return self._applyLevel > 0

    @contextmanager
    def applying(self):
        self._applyLevel += 1
        try:
            yield
        finally:
            self._applyLevel -= 1

    def undoLabel(self):
        """Return the label of the top item on the undo stack, or None if
        the stack is empty.
        """
        if self.undoStack:
            return self.undoStack[-1].label
        else:
            return None  # empty undo stack

    def redoLabel(self):
        """Return the label of the top item on the redo stack, or None if
        the stack is empty.
        """
        if self.redoStack:
            return self.redoStack[-1].label
        else:
            return None  # empty redo stack

    def flush(self):
        """Forget all undo and redo items. The model is not touched."""
        self.undoStack = []
        self.redoStack = []

    def bindPropertyChanged(self, target, propertyName, mergeEnabled=True):
        """Watch `target` for changes of `propertyName` and record each change
        as an undoable operation. Returns a ChangeWatcher; call its dispose()
        method to stop watching.

        With mergeEnabled=False, every change becomes its own undo item.
        """
        return ChangeWatcher(self, target, propertyName, mergeEnabled=mergeEnabled)

    def _notify(self, operation):
        if self._changeMonitor is not None:
            self._changeMonitor(operation)
