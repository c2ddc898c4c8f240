"""# ophistory

An in-process undo/redo engine built around reversible operations.

Every change to a model is expressed as an Operation object that knows how
to apply itself and how to revert itself. An OperationController executes
operations and keeps them on an undo stack; undo() reverts the topmost one
and moves it to the redo stack, redo() moves it back.

    >>> model = {"age": 14}
    >>> controller = OperationController(mergeSpan=0)
    >>> _ = controller.executeSetProperty(model, "age", 30)
    >>> model["age"]
    30
    >>> controller.undo()
    True
    >>> model["age"]
    14

Three things are handled beyond plain undo/redo:

- Merging: consecutive changes to the same property (or the same position
  of a sequence) that happen within a short time span are folded into one
  undo item, so that for example dragging a slider can be undone in one
  step. The span is configured per controller, or process-wide with
  setDefaultMergeSpan().

- Recording: an OperationRecorder collects any number of operations into a
  single CompositeOperation, which is undone and redone as a whole.

- Watching: controller.bindPropertyChanged(obj, "name") returns a
  ChangeWatcher that turns ordinary assignments to `obj.name` into undoable
  operations. The watched object must provide a subscribe() method; the
  Bindable mixin class implements it for plain Python objects.

The controller is meant to be used from a single thread.
"""

from .bindable import Bindable, PropertyChange, Subscription
from .controller import OperationController, OperationExecutor
from .errors import OperationError, RecordingError
from .operations import (
    CompositeOperation,
    DelegateOperation,
    InsertOperation,
    Operation,
    PropertySetOperation,
    RemoveAtOperation,
    getDefaultMergeSpan,
    registerPropertyAccessor,
    setDefaultMergeSpan,
)
from .recorder import OperationRecorder
from .watcher import ChangeWatcher

__all__ = [
    "Bindable",
    "ChangeWatcher",
    "CompositeOperation",
    "DelegateOperation",
    "InsertOperation",
    "Operation",
    "OperationController",
    "OperationError",
    "OperationExecutor",
    "OperationRecorder",
    "PropertyChange",
    "PropertySetOperation",
    "RecordingError",
    "RemoveAtOperation",
    "Subscription",
    "getDefaultMergeSpan",
    "registerPropertyAccessor",
    "setDefaultMergeSpan",
]

try:
    from ._version import version as __version__
except ImportError:
    __version__ = "<unknown>"
