from contextlib import contextmanager
import logging

from .controller import OperationExecutor
from .errors import RecordingError
from .operations import CompositeOperation, Operation


logger = logging.getLogger(__name__)


class OperationRecorder:

    """An OperationRecorder groups several operations into one undo item.

        >>> from ophistory import OperationController
        >>> model = {"name": "Default", "age": 5}
        >>> controller = OperationController()
        >>> recorder = OperationRecorder(controller)
        >>> recorder.beginRecording()
        >>> _ = recorder.current.executeSetProperty(model, "age", 14)
        >>> _ = recorder.current.executeSetProperty(model, "name", "Changed")
        >>> _ = recorder.endRecording("Fixed")
        >>> len(controller.undoStack)
        1
        >>> controller.undo()
        True
        >>> model
        {'name': 'Default', 'age': 5}

    Operations executed via `recorder.current` are applied immediately, but
    only reach the controller's undo stack when endRecording() is called,
    as a single CompositeOperation. Recording nothing pushes nothing.

    In most cases it is better to use the context manager provided by the
    recorder.recording() method, which rolls back the recorded operations
    if an exception occurs.
    """

    def __init__(self, controller):
        self.controller = controller
        self._proxy = None

    @property
    def isRecording(self):
        return self._proxy is not None

    @property
    def current(self):
        """The object to execute operations with while recording. It has the
        same execute* methods as the controller.
        """
        if self._proxy is None:
            raise RecordingError("not recording")
        return self._proxy

    def beginRecording(self):
        if self._proxy is not None:
            raise RecordingError("already recording")
        self._proxy = _RecordingProxy(self)
        logger.debug("begin recording")

    def endRecording(self, label=None):
        """Stop recording and push the recorded operations to the controller
        as one CompositeOperation carrying `label`. Return the composite, or
        None if nothing was recorded.
        """
        operations = self._endSession()
        logger.debug("end recording %r: %d operation(s)", label, len(operations))
        if not operations:
            return None
        composite = CompositeOperation(operations, label=label, timestamp=self.controller.clock())
        self.controller.pushExecuted(composite)
        return composite

    def cancelRecording(self):
        """Stop recording and revert the recorded operations, newest first.
        Nothing is pushed to the controller.
        """
        operations = self._endSession()
        logger.debug("cancel recording: reverting %d operation(s)", len(operations))
        with self.controller.applying():
            for operation in reversed(operations):
                operation.revert()

    @contextmanager
    def recording(self, label=None):
        """Returns a context manager that handles a beginRecording/endRecording
        pair, and yields the recording proxy. If an exception is raised in
        the body, the recording is cancelled. If the body already ended or
        cancelled the session itself, nothing more is done.
        """
        self.beginRecording()
        proxy = self._proxy
        try:
            yield proxy
        except Exception:
            if self._proxy is proxy:
                self.cancelRecording()
            raise
        else:
            if self._proxy is proxy:
                self.endRecording(label)

    def _endSession(self):
        if self._proxy is None:
            raise RecordingError("not recording")
        proxy = self._proxy
        self._proxy = None
        return proxy.pending


class _RecordingProxy(OperationExecutor):

    # Stands in for the controller during a recording session: executed
    # operations are applied and collected instead of being pushed.

    def __init__(self, recorder):
        self._recorder = recorder
        self.pending = []
        self.mergeSpan = recorder.controller.mergeSpan
        self.clock = recorder.controller.clock

    def execute(self, operation):
        if not isinstance(operation, Operation):
            raise TypeError(f"expected an Operation, got {type(operation).__name__}")
        if self._recorder._proxy is not self:
            raise RecordingError("this recording session has ended")
        with self._recorder.controller.applying():
            operation.apply()
        self.pending.append(operation)
