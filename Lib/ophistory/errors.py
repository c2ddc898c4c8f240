class OperationError(Exception):
    pass


class RecordingError(OperationError):
    pass
