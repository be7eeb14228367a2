"""Exception types raised by the inventory pipeline."""


class InventoryError(Exception):
    """Base class for all repoinventory errors."""


class IoError(InventoryError):
    """A whole operation failed on the filesystem.

    Raised when the scan root cannot be opened, a snapshot cannot be read,
    or an output destination cannot be written.

    Attributes:
        path: The offending path
        operation: Short name of the failed operation (e.g. "scan")
    """

    def __init__(self, operation: str, path, cause: object = None):
        self.operation = operation
        self.path = path
        self.cause = cause
        message = f"{operation} failed for {path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class InvariantViolation(InventoryError):
    """Input broke a precondition, e.g. a duplicate path in one snapshot."""


class MalformedSnapshotLine(InventoryError):
    """One snapshot line could not be decoded.

    Tolerant readers catch this, count it and move on to the next line.
    """

    def __init__(self, line_number: int, reason: str):
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"line {line_number}: {reason}")
