"""Exceptions raised by pybucket."""


class BucketError(Exception):
    """Base exception for all pybucket errors."""


class BucketValidationError(BucketError):
    """Raised when user input is rejected before any I/O is attempted."""


class BucketInvalidLocationError(BucketValidationError):
    """Raised when a location string cannot be parsed."""


class BucketInvalidPatternError(BucketValidationError):
    """Raised when an include/exclude glob pattern is malformed."""


class BucketInvalidRangeError(BucketValidationError):
    """Raised when a byte range string or offset/size is malformed."""


class BucketConflictingRangeOptionsError(BucketValidationError):
    """Raised when a range string is combined with an offset or size."""


class BucketNotFoundError(BucketError):
    """Raised when a local path, remote object or bucket does not exist."""

    def __init__(self, location: str, message: str = ""):
        self.location = location
        super().__init__(message or f"Not found: {location}")


class BucketTransportError(BucketError):
    """Raised when a storage backend call fails."""


class BucketNotImplementedError(BucketError):
    """Raised for backend combinations the tool deliberately does not handle."""


class BucketConfigError(BucketError):
    """Raised when configuration values cannot be loaded or parsed."""
