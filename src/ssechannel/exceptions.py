class StreamClosedError(RuntimeError):
    """Raised when writing to a stream that has already been ended."""
