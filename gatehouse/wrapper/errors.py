"""Wrapper generation errors."""


class WrapperValidationError(ValueError):
    """Raised when a wrapper spec cannot produce a valid entry module."""
