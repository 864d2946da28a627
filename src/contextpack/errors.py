# src/contextpack/errors.py


class ContextPackError(Exception):
    """Base class for all errors raised by contextpack."""


class ScanError(ContextPackError):
    """A scan could not complete (e.g. a directory could not be listed)."""


class InvalidRootError(ScanError):
    """The scan root is missing, inaccessible or not a directory."""


class ScanCancelledError(ScanError):
    """The scan observed a cancellation request and stopped."""


class GenerationError(ContextPackError):
    """Context generation could not start."""


class FolderTreeError(ContextPackError):
    """A folder tree operation failed."""
