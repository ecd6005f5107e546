"""Exception hierarchy for highlight import and library management."""

NOTHING_TO_IMPORT_MESSAGE = "No highlights detected in that file."


class SyncError(Exception):
    """Base exception for all highlight-sync errors."""


class ConfigError(SyncError):
    """Invalid or missing configuration."""


class NothingToImportError(SyncError):
    """The import text produced no importable highlights."""

    def __init__(self, message: str = NOTHING_TO_IMPORT_MESSAGE) -> None:
        super().__init__(message)


class UnrecognizedFormatError(NothingToImportError):
    """Input matches neither the clippings nor the HTML format."""


class EmptyImportError(NothingToImportError):
    """Format recognized but zero usable highlights were extracted."""


class MetadataLookupError(SyncError):
    """A metadata lookup for one book failed."""

    def __init__(self, query: str, reason: str) -> None:
        super().__init__(f"Metadata lookup failed for {query!r}: {reason}")
        self.query = query
        self.reason = reason


class StoreError(SyncError):
    """Library store read/write error."""


class LibraryError(SyncError):
    """A library operation referenced an unknown book or highlight."""


class LockError(SyncError):
    """Raised when the import lock cannot be acquired."""
