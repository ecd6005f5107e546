"""Tests for errors.py -- exception hierarchy."""

from highlight_sync.errors import (
    ConfigError,
    EmptyImportError,
    LibraryError,
    LockError,
    MetadataLookupError,
    NothingToImportError,
    StoreError,
    SyncError,
    UnrecognizedFormatError,
)


class TestExceptionHierarchy:
    def test_all_inherit_from_sync_error(self):
        for cls in (ConfigError, NothingToImportError, MetadataLookupError,
                    StoreError, LibraryError, LockError):
            assert issubclass(cls, SyncError)

    def test_sync_error_is_exception(self):
        assert issubclass(SyncError, Exception)

    def test_nothing_to_import_variants(self):
        assert issubclass(UnrecognizedFormatError, NothingToImportError)
        assert issubclass(EmptyImportError, NothingToImportError)


class TestNothingToImport:
    def test_shared_user_message(self):
        assert str(UnrecognizedFormatError()) == "No highlights detected in that file."
        assert str(EmptyImportError()) == str(UnrecognizedFormatError())


class TestMetadataLookupError:
    def test_attributes(self):
        err = MetadataLookupError("Dune Frank Herbert", "timeout")
        assert err.query == "Dune Frank Herbert"
        assert err.reason == "timeout"
        assert "Dune Frank Herbert" in str(err)
        assert "timeout" in str(err)
