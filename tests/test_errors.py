"""Tests for the Bifrost error taxonomy."""

from pathlib import Path

from bifrost.core.errors import (
    AlreadyExistsError,
    BifrostError,
    ErrorCategory,
    IncompleteLoadError,
    InvalidNameError,
    ManifestError,
    NotFoundError,
    ProcessFailureError,
    RealmLockedError,
)


class TestErrorCategories:
    """Each error carries the category callers switch on."""

    def test_categories(self):
        """Test that every concrete error maps to its category."""
        cases = [
            (InvalidNameError("tmp"), ErrorCategory.INVALID_NAME),
            (AlreadyExistsError(Path("/x")), ErrorCategory.ALREADY_EXISTS),
            (NotFoundError(Path("/x")), ErrorCategory.NOT_FOUND),
            (IncompleteLoadError(expected=8, copied=3), ErrorCategory.INCOMPLETE_LOAD),
            (ProcessFailureError("boom"), ErrorCategory.PROCESS_FAILURE),
            (ManifestError("bad"), ErrorCategory.MANIFEST),
            (RealmLockedError("api", Path("/l")), ErrorCategory.LOCKED),
        ]
        for error, category in cases:
            assert isinstance(error, BifrostError)
            assert error.category == category

    def test_category_override(self):
        """Test that a category passed explicitly wins over the class default."""
        error = BifrostError("odd", category=ErrorCategory.NO_CONTENT)
        assert error.category == ErrorCategory.NO_CONTENT
        assert BifrostError("plain").category == ErrorCategory.IO_FAILURE


class TestMessages:
    """User-facing messages."""

    def test_empty_name(self):
        assert InvalidNameError("").message == "realm name cannot be empty"
        assert InvalidNameError(None).message == "realm name cannot be empty"

    def test_blacklisted_name(self):
        assert InvalidNameError("tmp").message == "realm name 'tmp' is not allowed"

    def test_already_exists_hints_unload(self):
        error = AlreadyExistsError(Path("/h/.bifrost/container/bifrost/api"))
        assert "/h/.bifrost/container/bifrost/api" in error.message
        assert "unload" in error.message

    def test_incomplete_load_counts(self):
        error = IncompleteLoadError(expected=8, copied=3)
        assert error.expected == 8
        assert error.copied == 3
        assert "3 of 8" in str(error)

    def test_process_failure_details(self):
        error = ProcessFailureError("docker exited with status 125", returncode=125, stderr=b"no image")
        assert error.returncode == 125
        assert error.stderr == b"no image"
