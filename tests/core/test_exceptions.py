"""Tests for lithos.core.exceptions."""

from lithos.core.exceptions import (
    ConfigurationError,
    DataProcessingError,
    FileIOError,
    LithosError,
)


def test_hierarchy():
    """All exceptions should inherit from LithosError."""
    for exc_cls in [ConfigurationError, DataProcessingError, FileIOError]:
        assert issubclass(exc_cls, LithosError)


def test_exception_message():
    err = DataProcessingError("amount is not a number: 'abc'")
    assert "not a number" in str(err)


def test_catch_base():
    """Catching LithosError should catch all subtypes."""
    try:
        raise FileIOError("File not found: ledger.yaml")
    except LithosError as e:
        assert "ledger.yaml" in str(e)
