"""
Lithos exception hierarchy.

All lithos exceptions inherit from LithosError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.

The valuation engine itself never raises for missing or odd data; these are
raised by record parsers and file loaders, and collection loaders catch them
per row.
"""


class LithosError(Exception):
    """Base exception class for all lithos errors."""


class ConfigurationError(LithosError):
    """Raised for configuration errors (missing keys, invalid values)."""


class DataProcessingError(LithosError):
    """Raised for a malformed record (bad date, unknown type, non-numeric amount)."""


class FileIOError(LithosError):
    """Raised for file I/O errors."""
