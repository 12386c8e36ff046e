# pg2xlsx/exceptions.py
"""Error types raised by the export pipeline."""

from typing import Optional


class ExportError(Exception):
    """Base class for fatal export errors."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.original_error = original_error


class ConfigurationError(ExportError):
    """Missing or invalid run configuration (e.g. no output file)."""
    pass


class ConnectivityError(ExportError):
    """The database connection could not be opened."""
    pass


class InputError(ExportError):
    """The query source could not be read."""
    pass


class QueryError(ExportError):
    """Query execution or column metadata retrieval failed."""
    pass


class OutputError(ExportError):
    """The spreadsheet could not be saved."""
    pass
