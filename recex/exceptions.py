"""
recex exceptions

Parsing and validation never raise on receipt content; findings are returned
as data. Exceptions are reserved for problems with the environment the core
runs in, such as a broken configuration file.
"""

from typing import Optional


class RecexError(Exception):
    """Base class for recex errors"""
    pass


class ConfigurationError(RecexError):
    """Raised when a receipt configuration cannot be loaded or is invalid"""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{message} ({path})"
        super().__init__(message)
