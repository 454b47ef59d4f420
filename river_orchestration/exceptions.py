"""
Exceptions for river data pipeline operations.
"""


class RiverDataError(Exception):
    """Base exception for river data pipeline errors."""

    pass


class ConfigError(RiverDataError):
    """Invalid or missing configuration (environment, catalog, mapping files)."""

    pass


class RemoteConnectionError(RiverDataError, ConnectionError):
    """The FTP session pool could not be established."""

    pass


class TransferError(RiverDataError):
    """A single remote file could not be downloaded."""

    def __init__(self, path: str, message: str):
        super().__init__(f"Transfer of {path} failed: {message}")
        self.path = path


class ParseError(RiverDataError):
    """A bulletin payload could not be parsed into records."""

    pass


class ValidationError(RiverDataError):
    """An observation record is missing required fields."""

    pass


class StoreError(RiverDataError):
    """Schema or IO failure in the record store."""

    pass
