"""
Exception types raised by the contact API.

Startup errors (ConfigError, StorageConnectionError) are fatal.
Request-time errors are caught at the handler boundary and mapped to
HTTP status codes.
"""


class ContactAPIError(Exception):
    """Base class for all contact API errors."""


class ConfigError(ContactAPIError):
    """A required environment value is missing or invalid."""


class StorageConnectionError(ContactAPIError):
    """The database cannot be reached or its schema cannot be created."""


class InvalidContactError(ContactAPIError):
    """Malformed or incomplete contact submission (HTTP 400)."""


class StorageError(ContactAPIError):
    """A query or insert failed while serving a request (HTTP 500)."""


class TimestampParseError(ContactAPIError, ValueError):
    """A stored timestamp matches none of the supported formats."""
