"""
Catalog exceptions.

Raised by the services and the API client when an operation cannot complete. Callers
(form handlers, the CLI) catch `CatalogError` and report it to the user once.
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for every error raised by the catalog core."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CatalogValidationError(CatalogError):
    """Input was rejected, locally or by the server (HTTP 400/422)."""


class CodeSpaceExhaustedError(CatalogValidationError):
    """The two-digit code counter for a prefix has run past `99Z`."""


class ConflictError(CatalogError):
    """A reference code or record already exists (HTTP 409)."""


class NotFoundError(CatalogError):
    """The addressed record does not exist on the server (HTTP 404)."""


class TransientError(CatalogError):
    """Network failure, timeout or server-side 5xx. Retrying may succeed."""
