"""
Error taxonomy for the resource store.

Store implementations raise these exceptions; the boundary layer in
``app.main`` maps each of them to an HTTP status code.  ``NotFound`` is
deliberately separate from ``PersistenceError`` so that a caller can
tell "does not exist" apart from "try again".
"""

from typing import Any, Optional


class ResourceStoreError(Exception):
    """Base class for all errors raised by the service."""


class ConfigurationError(ResourceStoreError):
    """Configuration is missing or invalid; fatal at startup."""


class NotFound(ResourceStoreError):
    """No resource exists with the requested identifier."""

    def __init__(self, resource_id: Any) -> None:
        self.resource_id = resource_id
        super().__init__(f"Resource {resource_id} not found")


class ValidationError(ResourceStoreError):
    """A payload or stored record could not be interpreted."""


class PersistenceError(ResourceStoreError):
    """The backing store is unreachable or a read/write failed.

    ``operation`` and ``resource_id`` are kept on the instance so that the
    boundary layer can log the failing call with its context.
    """

    def __init__(
        self,
        operation: str,
        resource_id: Optional[Any] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.operation = operation
        self.resource_id = resource_id
        self.cause = cause
        message = f"{operation} failed"
        if resource_id is not None:
            message += f" for resource {resource_id}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class RequestTimeout(ResourceStoreError):
    """The request exceeded the configured deadline."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Request exceeded {timeout:g}s deadline")
