"""Registry error taxonomy.

Every error is a terminal business-rule violation of a single operation.
None of them are retried and none leave partial state behind.  Each class
carries a stable machine-readable ``code`` (returned to HTTP clients) and
the HTTP status the API layer maps it to.
"""

from __future__ import annotations


class RegistryError(Exception):
    code = "REGISTRY_ERROR"
    status_code = 400
    default_message = "registry operation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class AlreadyInitialized(RegistryError):
    code = "REGISTRY_ALREADY_INITIALIZED"
    status_code = 409
    default_message = "registry already initialized"


class NotInitialized(RegistryError):
    code = "REGISTRY_NOT_INITIALIZED"
    status_code = 409
    default_message = "registry has no administrator"


class Unauthorized(RegistryError):
    code = "UNAUTHORIZED"
    status_code = 403
    default_message = "caller lacks the required role"


class AuthenticationFailed(Unauthorized):
    """The caller could not be authenticated as the address it claims."""

    code = "AUTHENTICATION_FAILED"
    default_message = "caller is not authenticated as the claimed address"


class AlreadyExists(RegistryError):
    code = "CERTIFICATE_ALREADY_EXISTS"
    status_code = 409
    default_message = "certificate id already used"


class InvalidData(RegistryError):
    code = "INVALID_CERTIFICATE_DATA"
    status_code = 422
    default_message = "required certificate field is empty"


class NotFound(RegistryError):
    code = "CERTIFICATE_NOT_FOUND"
    status_code = 404
    default_message = "certificate not found"


class AlreadyRevoked(RegistryError):
    code = "CERTIFICATE_REVOKED"
    status_code = 409
    default_message = "certificate already revoked"


class StoreConflict(RegistryError):
    """A concurrent writer touched the same records; nothing was applied."""

    code = "STORE_CONFLICT"
    status_code = 503
    default_message = "concurrent modification, resubmit the operation"
