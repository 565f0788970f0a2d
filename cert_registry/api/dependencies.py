from __future__ import annotations

import logging
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cert_registry.core.errors import RegistryError
from cert_registry.core.logging import caller_var
from cert_registry.models.principal import Principal
from cert_registry.services import token_service
from cert_registry.services.authentication import Authenticator, PrincipalAuthenticator

logger = logging.getLogger(__name__)

# auto_error=False: we raise our own 401 so a missing header and a bad
# token are reported the same way.
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> Principal:
    """Extract and validate the JWT bearer token. Returns a Principal.

    Used as a FastAPI dependency on every mutating endpoint.
    """
    if credentials is None:
        raise _unauthenticated("Not authenticated")
    try:
        claims = token_service.decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthenticated("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthenticated("Invalid token") from None

    principal = Principal(address=claims["sub"])
    caller_var.set(principal.address)
    logger.debug("Token validated for caller=%s", principal.address)
    return principal


async def get_authenticator(
    principal: Annotated[Principal, Depends(require_user)],
) -> Authenticator:
    return PrincipalAuthenticator(principal)


def http_error(e: RegistryError) -> HTTPException:
    """Translate a registry rejection into the HTTP error clients see.

    Body: {"detail": {"code": "CERTIFICATE_NOT_FOUND", "message": "..."}}
    """
    return HTTPException(
        status_code=e.status_code,
        detail={"code": e.code, "message": e.message},
    )
