"""Registry administration endpoints.

- POST   /v1/registry/initialize           set the administrator (once)
- GET    /v1/registry/admin                public
- GET    /v1/registry/issuers/{address}    public issuer lookup
- PUT    /v1/registry/issuers/{address}    administrator only, idempotent
- DELETE /v1/registry/issuers/{address}    administrator only, idempotent
- GET    /v1/registry/certificate-count    public, number of certificates ever issued

Whether the caller is the administrator is decided by the registry from
its stored state; the bearer token only proves which address is calling.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from cert_registry.api.dependencies import get_authenticator, http_error
from cert_registry.core.errors import RegistryError
from cert_registry.services.authentication import Authenticator
from cert_registry.services.registry import authorization_store, certificate_registry

router = APIRouter(prefix="/v1/registry", tags=["registry"])


class InitializeIn(BaseModel):
    admin: str = Field(min_length=1)


class AdminOut(BaseModel):
    admin: str


class IssuerOut(BaseModel):
    address: str
    is_issuer: bool


class CertificateCountOut(BaseModel):
    count: int


@router.post(
    "/initialize", response_model=AdminOut, status_code=status.HTTP_201_CREATED
)
async def initialize_registry(
    body: InitializeIn,
    auth: Annotated[Authenticator, Depends(get_authenticator)],
) -> AdminOut:
    """Set the administrator.  The caller must be that address."""
    try:
        await authorization_store.initialize(auth, body.admin)
    except RegistryError as e:
        raise http_error(e) from None
    return AdminOut(admin=body.admin)


@router.get("/admin", response_model=AdminOut)
async def get_admin() -> AdminOut:
    try:
        admin = await authorization_store.get_admin()
    except RegistryError as e:
        raise http_error(e) from None
    return AdminOut(admin=admin)


@router.get("/issuers/{address}", response_model=IssuerOut)
async def get_issuer(address: str) -> IssuerOut:
    return IssuerOut(
        address=address, is_issuer=await authorization_store.is_issuer(address)
    )


@router.put("/issuers/{address}", response_model=IssuerOut)
async def add_issuer(
    address: str,
    auth: Annotated[Authenticator, Depends(get_authenticator)],
) -> IssuerOut:
    try:
        await authorization_store.add_issuer(auth, address)
    except RegistryError as e:
        raise http_error(e) from None
    return IssuerOut(address=address, is_issuer=True)


@router.delete("/issuers/{address}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_issuer(
    address: str,
    auth: Annotated[Authenticator, Depends(get_authenticator)],
) -> Response:
    try:
        await authorization_store.remove_issuer(auth, address)
    except RegistryError as e:
        raise http_error(e) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/certificate-count", response_model=CertificateCountOut)
async def get_certificate_count() -> CertificateCountOut:
    """Revoked certificates still count; ids are never reused."""
    return CertificateCountOut(count=await certificate_registry.get_certificate_count())
