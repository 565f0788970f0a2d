"""Certificate issuance, lookup, revocation and verification endpoints.

- POST /v1/certificates                          issue (authorized issuer)
- GET  /v1/certificates/{certificate_id}         public
- GET  /v1/certificates/{certificate_id}/verify  public, never 404s
- POST /v1/certificates/{certificate_id}/revoke  issuer or administrator
- GET  /v1/recipients/{address}/certificates     public

``issuer`` and ``revoker`` default to the caller's own address.  When a
client passes one explicitly it must still be the address the bearer
token authenticates.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from cert_registry.api.dependencies import get_authenticator, http_error, require_user
from cert_registry.core.errors import RegistryError
from cert_registry.models.certificate import Certificate, CertificateMetadata
from cert_registry.models.principal import Principal
from cert_registry.services.authentication import Authenticator
from cert_registry.services.registry import certificate_registry

router = APIRouter(prefix="/v1", tags=["certificates"])


class MetadataIn(BaseModel):
    # Emptiness is a registry rule (INVALID_CERTIFICATE_DATA), not a schema one.
    title: str
    course_name: str
    description: str = ""
    completion_date: int = Field(default=0, ge=0)
    external_reference: str = ""


class CertificateIssueIn(BaseModel):
    id: str
    recipient: str = Field(min_length=1)
    metadata: MetadataIn
    issuer: str | None = None


class RevokeIn(BaseModel):
    revoker: str | None = None


class MetadataOut(BaseModel):
    title: str
    description: str
    course_name: str
    completion_date: int
    external_reference: str


class CertificateOut(BaseModel):
    id: str
    issuer: str
    recipient: str
    metadata: MetadataOut
    issued_at: int
    status: str


class CertificateVerifyOut(BaseModel):
    id: str
    valid: bool


class RecipientCertificatesOut(BaseModel):
    recipient: str
    certificate_ids: list[str]


def _to_out(certificate: Certificate) -> CertificateOut:
    return CertificateOut(
        id=certificate.id,
        issuer=certificate.issuer,
        recipient=certificate.recipient,
        metadata=MetadataOut(**certificate.metadata.to_dict()),
        issued_at=certificate.issued_at,
        status=certificate.status.value,
    )


@router.post(
    "/certificates",
    response_model=CertificateOut,
    status_code=status.HTTP_201_CREATED,
)
async def issue_certificate(
    body: CertificateIssueIn,
    principal: Annotated[Principal, Depends(require_user)],
    auth: Annotated[Authenticator, Depends(get_authenticator)],
) -> CertificateOut:
    metadata = CertificateMetadata(
        title=body.metadata.title,
        description=body.metadata.description,
        course_name=body.metadata.course_name,
        completion_date=body.metadata.completion_date,
        external_reference=body.metadata.external_reference,
    )
    try:
        certificate = await certificate_registry.issue_certificate(
            auth,
            body.id,
            body.issuer or principal.address,
            body.recipient,
            metadata,
        )
    except RegistryError as e:
        raise http_error(e) from None
    return _to_out(certificate)


@router.get("/certificates/{certificate_id}", response_model=CertificateOut)
async def get_certificate(certificate_id: str) -> CertificateOut:
    try:
        certificate = await certificate_registry.get_certificate(certificate_id)
    except RegistryError as e:
        raise http_error(e) from None
    return _to_out(certificate)


@router.get(
    "/certificates/{certificate_id}/verify", response_model=CertificateVerifyOut
)
async def verify_certificate(certificate_id: str) -> CertificateVerifyOut:
    valid = await certificate_registry.verify_certificate(certificate_id)
    return CertificateVerifyOut(id=certificate_id, valid=valid)


@router.post(
    "/certificates/{certificate_id}/revoke",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def revoke_certificate(
    certificate_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    auth: Annotated[Authenticator, Depends(get_authenticator)],
    body: RevokeIn | None = None,
) -> Response:
    revoker = (body.revoker if body else None) or principal.address
    try:
        await certificate_registry.revoke_certificate(auth, certificate_id, revoker)
    except RegistryError as e:
        raise http_error(e) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/recipients/{address}/certificates", response_model=RecipientCertificatesOut
)
async def get_certificates_by_recipient(address: str) -> RecipientCertificatesOut:
    ids = await certificate_registry.get_certificates_by_recipient(address)
    return RecipientCertificatesOut(recipient=address, certificate_ids=ids)
