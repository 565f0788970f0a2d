from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


class CertificateStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    # Declared for forward compatibility; no operation transitions into it.
    EXPIRED = "expired"


@dataclass(frozen=True, slots=True)
class CertificateMetadata:
    title: str
    course_name: str
    description: str = ""
    completion_date: int = 0  # unix seconds, 0 when unknown
    external_reference: str = ""  # e.g. IPFS hash of off-registry material

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "course_name": self.course_name,
            "completion_date": self.completion_date,
            "external_reference": self.external_reference,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> CertificateMetadata:
        return CertificateMetadata(
            title=data["title"],
            description=data.get("description", ""),
            course_name=data["course_name"],
            completion_date=int(data.get("completion_date", 0)),
            external_reference=data.get("external_reference", ""),
        )


@dataclass(frozen=True, slots=True)
class Certificate:
    """A credential record.

    Everything except ``status`` is fixed at issuance.  The only transition
    ever applied afterwards is active -> revoked.
    """

    id: str
    issuer: str
    recipient: str
    metadata: CertificateMetadata
    issued_at: int
    status: CertificateStatus = CertificateStatus.ACTIVE

    @staticmethod
    def new(
        *,
        id: str,
        issuer: str,
        recipient: str,
        metadata: CertificateMetadata,
        issued_at: int,
    ) -> Certificate:
        return Certificate(
            id=id,
            issuer=issuer,
            recipient=recipient,
            metadata=metadata,
            issued_at=issued_at,
            status=CertificateStatus.ACTIVE,
        )

    @property
    def is_active(self) -> bool:
        return self.status is CertificateStatus.ACTIVE

    def revoked(self) -> Certificate:
        return replace(self, status=CertificateStatus.REVOKED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "issuer": self.issuer,
            "recipient": self.recipient,
            "metadata": self.metadata.to_dict(),
            "issued_at": self.issued_at,
            "status": self.status.value,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Certificate:
        return Certificate(
            id=data["id"],
            issuer=data["issuer"],
            recipient=data["recipient"],
            metadata=CertificateMetadata.from_dict(data["metadata"]),
            issued_at=int(data["issued_at"]),
            status=CertificateStatus(data["status"]),
        )
