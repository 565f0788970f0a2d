"""Domain events published after a successful registry mutation."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar


@dataclass(frozen=True, slots=True)
class CertificateIssued:
    name: ClassVar[str] = "certificate_issued"

    id: str
    issuer: str
    recipient: str
    issued_at: int

    def to_payload(self) -> dict:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class CertificateRevoked:
    name: ClassVar[str] = "certificate_revoked"

    id: str
    revoked_by: str
    revoked_at: int

    def to_payload(self) -> dict:
        return asdict(self)


RegistryEvent = CertificateIssued | CertificateRevoked
