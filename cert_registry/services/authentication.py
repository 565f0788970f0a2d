"""Caller identity verification.

The registry never inspects tokens or signatures.  Each mutating operation
receives an Authenticator and asks it one question: "is the caller
authenticated as this address?"  How that is proven (JWT, signed
transaction, mTLS) is the environment's business.
"""

from __future__ import annotations

from typing import Protocol

from cert_registry.models.principal import Principal


class Authenticator(Protocol):
    def verify(self, address: str) -> bool: ...


class PrincipalAuthenticator:
    """Authenticates exactly the address of the request's Principal."""

    def __init__(self, principal: Principal) -> None:
        self._principal = principal

    def verify(self, address: str) -> bool:
        return self._principal.controls(address)
