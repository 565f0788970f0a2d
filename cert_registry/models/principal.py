from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.
    ``address`` is the token subject: the registry address the caller
    has proven control of.  Whether that address is the administrator or
    an issuer is decided by the registry, never by token claims.
    """

    address: str

    def controls(self, address: str) -> bool:
        return bool(address) and self.address == address
