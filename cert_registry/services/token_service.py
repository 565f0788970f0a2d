"""JWT bearer token creation and validation (ES256).

The token subject (``sub``) is the caller's registry address.  Proving
control of an address is done upstream by whoever signs the token; this
service only checks the signature and standard claims.

Key management:
  - JWT_PUBLIC_KEY set: tokens are verified against that PEM key and this
    process cannot mint tokens (the signer lives elsewhere).
  - otherwise (dev/test): an ephemeral EC key pair is generated on import
    and ``create_access_token`` signs with it.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import load_pem_public_key

from cert_registry.core.config import SETTINGS

ALGORITHM = "ES256"
ISSUER = "cert-registry"
AUDIENCE = "cert-registry"
ACCESS_TOKEN_TTL_MIN = 15

if SETTINGS.jwt_public_key:
    _private_key: ec.EllipticCurvePrivateKey | None = None
    _public_key = load_pem_public_key(SETTINGS.jwt_public_key.encode())
else:
    _private_key = ec.generate_private_key(ec.SECP256R1())
    _public_key = _private_key.public_key()


def create_access_token(*, sub: str, ttl_minutes: int = ACCESS_TOKEN_TTL_MIN) -> str:
    """Build and sign an access token for address ``sub``.

    Raises RuntimeError when the service was configured with an external
    verification key and holds no signing key.
    """
    if _private_key is None:
        raise RuntimeError("JWT_PUBLIC_KEY is configured; tokens are minted externally")
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ttl_minutes),
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins the algorithm to ES256 (no alg:none, no alg switching) and
    validates exp, iss and aud.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
