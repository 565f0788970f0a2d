"""Demo: initialize → add issuer → issue → verify → revoke, via TestClient.

Run with:
    python scripts/demo_registry_flow.py

Uses the in-process app and the ephemeral dev signing key, so it needs
neither a running server nor DATABASE_URL/REDIS_URL.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from cert_registry.main import app
from cert_registry.services import token_service

ADMIN = "GADMIN-DEMO"
ISSUER = "GISSUER-DEMO"
RECIPIENT = "GRECIPIENT-DEMO"
CERT_ID = "CERT-DEMO-001"


def _auth(address: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_service.create_access_token(sub=address)}"}


def main() -> None:
    client = TestClient(app)

    # ── Step 1: administrator claims the registry ───────────────────
    r = client.post(
        "/v1/registry/initialize", json={"admin": ADMIN}, headers=_auth(ADMIN)
    )
    print(f"1. POST   /v1/registry/initialize        → {r.status_code}")

    # ── Step 2: administrator authorizes an issuer ──────────────────
    r = client.put(f"/v1/registry/issuers/{ISSUER}", headers=_auth(ADMIN))
    print(f"2. PUT    /v1/registry/issuers/{ISSUER} → {r.status_code}")

    # ── Step 3: issuer issues a certificate ─────────────────────────
    r = client.post(
        "/v1/certificates",
        json={
            "id": CERT_ID,
            "recipient": RECIPIENT,
            "metadata": {
                "title": "Blockchain Developer",
                "course_name": "Advanced Blockchain",
                "description": "Completed blockchain development course",
                "completion_date": 1704067200,
                "external_reference": "QmDemo123",
            },
        },
        headers=_auth(ISSUER),
    )
    print(f"3. POST   /v1/certificates               → {r.status_code}  {r.json()}")

    # ── Step 4: anyone verifies ─────────────────────────────────────
    r = client.get(f"/v1/certificates/{CERT_ID}/verify")
    print(f"4. GET    .../{CERT_ID}/verify     → {r.json()}")

    # ── Step 5: administrator revokes ───────────────────────────────
    r = client.post(f"/v1/certificates/{CERT_ID}/revoke", headers=_auth(ADMIN))
    print(f"5. POST   .../{CERT_ID}/revoke     → {r.status_code}")

    r = client.get(f"/v1/certificates/{CERT_ID}/verify")
    print(f"6. GET    .../{CERT_ID}/verify     → {r.json()}")

    # ── Step 6: revoking twice is rejected ──────────────────────────
    r = client.post(f"/v1/certificates/{CERT_ID}/revoke", headers=_auth(ADMIN))
    print(f"7. POST   .../{CERT_ID}/revoke     → {r.status_code}  {r.json()}")

    r = client.get("/v1/registry/certificate-count")
    print(f"8. GET    /v1/registry/certificate-count → {r.json()}")


if __name__ == "__main__":
    main()
