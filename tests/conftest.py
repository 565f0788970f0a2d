from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from cert_registry.main import app
from cert_registry.services import token_service
from cert_registry.services.registry import registry_store
from cert_registry.services.task_queue import task_queue

# Ensure repo root is on sys.path so `import cert_registry` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

ADMIN = "GADMIN"
ISSUER = "GISSUER"
OTHER_ISSUER = "GISSUER2"
RECIPIENT = "GRECIPIENT"
STRANGER = "GSTRANGER"


@pytest.fixture(autouse=True)
def reset_registry_store() -> None:
    """Clear the in-memory registry between tests."""
    if hasattr(registry_store, "_data"):
        registry_store._data.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    """Clear task queues between tests."""
    if hasattr(task_queue, "_queues"):
        task_queue._queues.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(address: str = ADMIN) -> str:
    """Create a valid ES256 JWT whose subject is ``address``."""
    return token_service.create_access_token(sub=address)


def auth_header(address: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(address)}"}


class ManualClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: int = 1_700_000_000) -> None:
        self._now = now

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> None:
        self._now += seconds


class FakeAuthenticator:
    """Verifies exactly the addresses it was given."""

    def __init__(self, *addresses: str) -> None:
        self._addresses = set(addresses)

    def verify(self, address: str) -> bool:
        return address in self._addresses


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------


def sample_metadata(**overrides) -> dict:
    metadata = {
        "title": "Blockchain Developer",
        "course_name": "Advanced Blockchain",
        "description": "Completed blockchain development course",
        "completion_date": 1704067200,
        "external_reference": "QmTest123",
    }
    metadata.update(overrides)
    return metadata


def setup_registry(client: TestClient, *issuers: str) -> None:
    """Initialize with ADMIN and authorize ``issuers``."""
    resp = client.post(
        "/v1/registry/initialize", json={"admin": ADMIN}, headers=auth_header(ADMIN)
    )
    assert resp.status_code == 201
    for issuer in issuers:
        resp = client.put(f"/v1/registry/issuers/{issuer}", headers=auth_header(ADMIN))
        assert resp.status_code == 200
