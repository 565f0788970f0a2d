from __future__ import annotations

import asyncio

import pytest

from cert_registry.core.errors import (
    AlreadyInitialized,
    AuthenticationFailed,
    NotInitialized,
    Unauthorized,
)
from cert_registry.repos.registry_store import InMemoryRegistryStore
from cert_registry.services.authorization_store import AuthorizationStore
from tests.conftest import ADMIN, ISSUER, STRANGER, FakeAuthenticator


@pytest.fixture
def authz() -> AuthorizationStore:
    return AuthorizationStore(InMemoryRegistryStore())


def _initialized(authz: AuthorizationStore) -> AuthorizationStore:
    asyncio.run(authz.initialize(FakeAuthenticator(ADMIN), ADMIN))
    return authz


# ---- initialize ----


def test_initialize_sets_admin_and_makes_it_an_issuer(authz: AuthorizationStore) -> None:
    _initialized(authz)
    assert asyncio.run(authz.get_admin()) == ADMIN
    assert asyncio.run(authz.is_issuer(ADMIN)) is True


def test_initialize_twice_is_rejected(authz: AuthorizationStore) -> None:
    _initialized(authz)
    with pytest.raises(AlreadyInitialized):
        asyncio.run(authz.initialize(FakeAuthenticator(STRANGER), STRANGER))
    assert asyncio.run(authz.get_admin()) == ADMIN


def test_initialize_requires_admin_authentication(authz: AuthorizationStore) -> None:
    with pytest.raises(AuthenticationFailed):
        asyncio.run(authz.initialize(FakeAuthenticator(STRANGER), ADMIN))
    with pytest.raises(NotInitialized):
        asyncio.run(authz.get_admin())


def test_initialize_rejects_empty_admin(authz: AuthorizationStore) -> None:
    with pytest.raises(AuthenticationFailed):
        asyncio.run(authz.initialize(FakeAuthenticator(""), ""))


def test_already_initialized_takes_precedence_over_authentication(
    authz: AuthorizationStore,
) -> None:
    _initialized(authz)
    with pytest.raises(AlreadyInitialized):
        asyncio.run(authz.initialize(FakeAuthenticator(), STRANGER))


# ---- issuer management ----


def test_add_issuer_by_admin(authz: AuthorizationStore) -> None:
    _initialized(authz)
    asyncio.run(authz.add_issuer(FakeAuthenticator(ADMIN), ISSUER))
    assert asyncio.run(authz.is_issuer(ISSUER)) is True


def test_add_issuer_is_idempotent(authz: AuthorizationStore) -> None:
    _initialized(authz)
    asyncio.run(authz.add_issuer(FakeAuthenticator(ADMIN), ISSUER))
    asyncio.run(authz.add_issuer(FakeAuthenticator(ADMIN), ISSUER))
    assert asyncio.run(authz.is_issuer(ISSUER)) is True


def test_add_issuer_by_non_admin_is_rejected(authz: AuthorizationStore) -> None:
    _initialized(authz)
    with pytest.raises(Unauthorized):
        asyncio.run(authz.add_issuer(FakeAuthenticator(STRANGER), ISSUER))
    assert asyncio.run(authz.is_issuer(ISSUER)) is False


def test_add_issuer_before_initialize_is_rejected(authz: AuthorizationStore) -> None:
    with pytest.raises(NotInitialized):
        asyncio.run(authz.add_issuer(FakeAuthenticator(ADMIN), ISSUER))


def test_remove_issuer_by_admin(authz: AuthorizationStore) -> None:
    _initialized(authz)
    asyncio.run(authz.add_issuer(FakeAuthenticator(ADMIN), ISSUER))
    asyncio.run(authz.remove_issuer(FakeAuthenticator(ADMIN), ISSUER))
    assert asyncio.run(authz.is_issuer(ISSUER)) is False


def test_remove_unknown_issuer_is_a_no_op(authz: AuthorizationStore) -> None:
    _initialized(authz)
    asyncio.run(authz.remove_issuer(FakeAuthenticator(ADMIN), STRANGER))
    assert asyncio.run(authz.is_issuer(STRANGER)) is False


def test_remove_issuer_by_non_admin_is_rejected(authz: AuthorizationStore) -> None:
    _initialized(authz)
    asyncio.run(authz.add_issuer(FakeAuthenticator(ADMIN), ISSUER))
    with pytest.raises(Unauthorized):
        asyncio.run(authz.remove_issuer(FakeAuthenticator(ISSUER), ISSUER))
    assert asyncio.run(authz.is_issuer(ISSUER)) is True


def test_admin_can_remove_itself_from_issuers(authz: AuthorizationStore) -> None:
    _initialized(authz)
    asyncio.run(authz.remove_issuer(FakeAuthenticator(ADMIN), ADMIN))
    assert asyncio.run(authz.is_issuer(ADMIN)) is False
    assert asyncio.run(authz.get_admin()) == ADMIN


# ---- queries ----


def test_is_issuer_false_for_unknown_address(authz: AuthorizationStore) -> None:
    assert asyncio.run(authz.is_issuer(STRANGER)) is False


def test_get_admin_before_initialize_raises(authz: AuthorizationStore) -> None:
    with pytest.raises(NotInitialized):
        asyncio.run(authz.get_admin())
