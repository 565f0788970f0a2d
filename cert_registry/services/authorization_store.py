"""Administrator and issuer-set bookkeeping.

The administrator is set once by ``initialize`` and is always an issuer.
Only the administrator may add or remove issuers; anyone may ask whether
an address is an issuer.
"""

from __future__ import annotations

import logging

from cert_registry.core.errors import (
    AlreadyInitialized,
    AuthenticationFailed,
    NotInitialized,
    RegistryError,
    Unauthorized,
)
from cert_registry.core.metrics import ISSUER_CHANGES, REGISTRY_REJECTIONS
from cert_registry.repos.registry_store import (
    ADMIN_KEY,
    RegistryStore,
    StoreTransaction,
    issuer_key,
)
from cert_registry.services.authentication import Authenticator

logger = logging.getLogger(__name__)


def _reject(operation: str, error: RegistryError) -> RegistryError:
    REGISTRY_REJECTIONS.labels(operation=operation, code=error.code).inc()
    logger.warning("Rejected %s: %s", operation, error.code)
    return error


class AuthorizationStore:
    def __init__(self, store: RegistryStore) -> None:
        self._store = store

    async def initialize(self, auth: Authenticator, admin: str) -> None:
        async with self._store.transaction() as tx:
            if await tx.has(ADMIN_KEY):
                raise _reject("initialize", AlreadyInitialized())
            if not admin or not auth.verify(admin):
                raise _reject("initialize", AuthenticationFailed())

            await tx.set(ADMIN_KEY, admin)
            await tx.set(issuer_key(admin), True)

        logger.info("Registry initialized admin=%s", admin)

    async def add_issuer(self, auth: Authenticator, issuer: str) -> None:
        async with self._store.transaction() as tx:
            await self._require_admin(tx, auth, "add_issuer")
            await tx.set(issuer_key(issuer), True)

        ISSUER_CHANGES.labels(action="add").inc()
        logger.info("Issuer added issuer=%s", issuer)

    async def remove_issuer(self, auth: Authenticator, issuer: str) -> None:
        async with self._store.transaction() as tx:
            await self._require_admin(tx, auth, "remove_issuer")
            await tx.remove(issuer_key(issuer))

        ISSUER_CHANGES.labels(action="remove").inc()
        logger.info("Issuer removed issuer=%s", issuer)

    async def is_issuer(self, issuer: str) -> bool:
        async with self._store.transaction() as tx:
            return await self.is_issuer_in(tx, issuer)

    async def get_admin(self) -> str:
        async with self._store.transaction() as tx:
            admin = await tx.get(ADMIN_KEY)
        if admin is None:
            raise NotInitialized()
        return admin

    # --- helpers shared with CertificateRegistry (same transaction) ---

    @staticmethod
    async def is_issuer_in(tx: StoreTransaction, issuer: str) -> bool:
        return bool(await tx.get(issuer_key(issuer)))

    @staticmethod
    async def admin_in(tx: StoreTransaction) -> str:
        admin = await tx.get(ADMIN_KEY)
        if admin is None:
            raise NotInitialized()
        return admin

    async def _require_admin(
        self, tx: StoreTransaction, auth: Authenticator, operation: str
    ) -> str:
        try:
            admin = await self.admin_in(tx)
        except NotInitialized as e:
            raise _reject(operation, e) from None
        if not auth.verify(admin):
            raise _reject(operation, Unauthorized())
        return admin
