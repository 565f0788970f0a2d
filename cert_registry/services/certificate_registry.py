"""Certificate issuance, lookup, revocation and verification.

Per-certificate state machine:

    (none) --issue--> active --revoke--> revoked

``revoked`` is terminal and ``expired`` is never entered.  Records are
never deleted and ids are never reused, so the issued-count always equals
the number of ids ever issued.

Every mutating operation runs its checks and writes inside one store
transaction and publishes its event only after that transaction has
committed: a rejected operation leaves no record, no counter change and
no event.
"""

from __future__ import annotations

import logging

from cert_registry.core.errors import (
    AlreadyExists,
    AlreadyRevoked,
    AuthenticationFailed,
    InvalidData,
    NotFound,
    RegistryError,
    Unauthorized,
)
from cert_registry.core.metrics import (
    CERTIFICATE_VERIFICATIONS,
    CERTIFICATES_ISSUED,
    CERTIFICATES_REVOKED,
    REGISTRY_REJECTIONS,
)
from cert_registry.models.certificate import Certificate, CertificateMetadata
from cert_registry.models.events import CertificateIssued, CertificateRevoked
from cert_registry.repos.registry_store import (
    CERTIFICATE_COUNT_KEY,
    RegistryStore,
    certificate_key,
    recipient_index_key,
)
from cert_registry.services.authentication import Authenticator
from cert_registry.services.authorization_store import AuthorizationStore
from cert_registry.services.clock import Clock, SystemClock
from cert_registry.services.event_sink import EventSink

logger = logging.getLogger(__name__)


def _reject(operation: str, error: RegistryError, certificate_id: str) -> RegistryError:
    REGISTRY_REJECTIONS.labels(operation=operation, code=error.code).inc()
    logger.warning(
        "Rejected %s certificate=%s: %s",
        operation,
        certificate_id,
        error.code,
        extra={"certificate_id": certificate_id},
    )
    return error


def _validate_issue(
    certificate_id: str, recipient: str, metadata: CertificateMetadata
) -> None:
    # Ids and recipients are single URL path segments in the HTTP API.
    if not certificate_id:
        raise InvalidData("certificate id must be non-empty")
    if "/" in certificate_id:
        raise InvalidData("certificate id must not contain '/'")
    if "/" in recipient:
        raise InvalidData("recipient must not contain '/'")
    if not metadata.title:
        raise InvalidData("title must be non-empty")
    if not metadata.course_name:
        raise InvalidData("course_name must be non-empty")


class CertificateRegistry:
    def __init__(
        self,
        store: RegistryStore,
        authorization: AuthorizationStore,
        events: EventSink,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._authorization = authorization
        self._events = events
        self._clock = clock or SystemClock()

    async def issue_certificate(
        self,
        auth: Authenticator,
        certificate_id: str,
        issuer: str,
        recipient: str,
        metadata: CertificateMetadata,
    ) -> Certificate:
        """Create an active certificate and bump the issued-count.

        Checks run in a fixed order so the reported error is deterministic:
        caller authentication, issuer membership, id uniqueness, metadata.
        """
        if not auth.verify(issuer):
            raise _reject("issue", AuthenticationFailed(), certificate_id)

        async with self._store.transaction() as tx:
            if not await AuthorizationStore.is_issuer_in(tx, issuer):
                raise _reject("issue", Unauthorized(), certificate_id)

            key = certificate_key(certificate_id)
            if await tx.has(key):
                raise _reject("issue", AlreadyExists(), certificate_id)

            try:
                _validate_issue(certificate_id, recipient, metadata)
            except InvalidData as e:
                raise _reject("issue", e, certificate_id) from None

            certificate = Certificate.new(
                id=certificate_id,
                issuer=issuer,
                recipient=recipient,
                metadata=metadata,
                issued_at=self._clock.now(),
            )
            await tx.set(key, certificate)

            count = await tx.get(CERTIFICATE_COUNT_KEY) or 0
            await tx.set(CERTIFICATE_COUNT_KEY, count + 1)

            index_key = recipient_index_key(recipient)
            ids = await tx.get(index_key) or ()
            await tx.set(index_key, (*ids, certificate_id))

        CERTIFICATES_ISSUED.inc()
        logger.info(
            "Certificate issued certificate=%s issuer=%s recipient=%s",
            certificate_id,
            issuer,
            recipient,
            extra={"certificate_id": certificate_id},
        )

        await self._events.publish(
            CertificateIssued(
                id=certificate.id,
                issuer=certificate.issuer,
                recipient=certificate.recipient,
                issued_at=certificate.issued_at,
            )
        )
        return certificate

    async def get_certificate(self, certificate_id: str) -> Certificate:
        async with self._store.transaction() as tx:
            certificate = await tx.get(certificate_key(certificate_id))
        if certificate is None:
            raise NotFound()
        return certificate

    async def revoke_certificate(
        self, auth: Authenticator, certificate_id: str, revoker: str
    ) -> None:
        """Move an active certificate to revoked.

        Order: caller authentication, existence, already-revoked, then
        revoker role (the certificate's issuer or the administrator).
        """
        if not auth.verify(revoker):
            raise _reject("revoke", AuthenticationFailed(), certificate_id)

        async with self._store.transaction() as tx:
            key = certificate_key(certificate_id)
            certificate = await tx.get(key)
            if certificate is None:
                raise _reject("revoke", NotFound(), certificate_id)

            if not certificate.is_active:
                raise _reject("revoke", AlreadyRevoked(), certificate_id)

            admin = await AuthorizationStore.admin_in(tx)
            if revoker != certificate.issuer and revoker != admin:
                raise _reject("revoke", Unauthorized(), certificate_id)

            await tx.set(key, certificate.revoked())

        revoked_at = self._clock.now()
        CERTIFICATES_REVOKED.inc()
        logger.info(
            "Certificate revoked certificate=%s by=%s",
            certificate_id,
            revoker,
            extra={"certificate_id": certificate_id},
        )

        await self._events.publish(
            CertificateRevoked(
                id=certificate_id,
                revoked_by=revoker,
                revoked_at=revoked_at,
            )
        )

    async def verify_certificate(self, certificate_id: str) -> bool:
        """True iff the certificate exists and is active.  Never raises a RegistryError."""
        try:
            certificate = await self.get_certificate(certificate_id)
        except NotFound:
            valid = False
        except RegistryError as e:
            logger.warning(
                "Verification lookup failed certificate=%s: %s",
                certificate_id,
                e.code,
                extra={"certificate_id": certificate_id},
            )
            valid = False
        else:
            valid = certificate.is_active

        CERTIFICATE_VERIFICATIONS.labels(result="valid" if valid else "invalid").inc()
        return valid

    async def get_certificate_count(self) -> int:
        async with self._store.transaction() as tx:
            return await tx.get(CERTIFICATE_COUNT_KEY) or 0

    async def get_certificates_by_recipient(self, recipient: str) -> list[str]:
        """Ids issued to ``recipient`` in issuance order, revoked ones included."""
        async with self._store.transaction() as tx:
            ids = await tx.get(recipient_index_key(recipient)) or ()
        return list(ids)
