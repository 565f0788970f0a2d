"""SQLAlchemy table definitions.

The registry persists typed key-value records (see repos/registry_store.py),
so there is a single table keyed by (kind, ident).  The domain dataclasses
in cert_registry/models/ stay as-is; PgRegistryStore converts between rows
and domain objects.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from cert_registry.db.engine import Base


class RegistryEntryRow(Base):
    __tablename__ = "registry_entries"

    kind: Mapped[str] = mapped_column(
        String(32), primary_key=True
    )  # certificate|issuer|admin|certificate_count|recipient_index
    ident: Mapped[str] = mapped_column(
        Text, primary_key=True, default=""
    )  # certificate id or address, any length; empty for singletons
    value: Mapped[Any] = mapped_column(JSONB, nullable=False)

    __table_args__ = (Index("ix_registry_entries_kind", "kind"),)
