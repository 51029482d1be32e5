# =======================================================================================
# qr_access/models/tables.py - Table Definitions
# =======================================================================================
from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

identities = Table(
    "identities",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("display_name", String(255), nullable=False),
    Column("valid_until", Date, nullable=True),
    # one live credential per identity, never shared
    Column("credential", String(64), nullable=True, unique=True),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

# Sole source of admin privilege; no flag on identities mirrors it.
role_memberships = Table(
    "role_memberships",
    metadata,
    Column("identity_id", String(64), primary_key=True),
    Column("display_name", String(255), nullable=False),
    Column("last_activity_at", DateTime, nullable=True),
    Column("created_at", DateTime, nullable=False),
)

# Append-only: rows are inserted by the scan validator and never modified.
scan_events = Table(
    "scan_events",
    metadata,
    Column("id", String(36), primary_key=True),
    Column(
        "identity_id",
        String(64),
        ForeignKey("identities.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("scan_kind", String(8), nullable=False),
    Column("actor", String(255), nullable=False),
    Column("location", String(255), nullable=False),
    Column("note", Text, nullable=True),
    Column("occurred_at", DateTime, nullable=False),
    Index("ix_scan_events_identity_time", "identity_id", "occurred_at"),
    Index("ix_scan_events_occurred_at", "occurred_at"),
)
