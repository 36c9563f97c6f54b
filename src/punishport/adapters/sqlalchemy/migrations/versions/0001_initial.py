"""Create punishment and import provenance tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_PUNISHMENT_TYPES = ("BAN", "MUTE", "WARN", "KICK")
_SCOPE_KINDS = ("GLOBAL", "SERVER", "CATEGORY")
_STATES = ("ACTIVE", "EXPIRED", "UNDONE")
_VICTIM_TYPES = ("PLAYER", "ADDRESS", "COMPOSITE", "UNRESOLVED")
_OPERATOR_TYPES = ("PLAYER", "CONSOLE", "UNKNOWN")


def _enum(*values: str, name: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False)


def upgrade() -> None:
    op.create_table(
        "punishment",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type", _enum(*_PUNISHMENT_TYPES, name="punishmenttype"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("scope_kind", _enum(*_SCOPE_KINDS, name="scopekind"), nullable=False),
        sa.Column("scope_value", sa.String(), nullable=True),
        sa.Column("start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("state", _enum(*_STATES, name="enforcementstate"), nullable=True),
        sa.Column("victim_type", _enum(*_VICTIM_TYPES, name="victimtype"), nullable=False),
        sa.Column("victim_uuid", sa.Uuid(), nullable=True),
        sa.Column("victim_address", sa.String(length=64), nullable=True),
        sa.Column("victim_name", sa.String(), nullable=True),
        sa.Column("operator_type", _enum(*_OPERATOR_TYPES, name="operatortype"), nullable=False),
        sa.Column("operator_uuid", sa.Uuid(), nullable=True),
        sa.Column("operator_name", sa.String(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_punishment"),
    )
    op.create_index(
        "ix_punishment_victim",
        "punishment",
        ["victim_type", "victim_uuid", "victim_address", "type"],
    )
    op.create_table(
        "import_provenance",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("native_id", sa.String(), nullable=False),
        sa.Column("entry_id", sa.Integer(), nullable=False),
        sa.Column("fingerprint", sa.String(length=64), nullable=False),
        sa.Column("imported_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_import_provenance"),
        sa.ForeignKeyConstraint(
            ["entry_id"],
            ["punishment.id"],
            name="fk_import_provenance_entry_id_punishment",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("source", "native_id", name="uq_import_provenance_native"),
    )
    op.create_index(
        "ix_import_provenance_entry_id", "import_provenance", ["entry_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_import_provenance_entry_id", table_name="import_provenance")
    op.drop_table("import_provenance")
    op.drop_index("ix_punishment_victim", table_name="punishment")
    op.drop_table("punishment")
