"""Create panels, breakers and devices tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Initial schema for panel mapping.
Notes:
    - breakers.position has no unique constraint; overlap-aware uniqueness
      ("3" vs "1-3") is enforced by the application inside the write
      transaction.
    - idx_breakers_panel_id backs the per-panel read done by every
      conflict check.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "panels",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("brand", sa.String(100), nullable=False, server_default=sa.text("'other'")),
        sa.Column("main_amperage", sa.Integer(), nullable=False, server_default=sa.text("200")),
        sa.Column("total_slots", sa.Integer(), nullable=False, server_default=sa.text("40")),
        sa.Column("columns", sa.Integer(), nullable=False, server_default=sa.text("2")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "breakers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("panel_id", sa.Uuid(), nullable=False),
        sa.Column(
            "position",
            sa.String(20),
            nullable=False,
            comment="Normalized token: '7', '1-3', '14A' (or transient '14A/14B')",
        ),
        sa.Column("amperage", sa.Integer(), nullable=False),
        sa.Column("poles", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column("circuit_type", sa.String(50), nullable=False, server_default=sa.text("'general'")),
        sa.Column("protection_type", sa.String(50), nullable=False, server_default=sa.text("'standard'")),
        sa.Column("is_on", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["panel_id"], ["panels.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_breakers_panel_id", "breakers", ["panel_id"])

    op.create_table(
        "devices",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("panel_id", sa.Uuid(), nullable=False),
        sa.Column("breaker_id", sa.Uuid(), nullable=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("is_gfci_protected", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["panel_id"], ["panels.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["breaker_id"], ["breakers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_devices_panel_id", "devices", ["panel_id"])
    op.create_index("idx_devices_breaker_id", "devices", ["breaker_id"])


def downgrade() -> None:
    op.drop_index("idx_devices_breaker_id", table_name="devices")
    op.drop_index("idx_devices_panel_id", table_name="devices")
    op.drop_table("devices")
    op.drop_index("idx_breakers_panel_id", table_name="breakers")
    op.drop_table("breakers")
    op.drop_table("panels")
