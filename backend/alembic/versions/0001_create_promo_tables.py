"""create stream, discount, gift and discount manager tables

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "streams",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finish", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=64), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "discounts",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("percent", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("percent_amount", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("percent >= 0 AND percent <= 100", name="ck_discounts_percent_range"),
        sa.CheckConstraint("amount >= 0", name="ck_discounts_amount_non_negative"),
    )

    op.create_table(
        "gifts",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("capacity", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("used >= 0 AND used <= capacity", name="ck_gifts_used_within_capacity"),
        sa.CheckConstraint("amount >= 0", name="ck_gifts_amount_non_negative"),
    )

    op.create_table(
        "discount_managers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("discount_id", sa.String(length=36), sa.ForeignKey("discounts.id"), nullable=True),
        sa.Column("gift_id", sa.String(length=36), sa.ForeignKey("gifts.id"), nullable=True),
        sa.Column("stream_id", sa.String(length=36), sa.ForeignKey("streams.id"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("discount_id", name="uq_discount_managers_discount_id"),
        sa.UniqueConstraint("gift_id", name="uq_discount_managers_gift_id"),
        sa.CheckConstraint(
            "(kind = 'discount' AND discount_id IS NOT NULL AND gift_id IS NULL)"
            " OR (kind = 'gift' AND gift_id IS NOT NULL AND discount_id IS NULL)",
            name="ck_discount_managers_single_target",
        ),
    )
    op.create_index("ix_discount_managers_code", "discount_managers", ["code"], unique=True)
    op.create_index("ix_discount_managers_stream_id", "discount_managers", ["stream_id"])


def downgrade() -> None:
    op.drop_index("ix_discount_managers_stream_id", table_name="discount_managers")
    op.drop_index("ix_discount_managers_code", table_name="discount_managers")
    op.drop_table("discount_managers")
    op.drop_table("gifts")
    op.drop_table("discounts")
    op.drop_table("streams")
