"""create resources, availability windows and blockouts

Revision ID: 20261012_02
Revises: 20261012_01
Create Date: 2026-10-12 09:20:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261012_02"
down_revision: Union[str, None] = "20261012_01"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "resources",
        sa.Column("id", sa.Integer(), sa.Identity(), primary_key=True, nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False, server_default="professional"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_resources_id", "resources", ["id"], unique=False)
    op.create_index("ix_resources_tenant_id", "resources", ["tenant_id"], unique=False)

    op.create_table(
        "availability_windows",
        sa.Column("id", sa.Integer(), sa.Identity(), primary_key=True, nullable=False),
        sa.Column("resource_id", sa.Integer(), nullable=False),
        sa.Column("day_of_week", sa.String(length=9), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.ForeignKeyConstraint(["resource_id"], ["resources.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("resource_id", "day_of_week", name="uq_availability_windows_resource_day"),
    )
    op.create_index("ix_availability_windows_id", "availability_windows", ["id"], unique=False)
    op.create_index("ix_availability_windows_resource_id", "availability_windows", ["resource_id"], unique=False)

    op.create_table(
        "blockouts",
        sa.Column("id", sa.Integer(), sa.Identity(), primary_key=True, nullable=False),
        sa.Column("resource_id", sa.Integer(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["resource_id"], ["resources.id"], ondelete="CASCADE"),
        sa.CheckConstraint("start_at < end_at", name="ck_blockouts_interval"),
    )
    op.create_index("ix_blockouts_id", "blockouts", ["id"], unique=False)
    op.create_index("ix_blockouts_resource_id", "blockouts", ["resource_id"], unique=False)
    op.create_index("ix_blockouts_start_at", "blockouts", ["start_at"], unique=False)
    op.create_index("ix_blockouts_end_at", "blockouts", ["end_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_blockouts_end_at", table_name="blockouts")
    op.drop_index("ix_blockouts_start_at", table_name="blockouts")
    op.drop_index("ix_blockouts_resource_id", table_name="blockouts")
    op.drop_index("ix_blockouts_id", table_name="blockouts")
    op.drop_table("blockouts")
    op.drop_index("ix_availability_windows_resource_id", table_name="availability_windows")
    op.drop_index("ix_availability_windows_id", table_name="availability_windows")
    op.drop_table("availability_windows")
    op.drop_index("ix_resources_tenant_id", table_name="resources")
    op.drop_index("ix_resources_id", table_name="resources")
    op.drop_table("resources")
