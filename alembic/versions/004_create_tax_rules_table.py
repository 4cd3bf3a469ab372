"""create tax rules table

Revision ID: 004
Revises: 003
Create Date: 2026-09-15 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "tax_rules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("rate", sa.Numeric(7, 4), nullable=False),
        sa.Column("label", sa.String(64), nullable=False, server_default="Tax"),
        sa.Column("applies_to", sa.String(16), nullable=False, server_default="all"),
        sa.Column("category_ids", sa.JSON(), nullable=False),
        sa.Column("product_ids", sa.JSON(), nullable=False),
        sa.Column("region_country", sa.String(64), nullable=True),
        sa.Column("region_state", sa.String(64), nullable=True),
        sa.Column("region_city", sa.String(128), nullable=True),
        sa.Column("region_zip_codes", sa.JSON(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.CheckConstraint("rate >= 0 AND rate <= 100", name="ck_tax_rules_rate_range"),
        sa.CheckConstraint("priority >= 0", name="ck_tax_rules_priority_non_negative"),
        sa.CheckConstraint(
            "applies_to IN ('all', 'products', 'services', 'categories')",
            name="ck_tax_rules_applies_to",
        ),
    )
    op.create_index("ix_tax_rules_id", "tax_rules", ["id"], unique=False)
    op.create_index("ix_tax_rules_tenant_id", "tax_rules", ["tenant_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_tax_rules_tenant_id", table_name="tax_rules")
    op.drop_index("ix_tax_rules_id", table_name="tax_rules")
    op.drop_table("tax_rules")
