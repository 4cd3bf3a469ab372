"""create users table

Revision ID: 003
Revises: 002
Create Date: 2026-09-14 11:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_tenant_id", "users", ["tenant_id"], unique=False)

    # Get settings from environment (will be loaded by Alembic env.py)
    from pos.core.config import settings

    connection = op.get_bind()
    platform_role_result = connection.execute(
        sa.text("SELECT id FROM roles WHERE name = 'platform_admin'")
    ).fetchone()

    if not platform_role_result:
        raise ValueError("Platform admin role not found. Make sure migration 001 has been run.")

    # Insert the platform administrator, who belongs to no tenant
    op.execute(
        sa.text(
            """
            INSERT INTO users (email, name, role_id, tenant_id)
            VALUES (:email, :name, :role_id, NULL)
            """
        ).bindparams(
            email=settings.first_admin_email,
            name="Platform Admin",
            role_id=platform_role_result[0],
        )
    )


def downgrade() -> None:
    op.drop_index("ix_users_tenant_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
