"""Add email verification columns to users

Revision ID: 005
Revises: 004
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "005"
down_revision: str | None = "004"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()))
        batch_op.add_column(sa.Column("verification_token", sa.String(length=64), nullable=True))
        batch_op.add_column(sa.Column("verification_expires_at", sa.DateTime(), nullable=True))
        batch_op.create_index(op.f("ix_users_verification_token"), ["verification_token"], unique=False)


def downgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_index(op.f("ix_users_verification_token"))
        batch_op.drop_column("verification_expires_at")
        batch_op.drop_column("verification_token")
        batch_op.drop_column("email_verified")
