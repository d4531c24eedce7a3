"""create teams, members and items tables

Revision ID: m1a2b3c4d5e6
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "m1a2b3c4d5e6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns(with_actor: bool) -> list[sa.Column]:
    columns: list[sa.Column] = [
        sa.Column("created_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_modified_date", sa.DateTime(timezone=True), nullable=True),
    ]
    if with_actor:
        columns += [
            sa.Column("created_by", sa.String(255), nullable=True),
            sa.Column("last_modified_by", sa.String(255), nullable=True),
        ]
    return columns


def upgrade() -> None:
    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        *_audit_columns(with_actor=True),
    )

    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id"), nullable=True),
        *_audit_columns(with_actor=True),
    )
    op.create_index("ix_members_username", "members", ["username"])

    # Items only track their creation date
    op.create_table(
        "items",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("created_date", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("items")
    op.drop_index("ix_members_username", table_name="members")
    op.drop_table("members")
    op.drop_table("teams")
