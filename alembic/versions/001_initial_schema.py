"""Initial schema: users, quests, challenges and the two event tables.

Event tables hold one row per (user, target) pair; the surrogate id
keeps insertion order for listing.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(256), nullable=False),
    )

    op.create_table(
        "quests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("price", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("difficulty", sa.String(16), nullable=False, server_default="Normal"),
        sa.Column("num_participate", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("num_clear", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_ns", sa.BigInteger(), nullable=False),
    )
    op.execute(
        "ALTER TABLE quests ADD CONSTRAINT ck_quests_difficulty "
        "CHECK (difficulty IN ('Easy', 'Normal', 'Hard'))"
    )

    op.create_table(
        "challenges",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("created_ns", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("quest_id", sa.String(36), sa.ForeignKey("quests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("stamp_name", sa.String(200), nullable=True),
        sa.Column("stamp_image_color", sa.Text(), nullable=True),
        sa.Column("stamp_image_gray", sa.Text(), nullable=True),
        sa.Column("flavor_text", sa.Text(), nullable=True),
    )
    op.create_index("ix_challenges_quest_id", "challenges", ["quest_id"])

    op.create_table(
        "user_participating_quests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quest_id", sa.String(36), sa.ForeignKey("quests.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("user_id", "quest_id", name="unique_user_quest_pair"),
    )
    op.create_index("ix_user_participating_quests_user_id", "user_participating_quests", ["user_id"])

    op.create_table(
        "user_completed_challenges",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "challenge_id", sa.String(36), sa.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
        ),
        sa.UniqueConstraint("user_id", "challenge_id", name="unique_user_challenge_pair"),
    )
    op.create_index("ix_user_completed_challenges_user_id", "user_completed_challenges", ["user_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("user_completed_challenges")
    op.drop_table("user_participating_quests")
    op.drop_table("challenges")
    op.drop_table("quests")
    op.drop_table("users")
