"""initial_schema

Revision ID: 5c1e9a7d3b20
Revises:
Create Date: 2026-10-19 10:12:41.502113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e9a7d3b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("owner_id", sa.String(length=32), nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("profile_image_url", sa.Text(), nullable=True),
        sa.Column("show_books_to_friends", sa.Boolean(), nullable=False),
        sa.Column("show_lists_to_friends", sa.Boolean(), nullable=False),
        sa.Column("private_tag", sa.String(length=255), nullable=True),
        sa.Column("theme_preference", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("owner_id"),
    )
    op.create_index("ix_profiles_username", "profiles", ["username"], unique=True)

    op.create_table(
        "books",
        sa.Column("owner_id", sa.String(length=32), nullable=False),
        sa.Column("id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("authors", sa.JSON(), nullable=False),
        sa.Column("isbn", sa.String(length=32), nullable=True),
        sa.Column("cover_url", sa.Text(), nullable=True),
        sa.Column("publisher", sa.Text(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("finished_month", sa.String(length=7), nullable=True),
        sa.Column("release_year", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("owner_id", "id"),
    )
    op.create_index("ix_books_title", "books", ["title"])
    op.create_index("ix_books_owner_created", "books", ["owner_id", "created_at"])

    op.create_table(
        "book_lists",
        sa.Column("owner_id", sa.String(length=32), nullable=False),
        sa.Column("id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("cover_url", sa.Text(), nullable=True),
        sa.Column("book_ids", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("owner_id", "id"),
    )

    op.create_table(
        "friend_requests",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("from_user_id", sa.String(length=32), nullable=False),
        sa.Column("from_username", sa.String(length=64), nullable=False),
        sa.Column("to_user_id", sa.String(length=32), nullable=False),
        sa.Column("to_username", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined')",
            name="ck_friend_requests_status",
        ),
        sa.ForeignKeyConstraint(["from_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["to_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_friend_requests_to_status", "friend_requests", ["to_user_id", "status"])
    op.create_index("ix_friend_requests_from_status", "friend_requests", ["from_user_id", "status"])

    op.create_table(
        "friendships",
        sa.Column("id", sa.String(length=80), nullable=False),
        sa.Column("user1_id", sa.String(length=32), nullable=False),
        sa.Column("user1_username", sa.String(length=64), nullable=False),
        sa.Column("user2_id", sa.String(length=32), nullable=False),
        sa.Column("user2_username", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user1_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user2_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_friendships_user1_id", "friendships", ["user1_id"])
    op.create_index("ix_friendships_user2_id", "friendships", ["user2_id"])


def downgrade() -> None:
    op.drop_table("friendships")
    op.drop_table("friend_requests")
    op.drop_table("book_lists")
    op.drop_table("books")
    op.drop_table("profiles")
    op.drop_table("users")
