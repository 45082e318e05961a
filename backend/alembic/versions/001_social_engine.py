# backend/alembic/versions/001_social_engine.py
"""Social engine - users, trips, follows, matches, trip requests, messaging, feed

Revision ID: 001_social_engine
Revises:
Create Date: 2026-10-16 00:00:00.000000

Creates the relationship store. ``users``, ``trips`` and ``trip_likes`` are
owned by the profile and trip layers; they are created here so the engine's
foreign keys and read paths have something to point at.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_social_engine"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EVENT_TYPES = (
    "new_photo",
    "new_trip",
    "joined_trip",
    "left_trip",
    "new_review",
    "follow",
    "like_on_post",
    "comment_on_post",
)


def _ulid(name: str = "id", **kwargs) -> sa.Column:
    return sa.Column(name, sa.String(26), **kwargs)


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False))
    return columns


def _user_fk(name: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name,
        sa.String(26),
        sa.ForeignKey("users.id", ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    """Create the relationship store tables."""
    print("Creating social engine schema...")

    op.create_table(
        "users",
        _ulid(primary_key=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("profile_photo", sa.String(500), nullable=True),
        sa.Column("deactivated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "onboarding_completed", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("travel_preferences", sa.JSON(), nullable=False),
        sa.Column("budget_preference", sa.String(50), nullable=True),
        sa.Column("last_checked_notifications_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verification_status", sa.String(20), nullable=True),
        sa.Column(
            "verification_outcome_notified_at", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column(
            "verification_outcome_dismissed",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        *_timestamps(),
    )
    op.create_index(
        "idx_users_onboarding_active", "users", ["onboarding_completed", "deactivated"]
    )

    op.create_table(
        "trips",
        _ulid(primary_key=True),
        _user_fk("owner_id"),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("max_group_size", sa.Integer(), nullable=True),
        sa.Column("current_group_size", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("current_group_size >= 0", name="ck_trips_group_size_non_negative"),
    )
    op.create_index("idx_trips_owner", "trips", ["owner_id"])

    op.create_table(
        "trip_members",
        _ulid(primary_key=True),
        sa.Column(
            "trip_id",
            sa.String(26),
            sa.ForeignKey("trips.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("user_id"),
        sa.Column("role", sa.String(10), nullable=False, server_default="member"),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("trip_id", "user_id", name="uq_trip_members_trip_user"),
        sa.CheckConstraint("role IN ('owner', 'member')", name="ck_trip_members_role"),
    )
    op.create_index("idx_trip_members_user", "trip_members", ["user_id"])

    op.create_table(
        "trip_likes",
        _ulid(primary_key=True),
        sa.Column(
            "trip_id",
            sa.String(26),
            sa.ForeignKey("trips.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("user_id"),
        *_timestamps(updated=False),
        sa.UniqueConstraint("trip_id", "user_id", name="uq_trip_likes_trip_user"),
    )

    op.create_table(
        "follows",
        sa.Column(
            "follower_id",
            sa.String(26),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "following_id",
            sa.String(26),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("status", sa.String(10), nullable=False, server_default="pending"),
        sa.Column(
            "dismissed_by_follower", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        *_timestamps(),
        sa.CheckConstraint("follower_id <> following_id", name="ck_follows_not_self"),
        sa.CheckConstraint("status IN ('pending', 'accepted')", name="ck_follows_status"),
    )
    op.create_index("idx_follows_following_status", "follows", ["following_id", "status"])

    op.create_table(
        "matches",
        _ulid(primary_key=True),
        _user_fk("user_id_low"),
        _user_fk("user_id_high"),
        sa.Column("status", sa.String(10), nullable=False, server_default="pending"),
        _user_fk("initiated_by"),
        sa.Column("dismissed_by_low", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("dismissed_by_high", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("user_id_low", "user_id_high", name="uq_matches_pair"),
        sa.CheckConstraint("user_id_low < user_id_high", name="ck_matches_canonical_order"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'expired')", name="ck_matches_status"
        ),
    )
    op.create_index("idx_matches_high", "matches", ["user_id_high"])

    op.create_table(
        "trip_requests",
        _ulid(primary_key=True),
        sa.Column(
            "trip_id",
            sa.String(26),
            sa.ForeignKey("trips.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("user_id"),
        sa.Column("status", sa.String(10), nullable=False, server_default="pending"),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("dismissed", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("trip_id", "user_id", name="uq_trip_requests_trip_user"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'expired')",
            name="ck_trip_requests_status",
        ),
    )
    op.create_index("idx_trip_requests_trip_status", "trip_requests", ["trip_id", "status"])
    op.create_index("idx_trip_requests_user", "trip_requests", ["user_id"])

    op.create_table(
        "direct_conversations",
        _ulid(primary_key=True),
        _user_fk("user_id_low"),
        _user_fk("user_id_high"),
        sa.Column("status", sa.String(10), nullable=False, server_default="request"),
        sa.Column("last_message_id", sa.String(26), nullable=True),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("low_last_read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("high_last_read_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id_low", "user_id_high", name="uq_direct_conversations_pair"),
        sa.CheckConstraint("user_id_low < user_id_high", name="ck_direct_conversations_order"),
        sa.CheckConstraint(
            "status IN ('request', 'active')", name="ck_direct_conversations_status"
        ),
    )
    op.create_index("idx_direct_conversations_high", "direct_conversations", ["user_id_high"])
    op.create_index(
        "idx_direct_conversations_last_message", "direct_conversations", ["last_message_at"]
    )

    op.create_table(
        "direct_messages",
        _ulid(primary_key=True),
        sa.Column(
            "conversation_id",
            sa.String(26),
            sa.ForeignKey("direct_conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("sender_id"),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index(
        "idx_direct_messages_conversation_created",
        "direct_messages",
        ["conversation_id", "created_at"],
    )

    op.create_table(
        "blocks",
        _ulid(primary_key=True),
        _user_fk("blocker_id"),
        _user_fk("blocked_id"),
        sa.Column("block_type", sa.String(10), nullable=False, server_default="dm"),
        *_timestamps(updated=False),
        sa.UniqueConstraint("blocker_id", "blocked_id", "block_type", name="uq_blocks_pair_type"),
        sa.CheckConstraint("block_type IN ('dm', 'profile')", name="ck_blocks_type"),
        sa.CheckConstraint("blocker_id <> blocked_id", name="ck_blocks_not_self"),
    )

    op.create_table(
        "activity_events",
        _ulid(primary_key=True),
        _user_fk("user_id"),
        sa.Column("event_type", sa.String(20), nullable=False),
        sa.Column("related_id", sa.String(26), nullable=True),
        _user_fk("target_user_id", nullable=True, ondelete="SET NULL"),
        sa.Column("event_data", sa.JSON(), nullable=True),
        sa.Column("like_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("comment_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(updated=False),
        sa.CheckConstraint(
            "event_type IN (" + ", ".join(f"'{t}'" for t in EVENT_TYPES) + ")",
            name="ck_activity_events_type",
        ),
        sa.CheckConstraint("like_count >= 0", name="ck_activity_events_likes"),
        sa.CheckConstraint("comment_count >= 0", name="ck_activity_events_comments"),
    )
    op.create_index(
        "idx_activity_events_user_created", "activity_events", ["user_id", "created_at"]
    )

    op.create_table(
        "activity_likes",
        _ulid(primary_key=True),
        sa.Column(
            "event_id",
            sa.String(26),
            sa.ForeignKey("activity_events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("user_id"),
        *_timestamps(updated=False),
        sa.UniqueConstraint("event_id", "user_id", name="uq_activity_likes_event_user"),
    )

    op.create_table(
        "activity_comments",
        _ulid(primary_key=True),
        sa.Column(
            "event_id",
            sa.String(26),
            sa.ForeignKey("activity_events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("user_id"),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("idx_activity_comments_event", "activity_comments", ["event_id"])

    print("Social engine schema created.")


def downgrade() -> None:
    """Drop the relationship store tables in reverse dependency order."""
    print("Dropping social engine schema...")

    op.drop_index("idx_activity_comments_event", table_name="activity_comments")
    op.drop_table("activity_comments")
    op.drop_table("activity_likes")
    op.drop_index("idx_activity_events_user_created", table_name="activity_events")
    op.drop_table("activity_events")
    op.drop_table("blocks")
    op.drop_index("idx_direct_messages_conversation_created", table_name="direct_messages")
    op.drop_table("direct_messages")
    op.drop_index("idx_direct_conversations_last_message", table_name="direct_conversations")
    op.drop_index("idx_direct_conversations_high", table_name="direct_conversations")
    op.drop_table("direct_conversations")
    op.drop_index("idx_trip_requests_user", table_name="trip_requests")
    op.drop_index("idx_trip_requests_trip_status", table_name="trip_requests")
    op.drop_table("trip_requests")
    op.drop_index("idx_matches_high", table_name="matches")
    op.drop_table("matches")
    op.drop_index("idx_follows_following_status", table_name="follows")
    op.drop_table("follows")
    op.drop_table("trip_likes")
    op.drop_index("idx_trip_members_user", table_name="trip_members")
    op.drop_table("trip_members")
    op.drop_index("idx_trips_owner", table_name="trips")
    op.drop_table("trips")
    op.drop_index("idx_users_onboarding_active", table_name="users")
    op.drop_table("users")

    print("Social engine schema dropped.")
