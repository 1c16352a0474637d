"""Init fest schema

Revision ID: 3f9a1c2b7d40
Revises:
Create Date: 2025-09-02 10:12:44.519208

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9a1c2b7d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.VARCHAR(), nullable=False),
        sa.Column("email", sa.VARCHAR(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=True),
        sa.Column(
            "role", sa.String(length=20), server_default="user", nullable=False
        ),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=False)

    op.create_table(
        "events",
        sa.Column("id", sa.VARCHAR(), nullable=False),
        sa.Column("title", sa.VARCHAR(), nullable=False),
        sa.Column("description", sa.VARCHAR(), nullable=False),
        sa.Column(
            "category", sa.String(length=20), server_default="other", nullable=False
        ),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.VARCHAR(), nullable=True),
        sa.Column("banner_url", sa.VARCHAR(), nullable=True),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column(
            "current_participants", sa.Integer(), server_default="0", nullable=False
        ),
        sa.Column("is_paid", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        sa.Column(
            "is_team_event", sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        sa.Column("max_team_size", sa.Integer(), nullable=True),
        sa.Column(
            "status", sa.String(length=20), server_default="upcoming", nullable=False
        ),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("max_participants >= 0", name="ck_events_max_ge_0"),
        sa.CheckConstraint(
            "current_participants >= 0", name="ck_events_current_ge_0"
        ),
        sa.CheckConstraint(
            "current_participants <= max_participants",
            name="ck_events_current_le_max",
        ),
    )

    op.create_table(
        "teams",
        sa.Column("id", sa.VARCHAR(), nullable=False),
        sa.Column("event_id", sa.VARCHAR(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("invite_code", sa.VARCHAR(), nullable=False),
        sa.Column("leader_id", sa.VARCHAR(), nullable=False),
        sa.Column("member_count", sa.Integer(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "event_id", "invite_code", name="uq_teams_event_invite_code"
        ),
        sa.CheckConstraint("member_count >= 1", name="ck_teams_member_count_ge_1"),
    )
    op.create_index(op.f("ix_teams_event_id"), "teams", ["event_id"], unique=False)
    op.create_index(
        op.f("ix_teams_invite_code"), "teams", ["invite_code"], unique=False
    )

    op.create_table(
        "team_members",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("team_id", sa.VARCHAR(), nullable=False),
        sa.Column("user_id", sa.VARCHAR(), nullable=False),
        sa.Column("joined_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )
    op.create_index(
        op.f("ix_team_members_team_id"), "team_members", ["team_id"], unique=False
    )

    op.create_table(
        "registrations",
        sa.Column("id", sa.VARCHAR(), nullable=False),
        sa.Column("event_id", sa.VARCHAR(), nullable=False),
        sa.Column("user_id", sa.VARCHAR(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("email", sa.VARCHAR(), nullable=False),
        sa.Column("phone", sa.VARCHAR(), nullable=False),
        sa.Column("college", sa.VARCHAR(), nullable=False),
        sa.Column("student_id", sa.VARCHAR(), nullable=True),
        sa.Column("team_id", sa.VARCHAR(), nullable=True),
        sa.Column("team_name", sa.VARCHAR(), nullable=True),
        sa.Column("team_role", sa.String(length=20), nullable=True),
        sa.Column(
            "payment_status",
            sa.String(length=20),
            server_default="pending",
            nullable=False,
        ),
        sa.Column("payment_id", sa.VARCHAR(), nullable=True),
        sa.Column(
            "status", sa.String(length=20), server_default="pending", nullable=False
        ),
        sa.Column(
            "checked_in", sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("checked_in_by", sa.VARCHAR(), nullable=True),
        sa.Column("registered_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_registrations_event_user"),
    )
    op.create_index(
        op.f("ix_registrations_event_id"), "registrations", ["event_id"], unique=False
    )
    op.create_index(
        op.f("ix_registrations_user_id"), "registrations", ["user_id"], unique=False
    )
    op.create_index(
        op.f("ix_registrations_team_id"), "registrations", ["team_id"], unique=False
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.VARCHAR(), nullable=False),
        sa.Column("registration_id", sa.VARCHAR(), nullable=False),
        sa.Column("user_id", sa.VARCHAR(), nullable=False),
        sa.Column("event_id", sa.VARCHAR(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.VARCHAR(length=3), nullable=False),
        sa.Column(
            "status", sa.String(length=20), server_default="pending", nullable=False
        ),
        sa.Column("gateway_order_id", sa.VARCHAR(), nullable=True),
        sa.Column("gateway_payment_id", sa.VARCHAR(), nullable=True),
        sa.Column("failure_reason", sa.VARCHAR(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["registration_id"], ["registrations.id"]),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_payments_registration_id"),
        "payments",
        ["registration_id"],
        unique=False,
    )
    op.create_index(op.f("ix_payments_user_id"), "payments", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_payments_gateway_order_id"),
        "payments",
        ["gateway_order_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_payments_gateway_payment_id"),
        "payments",
        ["gateway_payment_id"],
        unique=True,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_payments_gateway_payment_id"), table_name="payments")
    op.drop_index(op.f("ix_payments_gateway_order_id"), table_name="payments")
    op.drop_index(op.f("ix_payments_user_id"), table_name="payments")
    op.drop_index(op.f("ix_payments_registration_id"), table_name="payments")
    op.drop_table("payments")

    op.drop_index(op.f("ix_registrations_team_id"), table_name="registrations")
    op.drop_index(op.f("ix_registrations_user_id"), table_name="registrations")
    op.drop_index(op.f("ix_registrations_event_id"), table_name="registrations")
    op.drop_table("registrations")

    op.drop_index(op.f("ix_team_members_team_id"), table_name="team_members")
    op.drop_table("team_members")

    op.drop_index(op.f("ix_teams_invite_code"), table_name="teams")
    op.drop_index(op.f("ix_teams_event_id"), table_name="teams")
    op.drop_table("teams")

    op.drop_table("events")

    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
