"""create_guests_and_rsvps

Revision ID: 3f1c9a7be2d4
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3f1c9a7be2d4"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "guests",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("first_name", sa.String(length=255), nullable=False),
        sa.Column("last_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("token", sa.String(length=100), nullable=False),
        sa.Column("has_used_token", sa.Boolean(), nullable=False),
        sa.Column("last_accessed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("plus_one_eligible", sa.Boolean(), nullable=False),
        sa.Column("plus_one_name", sa.String(length=255), nullable=True),
        sa.Column("plus_one_email", sa.String(length=255), nullable=True),
        sa.Column("invitation_group", sa.String(length=100), nullable=False),
        sa.Column("dietary_restrictions", sa.JSON(), nullable=False),
        sa.Column("special_notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index(op.f("ix_guests_first_name"), "guests", ["first_name"], unique=False)
    op.create_index(op.f("ix_guests_token"), "guests", ["token"], unique=True)
    op.create_index(
        op.f("ix_guests_invitation_group"), "guests", ["invitation_group"], unique=False
    )

    op.create_table(
        "rsvps",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("guest_token", sa.String(length=100), nullable=False),
        sa.Column("guest_id", sa.UUID(), nullable=True),
        sa.Column("guest_name", sa.String(length=255), nullable=False),
        sa.Column("email_address", sa.String(length=255), nullable=True),
        sa.Column("whatsapp_number", sa.String(length=50), nullable=True),
        sa.Column("attending", sa.Boolean(), nullable=False),
        sa.Column("meal_choice", sa.String(length=100), nullable=True),
        sa.Column("dietary_restrictions", sa.Text(), nullable=True),
        sa.Column("plus_one_name", sa.String(length=255), nullable=True),
        sa.Column("plus_one_meal_choice", sa.String(length=100), nullable=True),
        sa.Column("plus_one_dietary_restrictions", sa.Text(), nullable=True),
        sa.Column("wants_email_confirmation", sa.Boolean(), nullable=False),
        sa.Column("wants_whatsapp_confirmation", sa.Boolean(), nullable=False),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("submission_id", sa.String(length=100), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("email_confirmation_sent", sa.Boolean(), nullable=False),
        sa.Column("whatsapp_confirmation_sent", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["guest_id"], ["guests.uuid"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index(op.f("ix_rsvps_guest_token"), "rsvps", ["guest_token"], unique=True)
    op.create_index(op.f("ix_rsvps_guest_id"), "rsvps", ["guest_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_rsvps_guest_id"), table_name="rsvps")
    op.drop_index(op.f("ix_rsvps_guest_token"), table_name="rsvps")
    op.drop_table("rsvps")
    op.drop_index(op.f("ix_guests_invitation_group"), table_name="guests")
    op.drop_index(op.f("ix_guests_token"), table_name="guests")
    op.drop_index(op.f("ix_guests_first_name"), table_name="guests")
    op.drop_table("guests")
