"""Initial schema for the land-work booking backend.

Revision ID: 4f1c9a2e7b30
Revises:
Create Date: 2025-05-12 10:21:44.118302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4f1c9a2e7b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("admin", "staff", name="userrole")
payment_mode = sa.Enum("online", "cash", name="paymentmode")
payment_status = sa.Enum("pending", "completed", "failed", name="paymentstatus")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(length=24), primary_key=True),
        sa.Column("username", sa.String(length=120), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("contact_number", sa.String(length=32), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="admin"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("reset_code", sa.String(length=6)),
        sa.Column("reset_code_expires", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "appointments",
        sa.Column("appointment_id", sa.String(length=24), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("contact_number", sa.String(length=16), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("village", sa.String(length=120), nullable=False),
        sa.Column("pincode", sa.String(length=6), nullable=False),
        sa.Column("district", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("state", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("work_category", sa.String(length=120), nullable=False),
        sa.Column("area", sa.String(length=255)),
        sa.Column("gunta", sa.Numeric(12, 3)),
        sa.Column("acre", sa.Numeric(12, 4)),
        sa.Column("seven_twelve_number", sa.String(length=64)),
        sa.Column("khata_number", sa.String(length=64)),
        sa.Column("pickup_location", sa.String(length=255)),
        sa.Column("delivery_location", sa.String(length=255)),
        sa.Column("kilometers", sa.Numeric(10, 2)),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("remark", sa.Text()),
        sa.Column("amount", sa.Numeric(10, 2)),
        sa.Column("payment_mode", payment_mode, nullable=False, server_default="online"),
        sa.Column("payment_status", payment_status, nullable=False, server_default="pending"),
        sa.Column("razorpay_order_id", sa.String(length=64)),
        sa.Column("razorpay_payment_id", sa.String(length=64)),
        sa.Column("attempted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("razorpay_order_id", name="uq_appointments_razorpay_order_id"),
        sa.UniqueConstraint("razorpay_payment_id", name="uq_appointments_razorpay_payment_id"),
    )
    op.create_index("ix_appointments_date_status", "appointments", ["date", "payment_status"])
    op.create_index("ix_appointments_created_at", "appointments", ["created_at"])

    op.create_table(
        "appointment_slots",
        sa.Column(
            "appointment_id",
            sa.String(length=24),
            sa.ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("slot_time", sa.String(length=5), primary_key=True),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("held", sa.Boolean(), nullable=True),
        sa.UniqueConstraint("slot_date", "slot_time", "held", name="uq_appointment_slots_held"),
    )
    op.create_index("ix_appointment_slots_date", "appointment_slots", ["slot_date"])


def downgrade() -> None:
    op.drop_index("ix_appointment_slots_date", table_name="appointment_slots")
    op.drop_table("appointment_slots")
    op.drop_index("ix_appointments_created_at", table_name="appointments")
    op.drop_index("ix_appointments_date_status", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    payment_status.drop(bind, checkfirst=True)
    payment_mode.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)
