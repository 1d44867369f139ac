"""Appointment ORM models."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, Enum, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.enums import PaymentMode, PaymentStatus, enum_values
from src.shared.ids import generate_id
from src.shared.models import TimestampMixin


class Appointment(Base, TimestampMixin):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_date_status", "date", "payment_status"),
        UniqueConstraint("razorpay_order_id", name="uq_appointments_razorpay_order_id"),
        UniqueConstraint("razorpay_payment_id", name="uq_appointments_razorpay_payment_id"),
    )

    appointment_id: Mapped[str] = mapped_column(String(24), primary_key=True, default=generate_id)

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    contact_number: Mapped[str] = mapped_column(String(16), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    village: Mapped[str] = mapped_column(String(120), nullable=False)
    pincode: Mapped[str] = mapped_column(String(6), nullable=False)
    district: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    state: Mapped[str] = mapped_column(String(120), nullable=False, default="")

    work_category: Mapped[str] = mapped_column(String(120), nullable=False)
    area: Mapped[str | None] = mapped_column(String(255))
    gunta: Mapped[Decimal | None] = mapped_column(Numeric(12, 3))
    acre: Mapped[Decimal | None] = mapped_column(Numeric(12, 4))
    seven_twelve_number: Mapped[str | None] = mapped_column(String(64))
    khata_number: Mapped[str | None] = mapped_column(String(64))
    pickup_location: Mapped[str | None] = mapped_column(String(255))
    delivery_location: Mapped[str | None] = mapped_column(String(255))
    kilometers: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    remark: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    payment_mode: Mapped[PaymentMode] = mapped_column(
        Enum(
            PaymentMode,
            values_callable=enum_values,
            validate_strings=True,
            name="paymentmode",
        ),
        nullable=False,
        default=PaymentMode.ONLINE,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(
            PaymentStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="paymentstatus",
        ),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    razorpay_order_id: Mapped[str | None] = mapped_column(String(64))
    razorpay_payment_id: Mapped[str | None] = mapped_column(String(64))
    attempted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    slots: Mapped[list[AppointmentSlot]] = relationship(
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentSlot.position",
    )

    @property
    def time(self) -> list[str]:
        return [slot.slot_time for slot in self.slots]


class AppointmentSlot(Base):
    """One (date, slot) held or requested by an appointment.

    ``held`` is True only while the owning appointment is completed and NULL
    otherwise, so the unique constraint admits one completed holder per
    (date, slot) while pending and failed bookings never collide.
    """

    __tablename__ = "appointment_slots"
    __table_args__ = (
        UniqueConstraint("slot_date", "slot_time", "held", name="uq_appointment_slots_held"),
        Index("ix_appointment_slots_date", "slot_date"),
    )

    appointment_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
        primary_key=True,
    )
    slot_time: Mapped[str] = mapped_column(String(5), primary_key=True)
    slot_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    held: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    appointment: Mapped[Appointment] = relationship(back_populates="slots")
