"""Persistence for appointment records."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy import String, cast, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import NotFoundError, PaymentReusedError, SlotConflictError, ValidationError
from src.modules.appointments.availability import SlotAvailability
from src.modules.appointments.models import Appointment, AppointmentSlot
from src.modules.appointments.schemas import AppointmentFields, check_category_fields
from src.modules.pricing.rates import RateTable
from src.shared.enums import PaymentMode, PaymentStatus
from src.shared.ids import is_valid_id

logger = logging.getLogger(__name__)

# Postgres/MySQL report the constraint name, SQLite the column list.
SLOT_CONSTRAINT_MARKERS = (
    "uq_appointment_slots_held",
    "appointment_slots.slot_date, appointment_slots.slot_time, appointment_slots.held",
)
PAYMENT_CONSTRAINT_MARKERS = (
    "uq_appointments_razorpay_order_id",
    "uq_appointments_razorpay_payment_id",
    "appointments.razorpay_order_id",
    "appointments.razorpay_payment_id",
)

SEARCH_COLUMNS = {
    "name": Appointment.name,
    "contactNumber": Appointment.contact_number,
    "village": Appointment.village,
    "workCategory": Appointment.work_category,
    "date": cast(Appointment.date, String),
}


@dataclass
class AppointmentFilter:
    date: dt.date | None = None
    payment_status: PaymentStatus | None = None
    payment_mode: PaymentMode | None = None
    attempted: bool | None = None
    search_field: str | None = None
    query: str | None = None


def parse_fields(data: dict[str, Any]) -> AppointmentFields:
    """Validate raw field data, reporting offending fields by their wire names."""
    try:
        return AppointmentFields.model_validate(data)
    except PydanticValidationError as exc:
        names = [_wire_name(str(err["loc"][0])) if err["loc"] else "body" for err in exc.errors()]
        raise ValidationError(names) from exc


def _wire_name(name: str) -> str:
    return to_camel(name) if "_" in name else name


class AppointmentRepository:
    def __init__(self, db: AsyncSession, rate_table: RateTable):
        self.db = db
        self.rate_table = rate_table
        self.availability = SlotAvailability(db)

    def validate(self, fields: AppointmentFields) -> AppointmentFields:
        return check_category_fields(fields, self.rate_table.kind_of(fields.work_category))

    async def create(
        self,
        fields: AppointmentFields,
        *,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        amount: Decimal | None = None,
        razorpay_order_id: str | None = None,
        razorpay_payment_id: str | None = None,
    ) -> Appointment:
        fields = self.validate(fields)
        if payment_status == PaymentStatus.COMPLETED:
            await self.availability.ensure_available(fields.date, fields.time)

        appointment = Appointment(
            payment_status=payment_status,
            amount=amount,
            razorpay_order_id=razorpay_order_id,
            razorpay_payment_id=razorpay_payment_id,
            attempted=False,
        )
        _assign_fields(appointment, fields)
        appointment.slots = _build_slots(fields.date, fields.time, payment_status)
        self.db.add(appointment)
        await self._commit(fields.time)
        logger.info(
            "Created appointment %s (%s, %s) for %s %s",
            appointment.appointment_id,
            appointment.payment_mode,
            payment_status,
            fields.date,
            ",".join(fields.time),
        )
        return await self.get(appointment.appointment_id)

    async def get(self, appointment_id: str) -> Appointment:
        if not is_valid_id(appointment_id):
            raise ValidationError(["id"], "Invalid appointment id")
        stmt = (
            select(Appointment)
            .options(selectinload(Appointment.slots))
            .where(Appointment.appointment_id == appointment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        appointment = result.scalar_one_or_none()
        if appointment is None:
            raise NotFoundError()
        return appointment

    async def update(self, appointment_id: str, patch: dict[str, Any]) -> Appointment:
        """Merge ``patch`` onto the stored record, re-validate and persist.

        Slot uniqueness is re-checked against other completed bookings only,
        so a record may keep its own slot.
        """
        appointment = await self.get(appointment_id)
        patch = dict(patch)
        payment_status = PaymentStatus(patch.pop("payment_status", None) or appointment.payment_status)
        attempted = patch.pop("attempted", None)
        amount = patch.pop("amount", None)

        current = {name: getattr(appointment, name) for name in AppointmentFields.model_fields}
        fields = self.validate(parse_fields({**current, **patch}))
        if payment_status == PaymentStatus.COMPLETED:
            await self.availability.ensure_available(fields.date, fields.time, exclude_id=appointment_id)

        try:
            _assign_fields(appointment, fields)
            appointment.payment_status = payment_status
            if attempted is not None:
                appointment.attempted = attempted
            if amount is not None:
                appointment.amount = amount
            appointment.slots.clear()
            await self.db.flush()
            appointment.slots.extend(_build_slots(fields.date, fields.time, payment_status))
        except IntegrityError as exc:
            await self._rollback_conflict(exc, fields.time)
        await self._commit(fields.time)
        return await self.get(appointment_id)

    async def payment_in_use(self, order_id: str, payment_id: str) -> bool:
        stmt = select(Appointment.appointment_id).where(
            or_(Appointment.razorpay_order_id == order_id, Appointment.razorpay_payment_id == payment_id)
        )
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    async def set_attempted(self, appointment_id: str, attempted: bool) -> Appointment:
        appointment = await self.get(appointment_id)
        if appointment.attempted != attempted:
            appointment.attempted = attempted
            await self.db.commit()
        return await self.get(appointment_id)

    async def delete(self, appointment_id: str) -> None:
        appointment = await self.get(appointment_id)
        await self.db.delete(appointment)
        await self.db.commit()
        logger.info("Deleted appointment %s", appointment_id)

    async def find(self, criteria: AppointmentFilter | None = None) -> list[Appointment]:
        criteria = criteria or AppointmentFilter()
        stmt = select(Appointment).options(selectinload(Appointment.slots))
        if criteria.date is not None:
            stmt = stmt.where(Appointment.date == criteria.date)
        if criteria.payment_status is not None:
            stmt = stmt.where(Appointment.payment_status == criteria.payment_status)
        if criteria.payment_mode is not None:
            stmt = stmt.where(Appointment.payment_mode == criteria.payment_mode)
        if criteria.attempted is not None:
            stmt = stmt.where(Appointment.attempted == criteria.attempted)
        if criteria.query:
            column = SEARCH_COLUMNS.get(criteria.search_field or "name")
            if column is None:
                raise ValidationError(["searchField"], f"Cannot search by '{criteria.search_field}'")
            stmt = stmt.where(column.ilike(f"%{criteria.query.strip()}%"))
        stmt = stmt.order_by(Appointment.date.desc(), Appointment.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _commit(self, slots: list[str]) -> None:
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self._rollback_conflict(exc, slots)

    async def _rollback_conflict(self, exc: IntegrityError, slots: list[str]) -> None:
        await self.db.rollback()
        message = str(exc.orig)
        if any(marker in message for marker in SLOT_CONSTRAINT_MARKERS):
            logger.warning("Slot constraint rejected write for %s: %s", slots, message)
            raise SlotConflictError(slots) from exc
        if any(marker in message for marker in PAYMENT_CONSTRAINT_MARKERS):
            logger.warning("Payment constraint rejected write: %s", message)
            raise PaymentReusedError() from exc
        raise exc


def _assign_fields(appointment: Appointment, fields: AppointmentFields) -> None:
    for name, value in fields.model_dump(exclude={"time"}).items():
        setattr(appointment, name, value)
    appointment.district = fields.district or ""
    appointment.state = fields.state or ""


def _build_slots(date: dt.date, slots: list[str], payment_status: PaymentStatus) -> list[AppointmentSlot]:
    held = True if payment_status == PaymentStatus.COMPLETED else None
    return [
        AppointmentSlot(slot_time=slot, slot_date=date, position=index, held=held)
        for index, slot in enumerate(dict.fromkeys(slots))
    ]
