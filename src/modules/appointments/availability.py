"""Slot availability for a date: only completed bookings hold a slot."""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, settings
from src.core.exceptions import SlotConflictError
from src.modules.appointments.models import Appointment, AppointmentSlot
from src.modules.appointments.schemas import SlotOption
from src.shared.enums import PaymentStatus


class SlotAvailability:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_booked_slots(self, date: dt.date, exclude_id: str | None = None) -> set[str]:
        stmt = (
            select(AppointmentSlot.slot_time)
            .join(Appointment)
            .where(
                AppointmentSlot.slot_date == date,
                Appointment.payment_status == PaymentStatus.COMPLETED,
            )
        )
        if exclude_id:
            stmt = stmt.where(AppointmentSlot.appointment_id != exclude_id)
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

    async def conflicting_slots(
        self,
        date: dt.date,
        slots: Iterable[str],
        exclude_id: str | None = None,
    ) -> set[str]:
        return set(slots) & await self.list_booked_slots(date, exclude_id=exclude_id)

    async def is_available(self, date: dt.date, slots: Iterable[str], exclude_id: str | None = None) -> bool:
        return not await self.conflicting_slots(date, slots, exclude_id=exclude_id)

    async def ensure_available(self, date: dt.date, slots: Iterable[str], exclude_id: str | None = None) -> None:
        taken = await self.conflicting_slots(date, slots, exclude_id=exclude_id)
        if taken:
            raise SlotConflictError(taken)

    async def slot_options(self, date: dt.date, config: Settings | None = None) -> list[SlotOption]:
        booked = await self.list_booked_slots(date)
        return [
            SlotOption(time=value, label=label, booked=value in booked)
            for value, label in slot_grid(config or settings)
        ]


def slot_grid(config: Settings) -> list[tuple[str, str]]:
    """Every bookable slot of a day as (value, 12-hour label) pairs, end inclusive."""
    start = dt.datetime.strptime(config.slot_day_start, "%H:%M")
    end = dt.datetime.strptime(config.slot_day_end, "%H:%M")
    step = dt.timedelta(minutes=config.slot_step_minutes)
    options = []
    current = start
    while current <= end:
        label = f"{current.hour % 12 or 12}:{current.minute:02d} {'PM' if current.hour >= 12 else 'AM'}"
        options.append((current.strftime("%H:%M"), label))
        current += step
    return options
