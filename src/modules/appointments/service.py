"""Booking workflow: pricing, slot checks, payment reconciliation and admin edits."""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Awaitable, Callable, Iterable
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    BusinessLogicError,
    PaymentReusedError,
    ProviderError,
    SlotConflictError,
    ValidationError,
)
from src.modules.appointments.models import Appointment
from src.modules.appointments.repository import AppointmentFilter, AppointmentRepository
from src.modules.appointments.schemas import (
    AppointmentFields,
    AppointmentUpdate,
    BulkAttemptedResult,
    BulkFailure,
    CreateOrderRequest,
    SlotOption,
    VerifyPaymentRequest,
)
from src.modules.geo.pincode import PincodeInfo, lookup_pincode
from src.modules.notifications.whatsapp import WhatsAppNotifier
from src.modules.payments.broker import PaymentOrder, PaymentOrderBroker
from src.modules.pricing.engine import PricingEngine, PricingInputs, to_minor_units
from src.modules.pricing.rates import RateTable
from src.shared.enums import PaymentMode, PaymentStatus

logger = logging.getLogger(__name__)

PincodeLookup = Callable[[str], Awaitable[PincodeInfo | None]]


class BookingService:
    def __init__(
        self,
        db: AsyncSession,
        rate_table: RateTable,
        broker: PaymentOrderBroker | None = None,
        notifier: WhatsAppNotifier | None = None,
        pincode_lookup: PincodeLookup = lookup_pincode,
    ):
        self.repository = AppointmentRepository(db, rate_table)
        self.availability = self.repository.availability
        self.pricing = PricingEngine(rate_table)
        self.broker = broker
        self.notifier = notifier
        self.pincode_lookup = pincode_lookup

    def quote(self, fields: AppointmentFields) -> Decimal:
        fields = self.repository.validate(fields)
        return self._price(fields)

    async def book_cash(self, fields: AppointmentFields) -> Appointment:
        fields = await self._prepare(fields.model_copy(update={"payment_mode": PaymentMode.CASH}))
        amount = self._price(fields)
        await self.availability.ensure_available(fields.date, fields.time)
        appointment = await self.repository.create(fields, payment_status=PaymentStatus.PENDING, amount=amount)
        await self._notify_booked(appointment)
        return appointment

    async def create_order(self, request: CreateOrderRequest) -> PaymentOrder:
        """Open a provider order. The slot check here is advisory; verification re-checks."""
        broker = self._require_broker()
        if request.currency and request.currency.upper() != broker.default_currency:
            raise ValidationError(["currency"], f"Payments are accepted in {broker.default_currency} only")
        if request.form_data is not None:
            fields = self.repository.validate(request.form_data)
            await self.availability.ensure_available(fields.date, fields.time)
            amount_minor_units = to_minor_units(self._price(fields))
        elif request.amount is not None:
            await self.availability.ensure_available(request.date, request.slots)
            amount_minor_units = request.amount
        else:
            raise ValidationError(["amount"])
        return await broker.create_order(amount_minor_units)

    async def verify_payment(self, request: VerifyPaymentRequest) -> Appointment:
        """Create the completed booking once the provider signature checks out.

        No row exists before this point, so a failed signature, a short
        payment or a slot taken in the meantime leaves nothing behind. Each
        order and payment id backs at most one booking.
        """
        broker = self._require_broker()
        broker.verify(request.razorpay_order_id, request.razorpay_payment_id, request.razorpay_signature)
        if await self.repository.payment_in_use(request.razorpay_order_id, request.razorpay_payment_id):
            logger.warning(
                "Rejected reuse of order %s payment %s", request.razorpay_order_id, request.razorpay_payment_id
            )
            raise PaymentReusedError()

        try:
            appointment = await self._book_paid(broker, request)
        except (ValidationError, SlotConflictError, ProviderError) as exc:
            logger.error(
                "Payment %s on order %s captured but booking rejected (%s); refund required",
                request.razorpay_payment_id,
                request.razorpay_order_id,
                exc.detail,
            )
            raise
        await self._notify_booked(appointment)
        return appointment

    async def _book_paid(self, broker: PaymentOrderBroker, request: VerifyPaymentRequest) -> Appointment:
        fields = await self._prepare(request.form_data.model_copy(update={"payment_mode": PaymentMode.ONLINE}))
        amount = self._price(fields)
        order = await broker.fetch_order(request.razorpay_order_id)
        if order.currency != broker.default_currency:
            raise ValidationError(["currency"], f"Order {order.order_id} was not paid in {broker.default_currency}")
        if order.amount < to_minor_units(amount):
            raise ValidationError(["amount"], "Paid amount does not cover the booking price")
        return await self.repository.create(
            fields,
            payment_status=PaymentStatus.COMPLETED,
            amount=amount,
            razorpay_order_id=request.razorpay_order_id,
            razorpay_payment_id=request.razorpay_payment_id,
        )

    async def get(self, appointment_id: str) -> Appointment:
        return await self.repository.get(appointment_id)

    async def list_appointments(self, criteria: AppointmentFilter | None = None) -> list[Appointment]:
        return await self.repository.find(criteria)

    async def booked_slots(self, date: dt.date) -> list[str]:
        return sorted(await self.availability.list_booked_slots(date))

    async def slot_options(self, date: dt.date) -> list[SlotOption]:
        return await self.availability.slot_options(date)

    async def admin_update(self, appointment_id: str, payload: AppointmentUpdate) -> Appointment:
        patch = payload.model_dump(exclude_unset=True)
        if payload.work_category in self.pricing.rate_table:
            fields = self.repository.validate(AppointmentFields.model_validate(payload.model_dump()))
            patch["amount"] = self._price(fields)
        return await self.repository.update(appointment_id, patch)

    async def set_attempted(self, appointment_id: str, attempted: bool | None) -> Appointment:
        if attempted is None:
            current = await self.repository.get(appointment_id)
            attempted = not current.attempted
        return await self.repository.set_attempted(appointment_id, attempted)

    async def mark_attempted(self, appointment_ids: Iterable[str], attempted: bool) -> BulkAttemptedResult:
        """Set ``attempted`` record by record; failures are collected, not rolled back."""
        updated = 0
        failed: list[BulkFailure] = []
        for appointment_id in dict.fromkeys(appointment_ids):
            try:
                await self.repository.set_attempted(appointment_id, attempted)
            except BusinessLogicError as exc:
                failed.append(BulkFailure(id=appointment_id, reason=exc.detail))
                continue
            updated += 1
        if failed:
            logger.warning("Bulk attempted=%s: %s updated, %s failed", attempted, updated, len(failed))
        return BulkAttemptedResult(updated=updated, failed=failed)

    async def delete(self, appointment_id: str) -> None:
        await self.repository.delete(appointment_id)

    async def _prepare(self, fields: AppointmentFields) -> AppointmentFields:
        if not fields.district or not fields.state:
            info = await self.pincode_lookup(fields.pincode)
            if info is not None:
                fields = fields.model_copy(
                    update={"district": fields.district or info.district, "state": fields.state or info.state}
                )
        return self.repository.validate(fields)

    def _price(self, fields: AppointmentFields) -> Decimal:
        inputs = PricingInputs(gunta=fields.gunta, acre=fields.acre, kilometers=fields.kilometers)
        return self.pricing.price(fields.work_category, inputs)

    def _require_broker(self) -> PaymentOrderBroker:
        if self.broker is None:
            raise ProviderError("Online payment is currently unavailable")
        return self.broker

    async def _notify_booked(self, appointment: Appointment) -> None:
        if self.notifier is None:
            return
        slots = ", ".join(appointment.time)
        body = (
            f"Hi {appointment.name}, your {appointment.work_category} booking on "
            f"{appointment.date.isoformat()} at {slots} is received. "
            f"Payment: {appointment.payment_mode} ({appointment.payment_status})."
        )
        await self.notifier.send(appointment.contact_number, body)
