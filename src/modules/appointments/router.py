"""Appointments API routes."""

import datetime as dt

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import (
    get_notifier,
    get_optional_user,
    get_payment_broker,
    get_rate_table,
    require_admin,
    require_staff,
)
from src.core.exceptions import ValidationError
from src.modules.appointments.repository import AppointmentFilter
from src.modules.appointments.schemas import (
    AppointmentFields,
    AppointmentPublic,
    AppointmentUpdate,
    AttemptedUpdate,
    BookedSlots,
    BulkAttemptedRequest,
    BulkAttemptedResult,
    CreateOrderRequest,
    OrderCreated,
    QuoteResponse,
    SlotOption,
    VerifyPaymentRequest,
)
from src.modules.appointments.service import BookingService
from src.modules.notifications.whatsapp import WhatsAppNotifier
from src.modules.payments.broker import PaymentOrderBroker
from src.modules.pricing.engine import to_minor_units
from src.modules.pricing.rates import RateTable
from src.modules.users.models import User
from src.shared.enums import PaymentMode, PaymentStatus

router = APIRouter(prefix="/api/appointments", tags=["appointments"])


def get_service(
    db: AsyncSession = Depends(get_db),
    rate_table: RateTable = Depends(get_rate_table),
    broker: PaymentOrderBroker | None = Depends(get_payment_broker),
    notifier: WhatsAppNotifier | None = Depends(get_notifier),
) -> BookingService:
    return BookingService(db, rate_table, broker=broker, notifier=notifier)


@router.get("", response_model=list[AppointmentPublic] | BookedSlots)
async def list_appointments(
    date: dt.date | None = None,
    payment_status: PaymentStatus | None = Query(None, alias="paymentStatus"),
    payment_mode: PaymentMode | None = Query(None, alias="paymentMode"),
    attempted: bool | None = None,
    search_field: str | None = Query(None, alias="searchField"),
    q: str | None = None,
    current_user: User | None = Depends(get_optional_user),
    service: BookingService = Depends(get_service),
):
    """Booked slots for a date; staff get the full records instead."""
    if current_user is None:
        if date is None:
            raise ValidationError(["date"], "Date is required")
        return BookedSlots(date=date, booked_slots=await service.booked_slots(date))
    criteria = AppointmentFilter(
        date=date,
        payment_status=payment_status,
        payment_mode=payment_mode,
        attempted=attempted,
        search_field=search_field,
        query=q,
    )
    return await service.list_appointments(criteria)


@router.get("/availability", response_model=list[SlotOption])
async def slot_availability(
    date: dt.date,
    service: BookingService = Depends(get_service),
) -> list[SlotOption]:
    return await service.slot_options(date)


@router.post("/quote", response_model=QuoteResponse)
async def quote(
    payload: AppointmentFields,
    service: BookingService = Depends(get_service),
) -> QuoteResponse:
    amount = service.quote(payload)
    return QuoteResponse(
        amount=amount,
        amount_minor_units=to_minor_units(amount),
        currency=service.broker.default_currency if service.broker else "INR",
    )


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def create_cash_appointment(
    payload: AppointmentFields,
    service: BookingService = Depends(get_service),
):
    return await service.book_cash(payload)


@router.post("/create-order", response_model=OrderCreated)
async def create_order(
    payload: CreateOrderRequest,
    service: BookingService = Depends(get_service),
) -> OrderCreated:
    order = await service.create_order(payload)
    return OrderCreated(order_id=order.order_id, amount=order.amount, currency=order.currency)


@router.post("/verify-payment", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def verify_payment(
    payload: VerifyPaymentRequest,
    service: BookingService = Depends(get_service),
):
    return await service.verify_payment(payload)


@router.post("/mark-attended", response_model=BulkAttemptedResult)
async def mark_attended(
    payload: BulkAttemptedRequest,
    _: User = Depends(require_staff),
    service: BookingService = Depends(get_service),
) -> BulkAttemptedResult:
    return await service.mark_attempted(payload.appointment_ids, True)


@router.post("/mark-not-attended", response_model=BulkAttemptedResult)
async def mark_not_attended(
    payload: BulkAttemptedRequest,
    _: User = Depends(require_staff),
    service: BookingService = Depends(get_service),
) -> BulkAttemptedResult:
    return await service.mark_attempted(payload.appointment_ids, False)


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_appointment(
    appointment_id: str,
    _: User = Depends(require_staff),
    service: BookingService = Depends(get_service),
):
    return await service.get(appointment_id)


@router.put("/{appointment_id}", response_model=AppointmentPublic)
async def update_appointment(
    appointment_id: str,
    payload: AppointmentUpdate,
    _: User = Depends(require_admin),
    service: BookingService = Depends(get_service),
):
    return await service.admin_update(appointment_id, payload)


@router.patch("/{appointment_id}/attempted", response_model=AppointmentPublic)
async def set_attempted(
    appointment_id: str,
    payload: AttemptedUpdate | None = None,
    _: User = Depends(require_staff),
    service: BookingService = Depends(get_service),
):
    return await service.set_attempted(appointment_id, payload.attempted if payload else None)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: str,
    _: User = Depends(require_admin),
    service: BookingService = Depends(get_service),
) -> None:
    await service.delete(appointment_id)
