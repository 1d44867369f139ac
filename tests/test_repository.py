from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from src.core.exceptions import NotFoundError, PaymentReusedError, SlotConflictError, ValidationError
from src.modules.appointments.models import AppointmentSlot
from src.modules.appointments.repository import AppointmentFilter, AppointmentRepository, parse_fields
from src.shared.enums import PaymentMode, PaymentStatus
from src.shared.ids import generate_id

BOOKING_DAY = date(2025, 6, 1)


async def _completed(repository, booking_data, payment_id="pay_1", order_id=None, **overrides):
    return await repository.create(
        parse_fields(booking_data(**overrides)),
        payment_status=PaymentStatus.COMPLETED,
        amount=Decimal("100.00"),
        razorpay_order_id=order_id or f"order_{payment_id}",
        razorpay_payment_id=payment_id,
    )


@pytest.mark.asyncio
async def test_create_persists_slots_in_order(db_session, rate_table, booking_data):
    repository = AppointmentRepository(db_session, rate_table)
    appointment = await repository.create(
        parse_fields(booking_data(time=["11:00", "10:00", "11:00"])),
        amount=Decimal("100.00"),
    )

    assert len(appointment.appointment_id) == 24
    assert appointment.time == ["11:00", "10:00"]
    assert appointment.payment_status == PaymentStatus.PENDING
    assert appointment.attempted is False
    assert appointment.gunta == Decimal("160.000")


@pytest.mark.asyncio
async def test_pending_bookings_share_a_slot(db_session, rate_table, booking_data):
    repository = AppointmentRepository(db_session, rate_table)
    first = await repository.create(parse_fields(booking_data(paymentMode="cash")))
    second = await repository.create(parse_fields(booking_data(paymentMode="cash", name="Suresh Jadhav")))

    assert first.appointment_id != second.appointment_id
    assert await repository.availability.list_booked_slots(BOOKING_DAY) == set()


@pytest.mark.asyncio
async def test_completed_booking_blocks_the_slot(db_session, rate_table, booking_data):
    repository = AppointmentRepository(db_session, rate_table)
    await _completed(repository, booking_data)

    assert not await repository.availability.is_available(BOOKING_DAY, ["10:00"])
    assert await repository.availability.is_available(BOOKING_DAY, ["10:30"])
    assert await repository.availability.is_available(date(2025, 6, 2), ["10:00"])

    with pytest.raises(SlotConflictError) as exc_info:
        await _completed(repository, booking_data, time=["10:00", "10:30"])
    assert exc_info.value.slots == ["10:00"]


@pytest.mark.asyncio
async def test_storage_constraint_rejects_second_holder(db_session, rate_table, booking_data, monkeypatch):
    repository = AppointmentRepository(db_session, rate_table)
    first_id = (await _completed(repository, booking_data)).appointment_id

    async def _skip_check(*args, **kwargs):
        return None

    # Two requests that both passed the read-side check before either wrote.
    monkeypatch.setattr(repository.availability, "ensure_available", _skip_check)
    with pytest.raises(SlotConflictError):
        await _completed(repository, booking_data, payment_id="pay_2", name="Suresh Jadhav")

    result = await db_session.execute(select(AppointmentSlot.appointment_id).where(AppointmentSlot.held.is_(True)))
    assert result.scalars().all() == [first_id]


@pytest.mark.asyncio
@pytest.mark.parametrize(("payment_id", "order_id"), [("pay_1", "order_2"), ("pay_2", "order_pay_1")])
async def test_storage_constraint_rejects_reused_payment(db_session, rate_table, booking_data, payment_id, order_id):
    repository = AppointmentRepository(db_session, rate_table)
    await _completed(repository, booking_data)

    with pytest.raises(PaymentReusedError):
        await _completed(repository, booking_data, payment_id=payment_id, order_id=order_id, time=["15:00"])

    assert await repository.payment_in_use("order_pay_1", "pay_unused")
    assert not await repository.payment_in_use("order_other", "pay_other")
    assert await repository.availability.is_available(BOOKING_DAY, ["15:00"])


@pytest.mark.asyncio
async def test_unrelated_integrity_errors_are_not_slot_conflicts(db_session, rate_table):
    repository = AppointmentRepository(db_session, rate_table)
    error = IntegrityError(
        "INSERT INTO appointment_slots ...",
        {},
        Exception("UNIQUE constraint failed: appointment_slots.appointment_id, appointment_slots.slot_time"),
    )

    with pytest.raises(IntegrityError):
        await repository._rollback_conflict(error, ["10:00"])


@pytest.mark.asyncio
async def test_promotion_conflicts_with_existing_holder(db_session, rate_table, booking_data):
    repository = AppointmentRepository(db_session, rate_table)
    first = await repository.create(parse_fields(booking_data(paymentMode="cash")))
    second = await repository.create(parse_fields(booking_data(paymentMode="cash", name="Suresh Jadhav")))

    promoted = await repository.update(first.appointment_id, {"payment_status": PaymentStatus.COMPLETED})
    assert promoted.payment_status == PaymentStatus.COMPLETED

    with pytest.raises(SlotConflictError):
        await repository.update(second.appointment_id, {"payment_status": PaymentStatus.COMPLETED})

    unchanged = await repository.get(second.appointment_id)
    assert unchanged.payment_status == PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_update_keeps_own_slot(db_session, rate_table, booking_data):
    repository = AppointmentRepository(db_session, rate_table)
    appointment = await _completed(repository, booking_data)

    updated = await repository.update(appointment.appointment_id, {"remark": "Bring a rotavator", "time": ["10:00", "10:30"]})

    assert updated.remark == "Bring a rotavator"
    assert updated.time == ["10:00", "10:30"]
    assert updated.payment_status == PaymentStatus.COMPLETED
    assert updated.razorpay_payment_id == "pay_1"
    assert await repository.availability.list_booked_slots(BOOKING_DAY) == {"10:00", "10:30"}


@pytest.mark.asyncio
async def test_update_revalidates_category_rules(db_session, rate_table, booking_data):
    repository = AppointmentRepository(db_session, rate_table)
    appointment = await repository.create(parse_fields(booking_data()))

    with pytest.raises(ValidationError) as exc_info:
        await repository.update(appointment.appointment_id, {"work_category": "Transport"})
    assert set(exc_info.value.fields) == {"pickupLocation", "deliveryLocation", "kilometers"}


@pytest.mark.asyncio
async def test_get_rejects_malformed_and_unknown_ids(db_session, rate_table):
    repository = AppointmentRepository(db_session, rate_table)

    with pytest.raises(ValidationError) as exc_info:
        await repository.get("not-an-id")
    assert exc_info.value.fields == ["id"]

    with pytest.raises(NotFoundError):
        await repository.get(generate_id())


@pytest.mark.asyncio
async def test_delete_releases_the_slot(db_session, rate_table, booking_data):
    repository = AppointmentRepository(db_session, rate_table)
    appointment = await _completed(repository, booking_data)

    await repository.delete(appointment.appointment_id)

    assert await repository.availability.is_available(BOOKING_DAY, ["10:00"])
    with pytest.raises(NotFoundError):
        await repository.get(appointment.appointment_id)


@pytest.mark.asyncio
async def test_find_filters_and_searches(db_session, rate_table, booking_data):
    repository = AppointmentRepository(db_session, rate_table)
    await repository.create(parse_fields(booking_data(paymentMode="cash")))
    await _completed(repository, booking_data, name="Suresh Jadhav", village="Baramati", time=["12:00"])
    await repository.create(parse_fields(booking_data(date="2025-06-03", name="Anita More", paymentMode="cash")))

    on_day = await repository.find(AppointmentFilter(date=BOOKING_DAY))
    assert {item.name for item in on_day} == {"Ramesh Patil", "Suresh Jadhav"}

    cash = await repository.find(AppointmentFilter(payment_mode=PaymentMode.CASH))
    assert {item.name for item in cash} == {"Ramesh Patil", "Anita More"}

    completed = await repository.find(AppointmentFilter(payment_status=PaymentStatus.COMPLETED))
    assert [item.name for item in completed] == ["Suresh Jadhav"]

    by_village = await repository.find(AppointmentFilter(search_field="village", query="bara"))
    assert [item.name for item in by_village] == ["Suresh Jadhav"]

    by_date_text = await repository.find(AppointmentFilter(search_field="date", query="2025-06-03"))
    assert [item.name for item in by_date_text] == ["Anita More"]

    newest_first = await repository.find()
    assert newest_first[0].name == "Anita More"

    with pytest.raises(ValidationError):
        await repository.find(AppointmentFilter(search_field="email", query="x"))
