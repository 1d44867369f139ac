from decimal import Decimal

import pytest

from src.core.exceptions import ValidationError
from src.modules.appointments.repository import parse_fields
from src.modules.appointments.schemas import AppointmentFields, check_category_fields
from src.shared.enums import CategoryKind, PaymentMode


def test_transport_without_kilometers_lists_kilometers(booking_data):
    fields = parse_fields(
        booking_data(workCategory="Transport", pickupLocation="Farm", deliveryLocation="Mandi", acre=None)
    )
    with pytest.raises(ValidationError) as exc_info:
        check_category_fields(fields, CategoryKind.DISTANCE_TRANSPORT)
    assert exc_info.value.fields == ["kilometers"]


def test_area_without_seven_twelve_number_is_rejected(booking_data):
    fields = parse_fields(booking_data(sevenTwelveNumber=None))
    with pytest.raises(ValidationError) as exc_info:
        check_category_fields(fields, CategoryKind.AREA)
    assert exc_info.value.fields == ["sevenTwelveNumber"]


def test_area_without_gunta_or_acre_reports_both(booking_data):
    fields = parse_fields(booking_data(acre=None, sevenTwelveNumber=None))
    with pytest.raises(ValidationError) as exc_info:
        check_category_fields(fields, CategoryKind.AREA)
    assert exc_info.value.fields == ["sevenTwelveNumber", "gunta", "acre"]


def test_area_booking_derives_gunta_and_clears_distance_fields(booking_data):
    fields = parse_fields(booking_data(pickupLocation="Farm", kilometers="12"))
    checked = check_category_fields(fields, CategoryKind.AREA)

    assert checked.acre == Decimal("4")
    assert checked.gunta == Decimal("160.000")
    assert checked.pickup_location is None
    assert checked.kilometers is None


def test_gunta_only_booking_derives_acre(booking_data):
    checked = check_category_fields(parse_fields(booking_data(acre=None, gunta="10")), CategoryKind.AREA)
    assert checked.acre == Decimal("0.2500")


def test_distance_booking_clears_area_fields(booking_data):
    fields = parse_fields(
        booking_data(
            workCategory="Customize",
            pickupLocation="Farm",
            deliveryLocation="Mandi",
            kilometers="30",
        )
    )
    checked = check_category_fields(fields, CategoryKind.DISTANCE_CUSTOM)

    assert checked.kilometers == Decimal("30")
    assert checked.acre is None
    assert checked.seven_twelve_number is None
    assert checked.khata_number is None


def test_format_errors_are_reported_by_wire_name(booking_data):
    with pytest.raises(ValidationError) as exc_info:
        parse_fields(booking_data(contactNumber="12345", pincode="41221", email="not-an-email"))
    assert set(exc_info.value.fields) == {"contactNumber", "pincode", "email"}


def test_blank_optional_inputs_become_none(booking_data):
    fields = AppointmentFields.model_validate(booking_data(email="", remark="", time="11:30"))

    assert fields.email is None
    assert fields.remark is None
    assert fields.time == ["11:30"]
    assert fields.payment_mode is PaymentMode.ONLINE


def test_malformed_slot_is_rejected(booking_data):
    with pytest.raises(ValidationError) as exc_info:
        parse_fields(booking_data(time=["25:00"]))
    assert exc_info.value.fields == ["time"]
