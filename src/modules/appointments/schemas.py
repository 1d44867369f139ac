"""Appointments schemas.

``AppointmentFields`` is the one field-rule set shared by every write path
(cash booking, payment verification, admin edit). Format rules live on the
model; rules that depend on the work category live in
``REQUIRED_FIELDS_BY_KIND`` and are applied by ``check_category_fields``.
"""

import datetime as dt
from decimal import Decimal
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

from src.core.exceptions import ValidationError
from src.modules.pricing.engine import GUNTA_PER_ACRE
from src.shared.enums import CategoryKind, PaymentMode, PaymentStatus
from src.shared.schemas import CamelModel

CONTACT_NUMBER_PATTERN = r"^\+?\d{10,13}$"
PINCODE_PATTERN = r"^[0-9]{6}$"
EMAIL_PATTERN = r"^\S+@\S+\.\S+$"
SLOT_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

Slot = Annotated[str, StringConstraints(strip_whitespace=True, pattern=SLOT_PATTERN)]
NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

AREA_FIELDS = ("area", "gunta", "acre", "seven_twelve_number", "khata_number")
DISTANCE_FIELDS = ("pickup_location", "delivery_location", "kilometers")

REQUIRED_FIELDS_BY_KIND: dict[CategoryKind, tuple[str, ...]] = {
    CategoryKind.AREA: ("seven_twelve_number",),
    CategoryKind.DISTANCE_TRANSPORT: DISTANCE_FIELDS,
    CategoryKind.DISTANCE_CUSTOM: DISTANCE_FIELDS,
}


class AppointmentFields(CamelModel):
    name: NonEmpty
    email: str | None = Field(None, pattern=EMAIL_PATTERN)
    contact_number: str = Field(..., pattern=CONTACT_NUMBER_PATTERN)
    address: NonEmpty
    village: NonEmpty
    pincode: str = Field(..., pattern=PINCODE_PATTERN)
    district: str | None = None
    state: str | None = None

    work_category: NonEmpty
    area: str | None = None
    gunta: Decimal | None = Field(None, ge=0)
    acre: Decimal | None = Field(None, ge=0)
    seven_twelve_number: str | None = None
    khata_number: str | None = None
    pickup_location: str | None = None
    delivery_location: str | None = None
    kilometers: Decimal | None = Field(None, ge=0)

    date: dt.date
    time: list[Slot] = Field(..., min_length=1)
    remark: str | None = None
    payment_mode: PaymentMode = PaymentMode.ONLINE

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        # HTML forms submit "" for untouched optional inputs and a bare string for one slot
        if not isinstance(data, dict):
            return data
        cleaned = {key: (None if value == "" else value) for key, value in data.items()}
        if isinstance(cleaned.get("time"), str):
            cleaned["time"] = [cleaned["time"]]
        return cleaned


def check_category_fields(fields: AppointmentFields, kind: CategoryKind) -> AppointmentFields:
    """Apply the category's required-field rules and return the canonical field set.

    The field group that does not belong to ``kind`` is cleared, and gunta/acre
    are derived from each other with acre taking precedence.
    """
    missing = [name for name in REQUIRED_FIELDS_BY_KIND[kind] if getattr(fields, name) in (None, "")]
    if kind is CategoryKind.AREA and not fields.gunta and not fields.acre:
        missing.extend(["gunta", "acre"])
    if missing:
        raise ValidationError([to_camel(name) for name in missing])

    if kind.is_distance:
        update: dict[str, Any] = {name: None for name in AREA_FIELDS}
    else:
        update = {name: None for name in DISTANCE_FIELDS}
        if fields.acre:
            update["gunta"] = (fields.acre * GUNTA_PER_ACRE).quantize(Decimal("0.001"))
        else:
            update["acre"] = (fields.gunta / GUNTA_PER_ACRE).quantize(Decimal("0.0001"))
    return fields.model_copy(update=update)


class AppointmentUpdate(AppointmentFields):
    """Admin edit: the full field set plus status flags; payment identifiers are not editable."""

    payment_status: PaymentStatus | None = None
    attempted: bool | None = None


class AppointmentPublic(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    appointment_id: str = Field(
        validation_alias=AliasChoices("appointment_id", "id"),
        serialization_alias="id",
    )
    name: str
    email: str | None = None
    contact_number: str
    address: str
    village: str
    pincode: str
    district: str
    state: str
    work_category: str
    area: str | None = None
    gunta: Decimal | None = None
    acre: Decimal | None = None
    seven_twelve_number: str | None = None
    khata_number: str | None = None
    pickup_location: str | None = None
    delivery_location: str | None = None
    kilometers: Decimal | None = None
    date: dt.date
    time: list[str]
    remark: str | None = None
    amount: Decimal | None = None
    payment_mode: PaymentMode
    payment_status: PaymentStatus
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    attempted: bool
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class AttemptedUpdate(CamelModel):
    """``attempted`` omitted or null toggles the current value."""

    attempted: bool | None = None


class BulkAttemptedRequest(CamelModel):
    appointment_ids: list[str] = Field(..., min_length=1)


class BulkFailure(CamelModel):
    id: str
    reason: str


class BulkAttemptedResult(CamelModel):
    updated: int
    failed: list[BulkFailure] = Field(default_factory=list)


class QuoteResponse(CamelModel):
    amount: Decimal
    amount_minor_units: int
    currency: str


class CreateOrderRequest(CamelModel):
    amount: int | None = Field(None, ge=0)
    currency: str | None = None
    slots: list[Slot] = Field(..., min_length=1)
    date: dt.date
    form_data: AppointmentFields | None = None


class OrderCreated(CamelModel):
    order_id: str
    amount: int
    currency: str


class VerifyPaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    razorpay_order_id: NonEmpty
    razorpay_payment_id: NonEmpty
    razorpay_signature: NonEmpty
    form_data: AppointmentFields = Field(..., alias="formData")


class SlotOption(CamelModel):
    time: str
    label: str
    booked: bool


class BookedSlots(CamelModel):
    date: dt.date
    booked_slots: list[str]
