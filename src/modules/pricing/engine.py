"""Price computation for bookings."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from src.core.config import Settings, settings
from src.core.exceptions import ValidationError
from src.modules.pricing.rates import RateEntry, RateTable
from src.shared.enums import CategoryKind

CENT = Decimal("0.01")
GUNTA_PER_ACRE = Decimal("40")


@dataclass
class PricingInputs:
    gunta: Decimal | None = None
    acre: Decimal | None = None
    kilometers: Decimal | None = None


def round_amount(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Convert a display amount to provider minor units (paise), rounding first."""
    return int(round_amount(amount) * 100)


def acres_from(gunta: Decimal | None, acre: Decimal | None) -> Decimal:
    if acre:
        return Decimal(acre)
    if gunta:
        return Decimal(gunta) / GUNTA_PER_ACRE
    raise ValidationError(["gunta", "acre"], "Please enter either gunta or acre.")


class PricingEngine:
    def __init__(self, rate_table: RateTable, config: Settings | None = None):
        config = config or settings
        self.rate_table = rate_table
        self.transport_minimum_fare = Decimal(config.transport_minimum_fare)
        self.customize_rate = Decimal(config.customize_rate)
        self.customize_minimum_fare = Decimal(config.customize_minimum_fare)
        self._formulas = {
            CategoryKind.AREA: self._area_price,
            CategoryKind.DISTANCE_TRANSPORT: self._transport_price,
            CategoryKind.DISTANCE_CUSTOM: self._custom_price,
        }

    def price(self, category: str, inputs: PricingInputs) -> Decimal:
        entry = self.rate_table.get(category)
        amount = self._formulas[entry.kind](entry, inputs)
        return round_amount(amount)

    def _area_price(self, entry: RateEntry, inputs: PricingInputs) -> Decimal:
        return entry.rate * acres_from(inputs.gunta, inputs.acre)

    def _transport_price(self, entry: RateEntry, inputs: PricingInputs) -> Decimal:
        round_trip = _kilometers(inputs) * 2
        return max(round_trip * entry.rate, self.transport_minimum_fare)

    def _custom_price(self, entry: RateEntry, inputs: PricingInputs) -> Decimal:
        amount = _kilometers(inputs) * self.customize_rate
        return amount if amount > self.customize_minimum_fare else self.customize_minimum_fare


def _kilometers(inputs: PricingInputs) -> Decimal:
    try:
        kilometers = Decimal(inputs.kilometers) if inputs.kilometers is not None else None
    except InvalidOperation as exc:
        raise ValidationError(["kilometers"]) from exc
    if kilometers is None or kilometers < 0:
        raise ValidationError(["kilometers"])
    return kilometers
