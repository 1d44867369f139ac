"""Shared enumerations used across modules."""

from __future__ import annotations

from enum import StrEnum
from typing import Iterable, TypeVar

EnumType = TypeVar("EnumType", bound=StrEnum)


def enum_values(enum_cls: Iterable[EnumType]) -> list[str]:
    """Return the .value for each enum member (used by SQLAlchemy)."""
    return [member.value for member in enum_cls]


class UserRole(StrEnum):
    ADMIN = "admin"
    STAFF = "staff"


class PaymentStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMode(StrEnum):
    ONLINE = "online"
    CASH = "cash"


class CategoryKind(StrEnum):
    """Pricing/required-field variant selected by a work category."""

    AREA = "area"
    DISTANCE_TRANSPORT = "distance-transport"
    DISTANCE_CUSTOM = "distance-custom"

    @property
    def is_distance(self) -> bool:
        return self is not CategoryKind.AREA

    @classmethod
    def infer(cls, category: str) -> "CategoryKind":
        if category == "Transport":
            return cls.DISTANCE_TRANSPORT
        if category == "Customize":
            return cls.DISTANCE_CUSTOM
        return cls.AREA
