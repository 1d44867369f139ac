"""Identifier helpers: 24-character hex ObjectIds (timestamp prefix + random tail)."""

from bson import ObjectId

ID_LENGTH = 24


def generate_id() -> str:
    """Return a new id. Ids created later sort after earlier ones."""
    return str(ObjectId())


def is_valid_id(value: str) -> bool:
    # ObjectId.is_valid also accepts 12-byte strings; only the hex form is an id here
    return (
        isinstance(value, str)
        and len(value) == ID_LENGTH
        and value == value.lower()
        and ObjectId.is_valid(value)
    )
