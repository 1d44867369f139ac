"""Work-category rate table."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from src.core.config import Settings, settings
from src.core.exceptions import ValidationError
from src.shared.enums import CategoryKind


@dataclass(frozen=True)
class RateEntry:
    name: str
    rate: Decimal
    kind: CategoryKind


class RateTable:
    """Lookup from work-category name to its pricing rule."""

    def __init__(self, entries: Iterable[RateEntry]):
        self._entries = {entry.name: entry for entry in entries}

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> RateTable:
        config = config or settings
        entries = []
        for item in config.work_categories:
            kind = CategoryKind(item.kind) if item.kind else CategoryKind.infer(item.name)
            entries.append(RateEntry(name=item.name, rate=Decimal(item.rate), kind=kind))
        return cls(entries)

    def get(self, category: str) -> RateEntry:
        entry = self._entries.get(category)
        if entry is None:
            raise ValidationError(["workCategory"], f"Unknown work category '{category}'")
        return entry

    def kind_of(self, category: str) -> CategoryKind:
        """Kind from the table, falling back to the name-based default for unlisted categories."""
        entry = self._entries.get(category)
        return entry.kind if entry else CategoryKind.infer(category)

    def __contains__(self, category: str) -> bool:
        return category in self._entries

    def __iter__(self):
        return iter(self._entries.values())
