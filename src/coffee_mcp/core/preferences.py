"""Per-product option preferences and migration of legacy encodings.

Older clients stored option selections by name (``"tall"``, ``"oat"``,
``["sugar"]``); current records store numeric catalog ids. ``migrate``
upgrades any stored record to the id form and is safe to run repeatedly.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from coffee_mcp.core.catalog import Catalog

MIN_QTY = 1
MAX_QTY = 99
DEFAULT_OPTION_ID = 1

SIZE_IDS = {"short": 1, "tall": 2, "grande": 3, "venti": 4}
MILK_IDS = {"oat": 1, "soy": 2, "almond": 3}
EXTRA_IDS = {"sugar": 1, "milk": 2}


def clamp_qty(qty: int) -> int:
    return max(MIN_QTY, min(MAX_QTY, qty))


def _as_id(value: Any) -> Optional[int]:
    """Integers and integral floats (2.0) are ids; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _option_id(value: Any, table: dict[str, int]) -> Optional[int]:
    """Numeric ids pass through, known legacy names map, anything else is None."""
    option_id = _as_id(value)
    if option_id is not None:
        return option_id
    if isinstance(value, str):
        return table.get(value.strip().lower())
    return None


def migrate(record: Any) -> dict[str, Any]:
    """Upgrade a stored preference record to numeric option ids.

    Never raises: unknown sizes and milks fall back to the default id,
    unknown extras are dropped, and a malformed quantity becomes 1.
    """
    if not isinstance(record, dict):
        record = {}

    size = _option_id(record.get("size"), SIZE_IDS)
    milk = _option_id(record.get("milk"), MILK_IDS)

    extras: list[int] = []
    raw_extras = record.get("extras")
    if isinstance(raw_extras, (list, tuple)):
        for raw in raw_extras:
            extra = _option_id(raw, EXTRA_IDS)
            if extra is not None and extra not in extras:
                extras.append(extra)

    qty = _as_id(record.get("qty"))
    return {
        "size": DEFAULT_OPTION_ID if size is None else size,
        "milk": DEFAULT_OPTION_ID if milk is None else milk,
        "extras": extras,
        "qty": MIN_QTY if qty is None else clamp_qty(qty),
    }


@dataclass
class PreferenceRecord:
    size: int = DEFAULT_OPTION_ID
    milk: int = DEFAULT_OPTION_ID
    extras: list[int] = field(default_factory=list)
    qty: int = MIN_QTY

    @classmethod
    def from_raw(cls, raw: Any) -> "PreferenceRecord":
        return cls(**migrate(raw))

    def to_dict(self) -> dict[str, Any]:
        return {"size": self.size, "milk": self.milk, "extras": list(self.extras), "qty": self.qty}

    def conform(self, catalog: Catalog) -> "PreferenceRecord":
        """Replace ids the catalog does not know with its first entry; drop unknown extras."""
        size = catalog.resolve_or_default("sizes", self.size)
        milk = catalog.resolve_or_default("milks", self.milk)
        return PreferenceRecord(
            size=size.id if size else self.size,
            milk=milk.id if milk else self.milk,
            extras=[e for e in self.extras if catalog.resolve("extras", e) is not None],
            qty=clamp_qty(self.qty),
        )

    def select(self, group: str, option_id: int) -> None:
        """Apply one chip interaction: set size/milk, or toggle an extra."""
        if group == "size":
            self.size = option_id
        elif group == "milk":
            self.milk = option_id
        elif group == "extra":
            if option_id in self.extras:
                self.extras.remove(option_id)
            else:
                self.extras.append(option_id)
        else:
            raise ValueError(f"Unknown option group {group!r}")

    def adjust_qty(self, delta: int) -> None:
        self.qty = clamp_qty(self.qty + delta)
