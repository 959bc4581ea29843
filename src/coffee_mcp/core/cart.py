"""Cart lines and the pure operations on them.

Every operation returns a new ``Cart`` and leaves its input untouched.
Line identity is the composite key built by ``build_key``.
"""

import math
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional

from coffee_mcp.core.catalog import Catalog, to_display_name
from coffee_mcp.core.preferences import MAX_QTY, PreferenceRecord, clamp_qty
from coffee_mcp.core.pricing import unit_price


class CartLineNotFound(KeyError):
    pass


def as_number(value: Any) -> float:
    """Return a stored price as a number, rejecting strings, booleans and nulls."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Expected a number, got {value!r}")
    if not math.isfinite(value):
        raise ValueError(f"Expected a finite number, got {value!r}")
    return value


def as_qty(value: Any) -> int:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected an integer quantity, got {value!r}")
    return value


@dataclass
class CartLine:
    key: str
    product_index: int
    name: str
    options_summary: str
    unit_price: float
    qty: int
    total_price: float

    def with_qty(self, qty: int) -> "CartLine":
        return replace(self, qty=qty, total_price=qty * self.unit_price)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "productIndex": self.product_index,
            "name": self.name,
            "optionsSummary": self.options_summary,
            "unitPrice": self.unit_price,
            "qty": self.qty,
            "totalPrice": self.total_price,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CartLine":
        # "index" and "options" are the field names older clients wrote.
        line = cls(
            key=str(data["key"]),
            product_index=int(data.get("productIndex", data.get("index", 0))),
            name=str(data.get("name", "")),
            options_summary=str(data.get("optionsSummary", data.get("options", ""))),
            unit_price=as_number(data["unitPrice"]),
            qty=as_qty(data["qty"]),
            total_price=as_number(data["totalPrice"]),
        )
        qty = clamp_qty(line.qty)
        if qty != line.qty or line.total_price != qty * line.unit_price:
            line = line.with_qty(qty)
        return line


@dataclass
class Cart:
    items: list[CartLine] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"items": [line.to_dict() for line in self.items]}

    @classmethod
    def from_dict(cls, data: Any) -> "Cart":
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            return cls()
        cart = cls()
        for raw in data["items"]:
            try:
                line = CartLine.from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError):
                continue
            # Lines sharing a key collapse into the first one.
            cart = add_or_merge(cart, line)
        return cart


def build_key(product_index: int, size: int, milk: int, extras: Iterable[int]) -> str:
    extras_part = ",".join(str(e) for e in sorted(extras))
    return f"{product_index}|{size}|{milk}|{extras_part}"


def build_line(catalog: Catalog, product_index: int, pref: PreferenceRecord) -> CartLine:
    product = catalog.product(product_index)
    if product is None:
        raise IndexError(f"No product at index {product_index}")
    price = unit_price(catalog, product, pref.size)
    return CartLine(
        key=build_key(product_index, pref.size, pref.milk, pref.extras),
        product_index=product_index,
        name=product.name,
        options_summary=to_display_name(catalog, pref.size, pref.milk, pref.extras),
        unit_price=price,
        qty=pref.qty,
        total_price=price * pref.qty,
    )


def find_line(cart: Cart, key: str) -> Optional[CartLine]:
    for line in cart.items:
        if line.key == key:
            return line
    return None


def add_or_merge(cart: Cart, line: CartLine) -> Cart:
    """Merge ``line`` into an existing line with the same key, or append it."""
    items = list(cart.items)
    for i, existing in enumerate(items):
        if existing.key == line.key:
            items[i] = existing.with_qty(min(existing.qty + line.qty, MAX_QTY))
            return Cart(items=items)
    items.append(line)
    return Cart(items=items)


def adjust_qty(cart: Cart, key: str, delta: int) -> Cart:
    items = list(cart.items)
    for i, line in enumerate(items):
        if line.key == key:
            items[i] = line.with_qty(clamp_qty(line.qty + delta))
            return Cart(items=items)
    raise CartLineNotFound(key)


def remove(cart: Cart, key: str) -> Cart:
    if find_line(cart, key) is None:
        raise CartLineNotFound(key)
    return Cart(items=[line for line in cart.items if line.key != key])


def totals(cart: Cart) -> dict[str, float]:
    # Sums stored line totals rather than recomputing unit_price * qty.
    return {
        "qty": sum(line.qty for line in cart.items),
        "total": sum(line.total_price for line in cart.items),
    }
