"""The active order: a by-value snapshot of the cart, replaced in place on every change."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from coffee_mcp.core.cart import Cart, as_number, as_qty, totals


class Stage(str, Enum):
    ORDERED = "Ordered"
    PREPARING = "Preparing"
    FINISHING = "Finishing"
    SERVED = "Served"


@dataclass
class OrderItem:
    product_index: int
    name: str
    options_summary: str
    qty: int
    unit_price: float
    total_price: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "productIndex": self.product_index,
            "name": self.name,
            "optionsSummary": self.options_summary,
            "qty": self.qty,
            "unitPrice": self.unit_price,
            "totalPrice": self.total_price,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderItem":
        return cls(
            product_index=int(data.get("productIndex", data.get("index", 0))),
            name=str(data.get("name", "")),
            options_summary=str(data.get("optionsSummary", data.get("options", ""))),
            qty=as_qty(data["qty"]),
            unit_price=as_number(data["unitPrice"]),
            total_price=as_number(data["totalPrice"]),
        )


@dataclass
class Order:
    id: str
    created_at: str
    items: list[OrderItem] = field(default_factory=list)
    subtotal: float = 0
    discount_percent: float = 0
    discount: float = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "discountPercent": self.discount_percent,
            "discount": self.discount,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        created_at = data.get("createdAt")
        if created_at is None and isinstance(data.get("timestamp"), (int, float)):
            # Older records carry a millisecond epoch "timestamp" instead.
            created_at = datetime.fromtimestamp(data["timestamp"] / 1000, tz=timezone.utc).isoformat()
        return cls(
            id=str(data["id"]),
            created_at=str(created_at or _utc_now_iso()),
            items=[OrderItem.from_dict(item) for item in data.get("items", [])],
            subtotal=as_number(data.get("subtotal", 0)),
            discount_percent=as_number(data.get("discountPercent") or 0),
            discount=as_number(data.get("discount") or 0),
        )


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _snapshot(cart: Cart) -> list[OrderItem]:
    return [
        OrderItem(
            product_index=line.product_index,
            name=line.name,
            options_summary=line.options_summary,
            qty=line.qty,
            unit_price=line.unit_price,
            total_price=line.total_price,
        )
        for line in cart.items
    ]


def sync_from_cart(current: Optional[Order], cart: Cart) -> Order:
    """Create the active order, or refresh its items and subtotal keeping id and createdAt."""
    items = _snapshot(cart)
    subtotal = totals(cart)["total"]
    if current is None:
        return Order(id=uuid4().hex, created_at=_utc_now_iso(), items=items, subtotal=subtotal)
    return Order(
        id=current.id,
        created_at=current.created_at,
        items=items,
        subtotal=subtotal,
        discount_percent=current.discount_percent,
        discount=current.discount,
    )


def load_active_order(raw: Any) -> Optional[Order]:
    """Read the orders namespace. A legacy sequence yields its last element."""
    if isinstance(raw, list):
        raw = raw[-1] if raw else None
    if not isinstance(raw, dict):
        return None
    try:
        return Order.from_dict(raw)
    except (KeyError, TypeError, ValueError, AttributeError):
        return None


def dump_active_order(order: Optional[Order]) -> list[dict[str, Any]]:
    """Written as a sequence of at most one order so older readers still find it last."""
    return [order.to_dict()] if order is not None else []


def stage_buckets(order: Optional[Order]) -> dict[Stage, list[OrderItem]]:
    buckets: dict[Stage, list[OrderItem]] = {stage: [] for stage in Stage}
    if order is not None:
        buckets[Stage.ORDERED] = list(order.items)
    return buckets


def order_summary(order: Optional[Order]) -> dict[str, float]:
    if order is None:
        return {"subtotal": 0, "discount_percent": 0, "discount": 0, "total": 0}
    discount = order.subtotal * order.discount_percent / 100
    return {
        "subtotal": order.subtotal,
        "discount_percent": order.discount_percent,
        "discount": discount,
        "total": order.subtotal - discount,
    }
