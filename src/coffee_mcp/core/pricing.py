"""Unit pricing.

Prices are whole currency units. The size multiplier is applied in decimal
arithmetic and rounded half away from zero, so 100 * 1.1 is exactly 110 and
a .5 result always rounds up.
"""

from decimal import ROUND_HALF_UP, Decimal

from coffee_mcp.core.catalog import Catalog, Product

DEFAULT_MULTIPLIER = 1


def unit_price(catalog: Catalog, product: Product, size_id: int) -> int:
    size = catalog.resolve("sizes", size_id)
    mult = size.mult if size is not None and size.mult is not None else DEFAULT_MULTIPLIER
    amount = Decimal(str(product.base_price)) * Decimal(str(mult))
    return max(0, int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)))


def format_money(amount: float, symbol: str = "₹") -> str:
    whole = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{symbol}{int(whole)}"
