import logging
from typing import Any

from coffee_mcp.config import CoffeeConfig
from coffee_mcp.core.orders import order_summary, stage_buckets
from coffee_mcp.core.pricing import format_money
from coffee_mcp.state import ServerState

logger = logging.getLogger(__name__)

ORDERED_TIME_LABEL = "JUST NOW"


def order_status_view(state: ServerState, config: CoffeeConfig) -> dict[str, Any]:
    symbol = config.display.currency_symbol
    order = state.order
    summary = order_summary(order)

    stages = []
    for stage, items in stage_buckets(order).items():
        stages.append(
            {
                "stage": stage.value,
                "empty": not items,
                "items": [{"product_index": i.product_index, "name": i.name, "qty": i.qty} for i in items],
            }
        )

    return {
        "success": True,
        "has_order": order is not None,
        "order_id": order.id if order else None,
        "created_at": order.created_at if order else None,
        "ordered_time": ORDERED_TIME_LABEL if order else None,
        "stages": stages,
        "subtotal": summary["subtotal"],
        "discount_percent": summary["discount_percent"],
        "discount": summary["discount"],
        "total": summary["total"],
        "subtotal_display": format_money(summary["subtotal"], symbol),
        "discount_display": format_money(summary["discount"], symbol),
        "total_display": format_money(summary["total"], symbol),
    }


async def get_order_status(
    state: ServerState,
    config: CoffeeConfig,
) -> dict[str, Any]:
    """Show the active order grouped into its display stages."""
    return order_status_view(state, config)


async def checkout(
    state: ServerState,
    config: CoffeeConfig,
) -> dict[str, Any]:
    """Bring the active order up to date with the cart. Re-running updates the same order."""
    if not state.cart.items:
        return {
            "success": False,
            "error": "Cart is empty. Add items first.",
            "code": "EMPTY_CART",
        }

    try:
        persisted = state.commit_cart(state.cart)
        logger.info(f"Checkout synced order {state.order.id}")
        result = order_status_view(state, config)
        result["persisted"] = persisted
        return result

    except Exception as e:
        logger.exception("Error during checkout")
        return {"success": False, "error": str(e), "code": "CHECKOUT_FAILED"}


async def delete_all_orders(
    state: ServerState,
    config: CoffeeConfig,
) -> dict[str, Any]:
    """Discard the active order and empty the cart."""
    persisted = state.clear_all()
    result = order_status_view(state, config)
    result["persisted"] = persisted
    result["message"] = "Orders and cart cleared."
    return result
