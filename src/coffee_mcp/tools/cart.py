import logging
from typing import Any

from coffee_mcp.config import CoffeeConfig
from coffee_mcp.core import cart as cart_engine
from coffee_mcp.core.cart import CartLineNotFound
from coffee_mcp.core.pricing import format_money
from coffee_mcp.state import ServerState

logger = logging.getLogger(__name__)

ITEM_ACTIONS = {"increase": 1, "decrease": -1}


def cart_view(state: ServerState, config: CoffeeConfig) -> dict[str, Any]:
    symbol = config.display.currency_symbol
    totals = cart_engine.totals(state.cart)
    return {
        "success": True,
        "items": [
            {
                **line.to_dict(),
                "total_display": format_money(line.total_price, symbol),
            }
            for line in state.cart.items
        ],
        "total_qty": totals["qty"],
        "total_price": totals["total"],
        "total_display": format_money(totals["total"], symbol),
    }


def _missing_line(key: str) -> dict[str, Any]:
    return {
        "success": False,
        "error": f"No cart line with key {key!r}. Call get_cart for current keys.",
        "code": "INVALID_KEY",
    }


async def get_cart(
    state: ServerState,
    config: CoffeeConfig,
) -> dict[str, Any]:
    """View the current cart contents and running total."""
    return cart_view(state, config)


async def add_to_cart(
    state: ServerState,
    config: CoffeeConfig,
    product_index: int,
) -> dict[str, Any]:
    """Add a product with its current option selection, merging into a matching line."""
    try:
        if state.catalog.product(product_index) is None:
            return {
                "success": False,
                "error": f"Invalid product index {product_index}.",
                "code": "INVALID_PRODUCT",
            }

        pref = state.preference(product_index)
        line = cart_engine.build_line(state.catalog, product_index, pref)
        persisted = state.commit_cart(cart_engine.add_or_merge(state.cart, line))
        logger.info(f"Added {line.key} x{line.qty} to cart")

        result = cart_view(state, config)
        result["added_key"] = line.key
        result["persisted"] = persisted
        return result

    except Exception as e:
        logger.exception("Error adding to cart")
        return {"success": False, "error": str(e), "code": "ADD_FAILED"}


async def adjust_quantity(
    state: ServerState,
    config: CoffeeConfig,
    key: str,
    delta: int,
) -> dict[str, Any]:
    """Change a cart line's quantity by ``delta``, keeping it within 1-99."""
    try:
        new_cart = cart_engine.adjust_qty(state.cart, key, delta)
    except CartLineNotFound:
        return _missing_line(key)

    try:
        persisted = state.commit_cart(new_cart)
        result = cart_view(state, config)
        result["persisted"] = persisted
        return result

    except Exception as e:
        logger.exception("Error adjusting cart quantity")
        return {"success": False, "error": str(e), "code": "ADJUST_FAILED"}


async def remove_from_cart(
    state: ServerState,
    config: CoffeeConfig,
    key: str,
) -> dict[str, Any]:
    """Remove a cart line. Removing the last line clears the active order."""
    try:
        new_cart = cart_engine.remove(state.cart, key)
    except CartLineNotFound:
        return _missing_line(key)

    try:
        persisted = state.commit_cart(new_cart)
        result = cart_view(state, config)
        result["removed_key"] = key
        result["persisted"] = persisted
        return result

    except Exception as e:
        logger.exception("Error removing from cart")
        return {"success": False, "error": str(e), "code": "REMOVE_FAILED"}


async def update_cart_item(
    state: ServerState,
    config: CoffeeConfig,
    key: str,
    action: str,
) -> dict[str, Any]:
    """Apply a single cart button press: increase, decrease or remove."""
    if action == "remove":
        return await remove_from_cart(state, config, key)
    if action not in ITEM_ACTIONS:
        return {
            "success": False,
            "error": f"Unknown action {action!r}. Use increase, decrease or remove.",
            "code": "INVALID_ACTION",
        }
    return await adjust_quantity(state, config, key, ITEM_ACTIONS[action])


async def clear_cart(
    state: ServerState,
    config: CoffeeConfig,
) -> dict[str, Any]:
    """Empty the entire cart. The active order is cleared with it."""
    persisted = state.commit_cart(cart_engine.Cart())
    result = cart_view(state, config)
    result["persisted"] = persisted
    result["message"] = "Cart cleared."
    return result
