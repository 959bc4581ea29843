import logging
from typing import Any

from coffee_mcp.config import CoffeeConfig
from coffee_mcp.core.catalog import to_display_name
from coffee_mcp.core.pricing import format_money, unit_price
from coffee_mcp.state import ServerState

logger = logging.getLogger(__name__)

OPTION_COLLECTIONS = {"size": "sizes", "milk": "milks", "extra": "extras"}


def _invalid_product(state: ServerState, product_index: int) -> dict[str, Any]:
    return {
        "success": False,
        "error": f"Invalid product index {product_index}. Menu has {len(state.catalog.products)} products.",
        "code": "INVALID_PRODUCT",
    }


def product_view(state: ServerState, config: CoffeeConfig, product_index: int) -> dict[str, Any]:
    catalog = state.catalog
    product = catalog.product(product_index)
    pref = state.preference(product_index)
    price = unit_price(catalog, product, pref.size)
    return {
        "success": True,
        "product_index": product_index,
        "name": product.name,
        "description": product.description,
        "image": product.image,
        "preference": pref.to_dict(),
        "options_summary": to_display_name(catalog, pref.size, pref.milk, pref.extras),
        "unit_price": price,
        "price_display": format_money(price, config.display.currency_symbol),
        "options": {
            "sizes": [{"id": o.id, "name": o.name, "selected": o.id == pref.size} for o in catalog.options.sizes],
            "milks": [{"id": o.id, "name": o.name, "selected": o.id == pref.milk} for o in catalog.options.milks],
            "extras": [{"id": o.id, "name": o.name, "selected": o.id in pref.extras} for o in catalog.options.extras],
        },
    }


async def get_product(
    state: ServerState,
    config: CoffeeConfig,
    product_index: int,
) -> dict[str, Any]:
    """Show a product with its remembered option selection and current price."""
    try:
        if state.catalog.product(product_index) is None:
            return _invalid_product(state, product_index)
        return product_view(state, config, product_index)

    except Exception as e:
        logger.exception("Error loading product")
        return {"success": False, "error": str(e), "code": "PRODUCT_FAILED"}


async def select_option(
    state: ServerState,
    config: CoffeeConfig,
    product_index: int,
    group: str,
    option_id: int,
) -> dict[str, Any]:
    """Choose a size or milk, or toggle an extra, for one product."""
    try:
        if state.catalog.product(product_index) is None:
            return _invalid_product(state, product_index)

        collection = OPTION_COLLECTIONS.get(group)
        if collection is None:
            return {
                "success": False,
                "error": f"Unknown option group {group!r}. Use one of: size, milk, extra.",
                "code": "INVALID_GROUP",
            }
        if state.catalog.resolve(collection, option_id) is None:
            return {
                "success": False,
                "error": f"No {group} option with id {option_id}.",
                "code": "INVALID_OPTION",
            }

        state.preference(product_index).select(group, option_id)
        persisted = state.save_preferences()

        result = product_view(state, config, product_index)
        result["persisted"] = persisted
        return result

    except Exception as e:
        logger.exception("Error selecting option")
        return {"success": False, "error": str(e), "code": "SELECT_FAILED"}


async def adjust_product_quantity(
    state: ServerState,
    config: CoffeeConfig,
    product_index: int,
    delta: int,
) -> dict[str, Any]:
    """Change the quantity that will be added to the cart. Stays within 1-99."""
    try:
        if state.catalog.product(product_index) is None:
            return _invalid_product(state, product_index)

        state.preference(product_index).adjust_qty(delta)
        persisted = state.save_preferences()

        result = product_view(state, config, product_index)
        result["persisted"] = persisted
        return result

    except Exception as e:
        logger.exception("Error adjusting product quantity")
        return {"success": False, "error": str(e), "code": "QUANTITY_FAILED"}
