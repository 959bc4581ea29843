import logging
from typing import Any, Optional

from coffee_mcp.config import CoffeeConfig
from coffee_mcp.core.pricing import format_money
from coffee_mcp.state import ServerState

logger = logging.getLogger(__name__)


async def get_menu(
    state: ServerState,
    config: CoffeeConfig,
    category_id: Optional[int] = None,
    query: str = "",
) -> dict[str, Any]:
    """List categories and the products of one category, optionally filtered by name."""
    try:
        catalog = state.catalog
        if category_id is None and catalog.categories:
            category_id = catalog.categories[0].id

        query_lower = query.strip().lower()
        products = []
        for index, product in enumerate(catalog.products):
            if product.category != category_id:
                continue
            if query_lower and query_lower not in product.name.lower():
                continue
            products.append(
                {
                    "product_index": index,
                    "name": product.name,
                    "price": product.base_price,
                    "price_display": format_money(product.base_price, config.display.currency_symbol),
                }
            )

        return {
            "success": True,
            "active_category": category_id,
            "categories": [{"id": c.id, "name": c.name} for c in catalog.categories],
            "products": products,
            "result_count": len(products),
        }

    except Exception as e:
        logger.exception("Error listing menu")
        return {"success": False, "error": str(e), "code": "MENU_FAILED"}
