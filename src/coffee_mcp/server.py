import json
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

from mcp.server.fastmcp import FastMCP, Context

from coffee_mcp.config import CoffeeConfig, load_config
from coffee_mcp.core.catalog import CatalogLoadError, fetch_catalog
from coffee_mcp.core.storage import JsonStore
from coffee_mcp.state import ServerState
from coffee_mcp.tools.cart import add_to_cart, clear_cart, get_cart, remove_from_cart, update_cart_item
from coffee_mcp.tools.menu import get_menu
from coffee_mcp.tools.order import checkout, delete_all_orders, get_order_status
from coffee_mcp.tools.product import adjust_product_quantity, get_product, select_option

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(server: FastMCP):
    """Load config and catalog, then restore the persisted session."""
    logger.info("Starting coffee ordering MCP server...")

    try:
        config = load_config()
        logger.info("Config loaded successfully")
    except FileNotFoundError as e:
        logger.error(str(e))
        raise

    try:
        catalog = fetch_catalog(config.catalog)
    except CatalogLoadError as e:
        logger.error(f"Catalog unavailable, not starting: {e}")
        raise

    state = ServerState(
        catalog=catalog,
        store=JsonStore(config.storage.state_dir),
        keys=config.storage,
    )

    yield {"config": config, "state": state}

    logger.info("Shutting down coffee ordering MCP server")


host = os.environ.get("HOST", "0.0.0.0")
port = int(os.environ.get("PORT", "8000"))

mcp = FastMCP(
    "Coffee Ordering MCP Server",
    lifespan=lifespan,
    host=host,
    port=port,
)


def _get_deps(ctx) -> tuple[ServerState, CoffeeConfig]:
    """Extract state and config from the MCP context."""
    state = ctx.request_context.lifespan_context["state"]
    config = ctx.request_context.lifespan_context["config"]
    return state, config


# --- Menu & Product Tools ---


@mcp.tool()
async def tool_get_menu(
    ctx: Context,
    category_id: Optional[int] = None,
    query: str = "",
) -> str:
    """List menu categories and the products in one category.
    Defaults to the first category. query filters products by name (case-insensitive).
    Returns product_index values used by every other tool."""
    state, config = _get_deps(ctx)
    result = await get_menu(state, config, category_id, query)
    return json.dumps(result)


@mcp.tool()
async def tool_get_product(ctx: Context, product_index: int) -> str:
    """Show a product, its remembered size/milk/extras/quantity selection and unit price."""
    state, config = _get_deps(ctx)
    result = await get_product(state, config, product_index)
    return json.dumps(result)


@mcp.tool()
async def tool_select_option(
    ctx: Context,
    product_index: int,
    group: str,
    option_id: int,
) -> str:
    """Change a product's option selection. group is 'size', 'milk' or 'extra'.
    Size and milk replace the current choice; an extra is toggled on or off."""
    state, config = _get_deps(ctx)
    result = await select_option(state, config, product_index, group, option_id)
    return json.dumps(result)


@mcp.tool()
async def tool_adjust_product_quantity(ctx: Context, product_index: int, delta: int) -> str:
    """Change how many of a product the next add_to_cart adds. Kept within 1-99."""
    state, config = _get_deps(ctx)
    result = await adjust_product_quantity(state, config, product_index, delta)
    return json.dumps(result)


# --- Cart Tools ---


@mcp.tool()
async def tool_get_cart(ctx: Context) -> str:
    """View the current cart contents and running total."""
    state, config = _get_deps(ctx)
    result = await get_cart(state, config)
    return json.dumps(result)


@mcp.tool()
async def tool_add_to_cart(ctx: Context, product_index: int) -> str:
    """Add a product to the cart using its current option selection and quantity.
    Adding the same product with the same options again merges into one line."""
    state, config = _get_deps(ctx)
    result = await add_to_cart(state, config, product_index)
    return json.dumps(result)


@mcp.tool()
async def tool_update_cart_item(ctx: Context, key: str, action: str) -> str:
    """Press a cart line button. action is 'increase', 'decrease' or 'remove'.
    key comes from get_cart."""
    state, config = _get_deps(ctx)
    result = await update_cart_item(state, config, key, action)
    return json.dumps(result)


@mcp.tool()
async def tool_remove_from_cart(ctx: Context, key: str) -> str:
    """Remove a cart line by its key (from get_cart response)."""
    state, config = _get_deps(ctx)
    result = await remove_from_cart(state, config, key)
    return json.dumps(result)


@mcp.tool()
async def tool_clear_cart(ctx: Context) -> str:
    """Empty the entire cart. Also clears the active order."""
    state, config = _get_deps(ctx)
    result = await clear_cart(state, config)
    return json.dumps(result)


# --- Order Tools ---


@mcp.tool()
async def tool_checkout(ctx: Context) -> str:
    """Update the active order from the cart. Does not take payment.
    Checking out again after changing the cart updates the same order."""
    state, config = _get_deps(ctx)
    result = await checkout(state, config)
    return json.dumps(result)


@mcp.tool()
async def tool_get_order_status(ctx: Context) -> str:
    """Show the active order by stage (Ordered, Preparing, Finishing, Served) with totals."""
    state, config = _get_deps(ctx)
    result = await get_order_status(state, config)
    return json.dumps(result)


@mcp.tool()
async def tool_delete_all_orders(ctx: Context) -> str:
    """Discard the active order and empty the cart."""
    state, config = _get_deps(ctx)
    result = await delete_all_orders(state, config)
    return json.dumps(result)


if __name__ == "__main__":
    logger.info(f"Starting MCP server on {host}:{port}")
    mcp.run(transport="streamable-http")
