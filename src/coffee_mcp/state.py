import logging
from dataclasses import dataclass, field
from typing import Optional

from coffee_mcp.config import StorageSettings
from coffee_mcp.core.cart import Cart
from coffee_mcp.core.catalog import Catalog
from coffee_mcp.core.orders import Order, dump_active_order, load_active_order, sync_from_cart
from coffee_mcp.core.preferences import PreferenceRecord
from coffee_mcp.core.storage import JsonStore

logger = logging.getLogger(__name__)


@dataclass
class ServerState:
    """Session state: the read-only catalog plus the persisted cart, preferences and order.

    Values are loaded once from the store; every mutation writes its whole
    namespace back. If a write fails the in-memory value stays authoritative.
    """

    catalog: Catalog
    store: JsonStore
    keys: StorageSettings = field(default_factory=StorageSettings)
    cart: Cart = field(default_factory=Cart)
    preferences: dict[str, PreferenceRecord] = field(default_factory=dict)
    order: Optional[Order] = None

    def __post_init__(self):
        self._load()

    def _load(self):
        self.cart = Cart.from_dict(self.store.load(self.keys.cart_key, {"items": []}))
        raw_prefs = self.store.load(self.keys.preferences_key, {})
        if not isinstance(raw_prefs, dict):
            raw_prefs = {}
        self.preferences = {
            str(index): PreferenceRecord.from_raw(raw) for index, raw in raw_prefs.items()
        }
        self.order = load_active_order(self.store.load(self.keys.orders_key, []))
        logger.debug(
            f"Session loaded: {len(self.cart.items)} cart lines, "
            f"{len(self.preferences)} preferences, order={'yes' if self.order else 'no'}"
        )

    def preference(self, product_index: int) -> PreferenceRecord:
        """Return the product's preference, creating the default on first view."""
        key = str(product_index)
        if key not in self.preferences:
            self.preferences[key] = PreferenceRecord()
        pref = self.preferences[key].conform(self.catalog)
        self.preferences[key] = pref
        return pref

    def save_preferences(self) -> bool:
        data = {index: pref.to_dict() for index, pref in self.preferences.items()}
        return self.store.save(self.keys.preferences_key, data)

    def commit_cart(self, cart: Cart) -> bool:
        """Replace the cart, persist it, and refresh or clear the active order."""
        order = sync_from_cart(self.order, cart) if cart.items else None
        self.cart = cart
        self.order = order
        saved = self.store.save(self.keys.cart_key, cart.to_dict())
        return self.save_order() and saved

    def save_order(self) -> bool:
        return self.store.save(self.keys.orders_key, dump_active_order(self.order))

    def clear_all(self) -> bool:
        self.order = None
        order_saved = self.save_order()
        self.cart = Cart()
        cart_saved = self.store.save(self.keys.cart_key, self.cart.to_dict())
        return order_saved and cart_saved
