from coffee_mcp.core.cart import Cart, add_or_merge, adjust_qty, build_line
from coffee_mcp.core.orders import (
    Order,
    Stage,
    dump_active_order,
    load_active_order,
    order_summary,
    stage_buckets,
    sync_from_cart,
)
from coffee_mcp.core.preferences import PreferenceRecord


def _cart(catalog):
    return add_or_merge(Cart(), build_line(catalog, 0, PreferenceRecord(size=2, qty=2)))


def test_first_sync_creates_order(catalog):
    order = sync_from_cart(None, _cart(catalog))
    assert order.id
    assert order.created_at
    assert order.subtotal == 220
    assert order.discount_percent == 0
    assert order.discount == 0
    assert [(i.name, i.qty) for i in order.items] == [("Cappuccino", 2)]


def test_resync_keeps_identity_and_refreshes_items(catalog):
    cart = _cart(catalog)
    first = sync_from_cart(None, cart)
    cart = add_or_merge(cart, build_line(catalog, 1, PreferenceRecord()))
    second = sync_from_cart(first, cart)

    assert (second.id, second.created_at) == (first.id, first.created_at)
    assert second.subtotal == 420
    assert len(second.items) == 2
    assert len(first.items) == 1


def test_snapshot_is_decoupled_from_later_cart_changes(catalog):
    cart = _cart(catalog)
    order = sync_from_cart(None, cart)
    adjust_qty(cart, cart.items[0].key, 3)
    cart.items[0].qty = 50
    assert order.items[0].qty == 2


def test_stage_buckets_place_everything_in_ordered(catalog):
    order = sync_from_cart(None, _cart(catalog))
    buckets = stage_buckets(order)
    assert list(buckets) == [Stage.ORDERED, Stage.PREPARING, Stage.FINISHING, Stage.SERVED]
    assert len(buckets[Stage.ORDERED]) == 1
    assert buckets[Stage.PREPARING] == buckets[Stage.FINISHING] == buckets[Stage.SERVED] == []


def test_stage_buckets_empty_without_order():
    assert all(items == [] for items in stage_buckets(None).values())


def test_order_summary_applies_discount_percent():
    order = Order(id="x", created_at="now", subtotal=400, discount_percent=10)
    assert order_summary(order) == {"subtotal": 400, "discount_percent": 10, "discount": 40, "total": 360}
    assert order_summary(None)["total"] == 0


def test_legacy_sequence_reads_last_element():
    raw = [
        {"id": 1, "timestamp": 1700000000000, "items": [], "subtotal": 10, "discount": 0, "discountPercent": 0},
        {"id": 2, "timestamp": 1700000005000, "subtotal": 90, "discount": 0, "discountPercent": 0,
         "items": [{"index": 1, "name": "Latte", "options": "Short; Oat", "qty": 1, "unitPrice": 90, "totalPrice": 90}]},
    ]
    order = load_active_order(raw)
    assert order.id == "2"
    assert order.created_at.startswith("2023-11-14")
    assert order.items[0].product_index == 1
    assert order.items[0].options_summary == "Short; Oat"


def test_load_handles_empty_and_garbage():
    assert load_active_order([]) is None
    assert load_active_order("junk") is None
    assert load_active_order([{"no_id": True}]) is None


def test_dump_and_load_active_order(catalog):
    order = sync_from_cart(None, _cart(catalog))
    assert load_active_order(dump_active_order(order)) == order
    assert dump_active_order(None) == []
    assert load_active_order(order.to_dict()) == order
