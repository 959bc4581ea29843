import pytest

from coffee_mcp.config import CoffeeConfig, StorageSettings
from coffee_mcp.core.catalog import Catalog
from coffee_mcp.core.storage import JsonStore
from coffee_mcp.state import ServerState

CATALOG_DATA = {
    "categories": [{"id": 1, "name": "Coffee"}, {"id": 2, "name": "Tea"}],
    "products": [
        {"name": "Cappuccino", "price": 100, "category": 1, "desc": "Foamy.", "image": "1.png"},
        {"name": "Latte", "basePrice": 200, "category": 1, "description": "Milky."},
        {"name": "Masala Chai", "price": 120, "category": 2},
    ],
    "options": {
        "sizes": [
            {"id": 1, "name": "Short", "mult": 1},
            {"id": 2, "name": "Tall", "mult": 1.1},
            {"id": 3, "name": "Grande", "mult": 1.25},
            {"id": 4, "name": "Venti", "mult": 1.4},
        ],
        "milks": [{"id": 1, "name": "Oat"}, {"id": 2, "name": "Soy"}, {"id": 3, "name": "Almond"}],
        "extras": [{"id": 1, "name": "Sugar"}, {"id": 2, "name": "Milk"}],
    },
}


@pytest.fixture
def catalog():
    return Catalog(**CATALOG_DATA)


@pytest.fixture
def store(tmp_path):
    return JsonStore(str(tmp_path / "state"))


@pytest.fixture
def config(tmp_path):
    return CoffeeConfig(storage=StorageSettings(state_dir=str(tmp_path / "state")))


@pytest.fixture
def state(catalog, store, config):
    return ServerState(catalog=catalog, store=store, keys=config.storage)
