import json
import os
from typing import Optional

from pydantic import BaseModel, Field


class CatalogSettings(BaseModel):
    base_url: Optional[str] = None  # serves categories.json, products.json, options.json
    data_dir: Optional[str] = "data"
    timeout_seconds: float = 10.0


class StorageSettings(BaseModel):
    state_dir: str = "/data/state"
    cart_key: str = "coffee_cart_v1"
    preferences_key: str = "coffee_prefs_v1"
    orders_key: str = "coffee_orders_v1"


class DisplaySettings(BaseModel):
    currency_symbol: str = "₹"


class CoffeeConfig(BaseModel):
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)


def load_config(path: Optional[str] = None) -> CoffeeConfig:
    config_path = path or os.environ.get("CONFIG_PATH", "/config/config.json")
    if not os.path.exists(config_path):
        raise FileNotFoundError(
            f"Config file not found at {config_path}. "
            "Copy config.json.example to the config path and adjust it."
        )
    with open(config_path) as f:
        data = json.load(f)
    config = CoffeeConfig(**data)
    state_dir = os.environ.get("COFFEE_STATE_DIR")
    if state_dir:
        config.storage.state_dir = state_dir
    return config
