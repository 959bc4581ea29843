import json
import logging
import os
from typing import Any, Optional

import requests
from pydantic import AliasChoices, BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

RESOURCES = ("categories", "products", "options")
COLLECTIONS = ("sizes", "milks", "extras")


class CatalogLoadError(RuntimeError):
    """Raised when any of the catalog resources cannot be loaded."""


class Category(BaseModel):
    id: int
    name: str


class Product(BaseModel):
    name: str
    base_price: float = Field(validation_alias=AliasChoices("basePrice", "base_price", "price"))
    category: int
    description: str = Field(default="", validation_alias=AliasChoices("description", "desc"))
    image: str = ""


class OptionEntry(BaseModel):
    id: int
    name: str
    mult: Optional[float] = None


class OptionCatalog(BaseModel):
    sizes: list[OptionEntry] = Field(default_factory=list)
    milks: list[OptionEntry] = Field(default_factory=list)
    extras: list[OptionEntry] = Field(default_factory=list)


class Catalog(BaseModel):
    categories: list[Category] = Field(default_factory=list)
    products: list[Product] = Field(default_factory=list)
    options: OptionCatalog = Field(default_factory=OptionCatalog)

    def product(self, index: int) -> Optional[Product]:
        if 0 <= index < len(self.products):
            return self.products[index]
        return None

    def resolve(self, collection: str, option_id: int) -> Optional[OptionEntry]:
        """Look up ``option_id`` in one of sizes/milks/extras. None if absent."""
        for entry in getattr(self.options, collection):
            if entry.id == option_id:
                return entry
        return None

    def resolve_or_default(self, collection: str, option_id: int) -> Optional[OptionEntry]:
        """Resolve, substituting the first entry of the collection when unknown."""
        entry = self.resolve(collection, option_id)
        if entry is None:
            entries = getattr(self.options, collection)
            if entries:
                return entries[0]
        return entry


def to_display_name(catalog: Catalog, size: int, milk: int, extras: list[int]) -> str:
    """Human-readable option summary, e.g. ``Tall; Oat; Sugar, Milk``."""
    size_entry = catalog.resolve_or_default("sizes", size)
    milk_entry = catalog.resolve_or_default("milks", milk)
    parts = [
        size_entry.name if size_entry else str(size),
        milk_entry.name if milk_entry else str(milk),
    ]
    extra_names = []
    for extra_id in extras:
        entry = catalog.resolve("extras", extra_id)
        if entry is not None:
            extra_names.append(entry.name)
    if extra_names:
        parts.append(", ".join(extra_names))
    return "; ".join(parts)


def _fetch_remote(base_url: str, name: str, timeout: float) -> Any:
    url = f"{base_url.rstrip('/')}/{name}.json"
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        raise CatalogLoadError(f"Failed to load {url}: {e}") from e


def _read_local(data_dir: str, name: str) -> Any:
    path = os.path.join(data_dir, f"{name}.json")
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise CatalogLoadError(f"Failed to load {path}: {e}") from e


def fetch_catalog(settings) -> Catalog:
    """Load categories, products and options. Partial availability is a failure."""
    raw: dict[str, Any] = {}
    for name in RESOURCES:
        if settings.base_url:
            raw[name] = _fetch_remote(settings.base_url, name, settings.timeout_seconds)
        elif settings.data_dir:
            raw[name] = _read_local(settings.data_dir, name)
        else:
            raise CatalogLoadError("No catalog source configured (set base_url or data_dir).")

    try:
        catalog = Catalog(**raw)
    except (ValidationError, TypeError) as e:
        raise CatalogLoadError(f"Catalog data is malformed: {e}") from e

    logger.info(
        f"Catalog loaded: {len(catalog.categories)} categories, "
        f"{len(catalog.products)} products"
    )
    return catalog
