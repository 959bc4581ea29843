import json

import pytest
import requests

from coffee_mcp.config import CatalogSettings
from coffee_mcp.core.catalog import CatalogLoadError, fetch_catalog, to_display_name

from conftest import CATALOG_DATA


def test_resolve_known_and_unknown(catalog):
    assert catalog.resolve("sizes", 2).name == "Tall"
    assert catalog.resolve("sizes", 2).mult == 1.1
    assert catalog.resolve("milks", 42) is None


def test_product_accepts_legacy_field_names(catalog):
    assert catalog.product(0).base_price == 100
    assert catalog.product(0).description == "Foamy."
    assert catalog.product(1).base_price == 200
    assert catalog.product(99) is None


def test_display_name_with_and_without_extras(catalog):
    assert to_display_name(catalog, 2, 1, [1, 2]) == "Tall; Oat; Sugar, Milk"
    assert to_display_name(catalog, 3, 2, []) == "Grande; Soy"


def test_display_name_substitutes_first_entry_for_unknown_ids(catalog):
    assert to_display_name(catalog, 99, 99, [99]) == "Short; Oat"


def _write_catalog(directory, data):
    for name, value in data.items():
        (directory / f"{name}.json").write_text(json.dumps(value), encoding="utf-8")


def test_fetch_from_local_directory(tmp_path):
    _write_catalog(tmp_path, CATALOG_DATA)
    catalog = fetch_catalog(CatalogSettings(data_dir=str(tmp_path)))
    assert len(catalog.products) == 3
    assert [s.id for s in catalog.options.sizes] == [1, 2, 3, 4]


def test_missing_resource_fails_whole_load(tmp_path):
    _write_catalog(tmp_path, {k: v for k, v in CATALOG_DATA.items() if k != "options"})
    with pytest.raises(CatalogLoadError):
        fetch_catalog(CatalogSettings(data_dir=str(tmp_path)))


def test_malformed_resource_fails_load(tmp_path):
    _write_catalog(tmp_path, dict(CATALOG_DATA, options=[1, 2, 3]))
    with pytest.raises(CatalogLoadError):
        fetch_catalog(CatalogSettings(data_dir=str(tmp_path)))


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


def test_fetch_over_http(monkeypatch):
    requested = []

    def fake_get(url, timeout):
        requested.append(url)
        name = url.rsplit("/", 1)[-1].removesuffix(".json")
        return FakeResponse(CATALOG_DATA[name])

    monkeypatch.setattr(requests, "get", fake_get)
    catalog = fetch_catalog(CatalogSettings(base_url="http://shop.test/data/"))
    assert requested == [
        "http://shop.test/data/categories.json",
        "http://shop.test/data/products.json",
        "http://shop.test/data/options.json",
    ]
    assert catalog.categories[1].name == "Tea"


def test_any_http_failure_fails_load(monkeypatch):
    def fake_get(url, timeout):
        if url.endswith("products.json"):
            return FakeResponse({}, status=503)
        name = url.rsplit("/", 1)[-1].removesuffix(".json")
        return FakeResponse(CATALOG_DATA[name])

    monkeypatch.setattr(requests, "get", fake_get)
    with pytest.raises(CatalogLoadError):
        fetch_catalog(CatalogSettings(base_url="http://shop.test/data"))


def test_no_source_configured():
    with pytest.raises(CatalogLoadError):
        fetch_catalog(CatalogSettings(base_url=None, data_dir=None))
