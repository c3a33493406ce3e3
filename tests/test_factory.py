"""Tests for adapter construction from settings."""

from storefront_db.adapters.postgres import AsyncPostgresAdapter
from storefront_db.catalog import STOREFRONT_SCHEMA
from storefront_db.config import Settings
from storefront_db.factory import get_adapter, jsonb_columns


def test_jsonb_columns_from_catalog():
    assert jsonb_columns(STOREFRONT_SCHEMA) == ["paymentDetails", "displayDetails"]


def test_get_adapter_uses_settings():
    settings = Settings(database_url="postgres://u:p@db:5432/shop")
    adapter = get_adapter(settings)
    assert isinstance(adapter, AsyncPostgresAdapter)
    assert adapter._engine.url.drivername == "postgresql+asyncpg"
    assert adapter._jsonb_columns == frozenset({"paymentDetails", "displayDetails"})
