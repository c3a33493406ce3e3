"""Tests for catalog vs. live column comparison."""

from storefront_db.catalog import STOREFRONT_SCHEMA
from storefront_db.schema.comparator import expected_columns, validate_schema


class TestExpectedColumns:
    """Expectation derived from the catalog."""

    def test_every_table_present(self):
        expected = expected_columns(STOREFRONT_SCHEMA)
        assert set(expected) == {t.name for t in STOREFRONT_SCHEMA.tables}

    def test_columns_of_session(self):
        assert expected_columns(STOREFRONT_SCHEMA)["session"] == {
            "sessionToken",
            "userId",
            "expires",
        }


class TestValidateSchema:
    """Pure set comparison."""

    def test_matching_schema_valid(self):
        expected = expected_columns(STOREFRONT_SCHEMA)
        result = validate_schema(expected, expected)
        assert result.valid
        assert result.error_count == 0

    def test_missing_table(self):
        expected = expected_columns(STOREFRONT_SCHEMA)
        actual = {k: v for k, v in expected.items() if k != "Cart"}
        result = validate_schema(actual, expected)
        assert not result.valid
        assert result.missing_tables == ["Cart"]

    def test_missing_column(self):
        expected = expected_columns(STOREFRONT_SCHEMA)
        actual = dict(expected)
        actual["Order"] = expected["Order"] - {"invoiceNumber"}
        result = validate_schema(actual, expected)
        assert [(d.table, d.column) for d in result.missing_columns] == [
            ("Order", "invoiceNumber")
        ]
        assert "Order.invoiceNumber" in result.format_report()

    def test_extra_table_is_warning_only(self):
        expected = expected_columns(STOREFRONT_SCHEMA)
        actual = {**expected, "_legacy": {"id"}}
        result = validate_schema(actual, expected)
        assert result.valid
        assert result.extra_tables == ["_legacy"]
        assert "Extra tables (warning): _legacy" in result.format_report()
