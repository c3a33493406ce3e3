"""Shared fixtures: an in-memory DatabaseClient and a small storefront dataset."""

from contextlib import asynccontextmanager

import pytest

from storefront_db.backup.models import BackupSchema, ColumnDef, ForeignKey, TableDef


class FakeClient:
    """In-memory ``DatabaseClient`` that records every call.

    Args:
        tables: Initial rows keyed by SQL table name.
        fail_on: ``(table, batch_number)`` whose ``insert_many`` call raises.
        fail_select: Table names whose ``select`` raises.
    """

    def __init__(
        self,
        tables: dict[str, list[dict]] | None = None,
        fail_on: tuple[str, int] | None = None,
        fail_select: set[str] | None = None,
    ) -> None:
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.fail_on = fail_on
        self.fail_select = fail_select or set()
        self.calls: list[tuple] = []
        self.pinned_count = 0
        self.closed = False
        self._batch_numbers: dict[str, int] = {}

    async def select(self, table, columns="*", filters=None, order_by=None):
        self.calls.append(("select", table))
        if table in self.fail_select:
            raise RuntimeError(f'relation "{table}" does not exist')
        rows = [dict(r) for r in self.tables.get(table, [])]
        if filters:
            rows = [r for r in rows if all(r.get(k) == v for k, v in filters.items())]
        return rows

    async def insert_many(self, table, rows):
        number = self._batch_numbers.get(table, 0) + 1
        self._batch_numbers[table] = number
        self.calls.append(("insert_many", table, len(rows)))
        if self.fail_on == (table, number):
            raise RuntimeError("duplicate key value violates unique constraint")
        self.tables.setdefault(table, []).extend(dict(r) for r in rows)
        return len(rows)

    async def execute(self, sql, params=None):
        self.calls.append(("execute", sql))

    @asynccontextmanager
    async def pinned(self):
        self.pinned_count += 1
        yield self

    async def close(self):
        self.closed = True

    @property
    def executed(self) -> list[str]:
        return [c[1] for c in self.calls if c[0] == "execute"]

    @property
    def inserts(self) -> list[tuple[str, int]]:
        return [(c[1], c[2]) for c in self.calls if c[0] == "insert_many"]


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


def chain_schema(length: int) -> BackupSchema:
    """``t1 <- t2 <- ... <- tN``: each table references the one before it."""
    tables = []
    for i in range(1, length + 1):
        fks = [ForeignKey(column="parentId", table=f"t{i - 1}")] if i > 1 else []
        tables.append(
            TableDef(
                name=f"t{i}",
                alias=f"a{i}",
                columns=[ColumnDef(name="id", nullable=False), ColumnDef(name="parentId")],
                foreign_keys=fks,
            )
        )
    return BackupSchema(tables=tables)


def storefront_rows() -> dict[str, list[dict]]:
    """One small, referentially consistent storefront dataset keyed by table name."""
    ts = "2024-05-01T10:00:00"
    return {
        "Store": [{"id": "STR_1", "name": "Main", "code": "MN", "location": "Pune", "createdAt": ts}],
        "User": [
            {"id": "USR_1", "name": "Asha", "email": "asha@example.com", "role": "ADMIN"},
            {"id": "USR_2", "name": "Ravi", "email": "ravi@example.com", "role": "USER"},
        ],
        "Category": [
            {"id": "CAT_2", "name": "Dilutions", "parentId": "CAT_1", "path": "/1/2", "depth": 1},
            {"id": "CAT_1", "name": "Medicines", "parentId": None, "path": "/1", "depth": 0},
        ],
        "Manufacturer": [{"id": "MFR_1", "name": "Acme Labs"}],
        "Tags": [{"id": "TAG_1", "name": "herbal"}],
        "VerificationToken": [
            {"identifier": "asha@example.com", "token": "vt-1", "expires": ts}
        ],
        "PasswordResetToken": [],
        "TwoFactorToken": [],
        "Account": [
            {
                "id": "ACC_1",
                "userId": "USR_1",
                "type": "oauth",
                "provider": "google",
                "provider_account_id": "g-1",
            }
        ],
        "session": [{"sessionToken": "st-1", "userId": "USR_1", "expires": ts}],
        "TwoFactorConfirmation": [],
        "AdminStoreAccess": [{"id": "ASA_1", "userId": "USR_1", "storeId": "STR_1"}],
        "AdminStoreSession": [],
        "Address": [
            {
                "id": "ADR_1",
                "userId": "USR_2",
                "street": "1 MG Road",
                "city": "Pune",
                "state": "MH",
                "postalCode": "411001",
                "addressType": "SHIPPING",
            }
        ],
        "PaymentMethod": [
            {
                "id": "PAY_1",
                "userId": "USR_2",
                "paymentType": "UPI",
                "paymentDetails": {"vpa": "ravi@upi"},
                "displayDetails": {"label": "UPI ravi"},
            }
        ],
        "Product": [
            {
                "id": "PRD_1",
                "name": "Arnica",
                "description": "Arnica montana",
                "form": "DILUTIONS(P)",
                "unit": "ML",
                "tags": ["herbal"],
                "categoryId": "CAT_2",
                "manufacturerId": "MFR_1",
            }
        ],
        "ProductVariant": [
            {
                "id": "VAR_1",
                "productId": "PRD_1",
                "sku": "ARN-30C",
                "variantName": "30C 30ml",
                "potency": "30C",
                "mrp": 120.0,
                "sellingPrice": 110.0,
            }
        ],
        "Review": [{"id": "REV_1", "userId": "USR_2", "productId": "PRD_1", "rating": 5}],
        "ProductInventory": [
            {"id": "INV_1", "productVariantId": "VAR_1", "storeId": "STR_1", "stock": 40}
        ],
        "Order": [
            {
                "id": "ORD_1",
                "userId": "USR_2",
                "storeId": "STR_1",
                "subtotal": 110.0,
                "totalAmountPaid": 110.0,
                "shippingAddressId": "ADR_1",
                "billingAddressId": "ADR_1",
                "paymentMethodId": "PAY_1",
            }
        ],
        "OrderDetails": [
            {
                "id": "ODT_1",
                "orderId": "ORD_1",
                "productVariantId": "VAR_1",
                "originalPrice": 120.0,
                "unitPrice": 110.0,
                "quantity": 1,
            }
        ],
        "InventoryManagement": [
            {
                "id": "IMV_1",
                "productVariantId": "VAR_1",
                "orderId": "ORD_1",
                "type": "OUT",
                "quantity": 1,
                "reason": "order",
                "storeId": "STR_1",
                "previousStock": 41,
                "newStock": 40,
                "createdBy": "USR_1",
            }
        ],
        "Cart": [
            {"id": "CRT_1", "userId": "USR_2", "productId": "PRD_1", "productVariantId": "VAR_1"}
        ],
    }
