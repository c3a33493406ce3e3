"""Storefront table catalog.

Every table of the storefront database as a ``TableDef``: columns with
their SQL type tag, primary key, and foreign-key edges.  The order of
``TABLES`` is the documented manual insertion order: independent tables
first, then single-level dependents, ending with leaf tables (order
detail lines, inventory movements, cart lines).

A new table must be placed after every table it references.
``tests/test_catalog.py`` checks this against the foreign keys declared
here and against ``schema.sql``.
"""

from storefront_db.backup.models import BackupSchema, ColumnDef, ForeignKey, TableDef

# ============================================================================
# Enum types (name -> values), mirrored by CREATE TYPE in schema.sql
# ============================================================================

ENUMS: dict[str, list[str]] = {
    "OrderType": ["OFFLINE", "ONLINE"],
    "UserRole": ["ADMIN", "USER", "STORE_ADMIN"],
    "MovementType": ["IN", "OUT", "ADJUSTMENT"],
    "DeliveryStatus": [
        "PROCESSING",
        "SHIPPED",
        "OUT_FOR_DELIVERY",
        "DELIVERED",
        "CANCELLED",
        "RETURNED",
    ],
    "PaymentType": ["CREDIT_CARD", "DEBIT_CARD", "UPI", "NET_BANKING", "WALLET"],
    "AddressType": ["SHIPPING", "BILLING"],
    "ProductStatus": ["ACTIVE", "DRAFT", "ARCHIVED"],
    "ProductForm": [
        "NONE",
        "DILUTIONS(P)",
        "MOTHER_TINCTURES(Q)",
        "TRITURATIONS",
        "TABLETS",
        "GLOBULES",
        "BIO_CHEMIC",
        "BIO_COMBINATION",
        "OINTMENT",
        "GEL",
        "CREAM",
        "SYRUP/TONIC",
        "DROPS",
        "EYE_DROPS",
        "EAR_DROPS",
        "NASAL_DROPS",
        "INJECTIONS",
    ],
    "PaymentStatus": ["PENDING", "AUTHORIZED", "PAID", "FAILED", "REFUNDED"],
    "UnitOfMeasure": ["NONE", "TABLETS", "ML", "GM(s)", "DROPS", "AMPOULES"],
    "potency": (
        ["NONE", "1X", "2X", "3X", "6X", "12X", "30X", "200X"]
        + ["3C", "6C", "12C", "30C", "200C", "1M", "10M", "50M", "CM"]
        + ["3CH", "6CH", "9CH", "12CH", "15CH", "30CH", "200CH"]
        + ["1M CH", "10M CH", "50M CH", "CM CH", "Q"]
        + [f"LM{i}" for i in range(1, 31)]
        + ["LM50"]
    ),
    "discountType": ["PERCENTAGE", "FIXED"],
}


# ============================================================================
# Column helpers
# ============================================================================


def _id(name: str = "id") -> ColumnDef:
    return ColumnDef(name=name, type="varchar", nullable=False)


def _ref(name: str, nullable: bool = False) -> ColumnDef:
    return ColumnDef(name=name, type="varchar", nullable=nullable)


def _text(name: str, nullable: bool = True, default: bool = False) -> ColumnDef:
    return ColumnDef(name=name, type="text", nullable=nullable, has_default=default)


def _varchar(name: str, nullable: bool = True, default: bool = False) -> ColumnDef:
    return ColumnDef(name=name, type="varchar", nullable=nullable, has_default=default)


def _int(name: str, nullable: bool = True, default: bool = False) -> ColumnDef:
    return ColumnDef(name=name, type="integer", nullable=nullable, has_default=default)


def _double(name: str, nullable: bool = True, default: bool = False) -> ColumnDef:
    return ColumnDef(name=name, type="double", nullable=nullable, has_default=default)


def _bool(name: str, nullable: bool = False, default: bool = True) -> ColumnDef:
    return ColumnDef(name=name, type="boolean", nullable=nullable, has_default=default)


def _ts(name: str, nullable: bool = True, default: bool = False) -> ColumnDef:
    return ColumnDef(name=name, type="timestamp", nullable=nullable, has_default=default)


def _enum(name: str, enum: str, nullable: bool = False, default: bool = False) -> ColumnDef:
    return ColumnDef(
        name=name,
        type="enum",
        nullable=nullable,
        has_default=default,
        values=ENUMS[enum],
    )


def _array(name: str) -> ColumnDef:
    return ColumnDef(name=name, type="text[]")


def _jsonb(name: str, nullable: bool = False) -> ColumnDef:
    return ColumnDef(name=name, type="jsonb", nullable=nullable)


def _timestamps() -> list[ColumnDef]:
    return [
        _ts("createdAt", nullable=False, default=True),
        _ts("updatedAt", default=True),
    ]


def _cascade(column: str, table: str, name: str | None = None) -> ForeignKey:
    return ForeignKey(
        column=column, table=table, on_update="cascade", on_delete="cascade", name=name
    )


# ============================================================================
# Tables, in manual insertion order
# ============================================================================

# Level 0: no outgoing foreign keys (Category only references itself)

STORE = TableDef(
    name="Store",
    alias="stores",
    columns=[
        _id(),
        _text("name", nullable=False),
        _varchar("code", nullable=False),
        _text("location", nullable=False),
        _bool("isActive"),
        *_timestamps(),
    ],
)

USER = TableDef(
    name="User",
    alias="users",
    columns=[
        _id(),
        _text("name"),
        _text("email"),
        _ts("emailVerified"),
        _text("image"),
        _text("password"),
        _enum("role", "UserRole", default=True),
        _ts("lastActive", nullable=False, default=True),
        _bool("isTwoFactorEnabled"),
        _text("phone"),
        *_timestamps(),
    ],
)

CATEGORY = TableDef(
    name="Category",
    alias="categories",
    columns=[
        _id(),
        _text("name", nullable=False),
        _ref("parentId", nullable=True),
        _text("path", nullable=False, default=True),
        _array("pathIds"),
        _int("depth", nullable=False, default=True),
    ],
    foreign_keys=[
        ForeignKey(
            column="parentId",
            table="Category",
            on_update="cascade",
            on_delete="set null",
            name="Category_parentId_fkey",
        ),
    ],
)

MANUFACTURER = TableDef(
    name="Manufacturer",
    alias="manufacturers",
    columns=[_id(), _text("name", nullable=False)],
)

TAG = TableDef(
    name="Tags",
    alias="tags",
    columns=[_id(), _text("name", nullable=False)],
)

VERIFICATION_TOKEN = TableDef(
    name="VerificationToken",
    alias="verificationTokens",
    pk="token",
    columns=[
        _text("identifier", nullable=False),
        _text("token", nullable=False),
        _ts("expires", nullable=False),
    ],
)

PASSWORD_RESET_TOKEN = TableDef(
    name="PasswordResetToken",
    alias="passwordResetTokens",
    columns=[
        _id(),
        _text("email", nullable=False),
        _text("token", nullable=False),
        _ts("expires", nullable=False),
    ],
)

TWO_FACTOR_TOKEN = TableDef(
    name="TwoFactorToken",
    alias="twoFactorTokens",
    columns=[
        _id(),
        _text("email", nullable=False),
        _text("token", nullable=False),
        _ts("expires", nullable=False),
    ],
)

# Level 1: reference users, stores, categories, manufacturers

ACCOUNT = TableDef(
    name="Account",
    alias="accounts",
    columns=[
        _id(),
        _ref("userId"),
        _text("type", nullable=False),
        _text("provider", nullable=False),
        _text("provider_account_id", nullable=False),
        _text("refresh_token"),
        _text("access_token"),
        _int("expires_at"),
        _text("token_type"),
        _text("scope"),
        _text("id_token"),
        _text("session_state"),
    ],
    foreign_keys=[_cascade("userId", "User", "Account_userId_fkey")],
)

SESSION = TableDef(
    name="session",
    alias="sessions",
    pk="sessionToken",
    columns=[
        _text("sessionToken", nullable=False),
        _text("userId", nullable=False),
        _ts("expires", nullable=False),
    ],
    foreign_keys=[ForeignKey(column="userId", table="User", on_delete="cascade")],
)

TWO_FACTOR_CONFIRMATION = TableDef(
    name="TwoFactorConfirmation",
    alias="twoFactorConfirmations",
    columns=[_id(), _ref("userId")],
    foreign_keys=[_cascade("userId", "User", "TwoFactorConfirmation_userId_fkey")],
)

ADMIN_STORE_ACCESS = TableDef(
    name="AdminStoreAccess",
    alias="adminStoreAccess",
    columns=[
        _id(),
        _ref("userId"),
        _ref("storeId"),
        _bool("canManageInventory"),
        _bool("canManageOrders"),
        _bool("canViewAnalytics"),
        _bool("canManageProducts"),
        *_timestamps(),
    ],
    foreign_keys=[
        _cascade("userId", "User", "AdminStoreAccess_userId_fkey"),
        _cascade("storeId", "Store", "AdminStoreAccess_storeId_fkey"),
    ],
)

ADMIN_STORE_SESSION = TableDef(
    name="AdminStoreSession",
    alias="adminStoreSessions",
    columns=[
        _id(),
        _ref("userId"),
        _ref("storeId"),
        _ts("lastAccessed", nullable=False, default=True),
    ],
    foreign_keys=[
        _cascade("userId", "User", "AdminStoreSession_userId_fkey"),
        _cascade("storeId", "Store", "AdminStoreSession_storeId_fkey"),
    ],
)

ADDRESS = TableDef(
    name="Address",
    alias="addresses",
    columns=[
        _id(),
        _ref("userId"),
        _varchar("street", nullable=False),
        _varchar("city", nullable=False),
        _varchar("state", nullable=False),
        _varchar("postalCode", nullable=False),
        _varchar("country", nullable=False, default=True),
        _enum("addressType", "AddressType", default=True),
        *_timestamps(),
    ],
    foreign_keys=[_cascade("userId", "User", "Address_userId_fkey")],
)

PAYMENT_METHOD = TableDef(
    name="PaymentMethod",
    alias="paymentMethods",
    columns=[
        _id(),
        _ref("userId"),
        _enum("paymentType", "PaymentType"),
        _bool("isDefault", default=True),
        _jsonb("paymentDetails"),
        _jsonb("displayDetails"),
        *_timestamps(),
    ],
    foreign_keys=[_cascade("userId", "User", "PaymentMethod_userId_fkey")],
)

PRODUCT = TableDef(
    name="Product",
    alias="products",
    columns=[
        _id(),
        _text("name", nullable=False),
        _text("description", nullable=False),
        _enum("form", "ProductForm"),
        _enum("unit", "UnitOfMeasure"),
        _enum("status", "ProductStatus", default=True),
        _array("tags"),
        _ref("categoryId"),
        _ref("manufacturerId"),
        _bool("isFeatured"),
        _varchar("hsnCode", default=True),
        _int("tax", nullable=False, default=True),
        *_timestamps(),
    ],
    foreign_keys=[
        ForeignKey(
            column="categoryId",
            table="Category",
            on_update="cascade",
            on_delete="restrict",
            name="Product_categoryId_fkey",
        ),
        ForeignKey(
            column="manufacturerId",
            table="Manufacturer",
            on_update="cascade",
            on_delete="restrict",
            name="Product_manufacturerId_fkey",
        ),
    ],
)

# Level 2: reference products

PRODUCT_VARIANT = TableDef(
    name="ProductVariant",
    alias="productVariants",
    columns=[
        _id(),
        ColumnDef(name="discontinued", type="boolean", has_default=True),
        _ref("productId"),
        _varchar("sku", nullable=False),
        _text("variantName", nullable=False),
        _array("variantImage"),
        _enum("potency", "potency", default=True),
        _int("packSize"),
        _double("costPrice"),
        _double("mrp", nullable=False),
        _int("discount", default=True),
        _enum("discountType", "discountType", nullable=True, default=True),
        _double("sellingPrice", nullable=False),
        *_timestamps(),
    ],
    foreign_keys=[_cascade("productId", "Product", "ProductVariant_productId_fkey")],
)

REVIEW = TableDef(
    name="Review",
    alias="reviews",
    columns=[
        _id(),
        _double("rating", nullable=False, default=True),
        _text("comment"),
        _ref("userId"),
        _ref("productId"),
        *_timestamps(),
    ],
    foreign_keys=[
        _cascade("userId", "User", "Review_userId_fkey"),
        _cascade("productId", "Product", "Review_productId_fkey"),
    ],
)

# Level 3: reference variants, addresses, payment methods

PRODUCT_INVENTORY = TableDef(
    name="ProductInventory",
    alias="productInventory",
    columns=[
        _id(),
        _ref("productVariantId"),
        _ref("storeId"),
        _int("stock", nullable=False, default=True),
        _int("lowStockThreshold", default=True),
        _int("reservedStock", default=True),
        *_timestamps(),
    ],
    foreign_keys=[
        ForeignKey(
            column="productVariantId",
            table="ProductVariant",
            on_delete="cascade",
            name="ProductInventory_variantId_fkey",
        ),
        ForeignKey(
            column="storeId",
            table="Store",
            on_delete="cascade",
            name="ProductInventory_storeId_fkey",
        ),
    ],
)

ORDER = TableDef(
    name="Order",
    alias="orders",
    columns=[
        _id(),
        _ref("userId", nullable=True),
        _text("customerName"),
        _text("customerPhone"),
        _text("customerEmail"),
        _bool("isGuestOrder"),
        _ref("storeId", nullable=True),
        _ts("orderDate", nullable=False, default=True),
        _double("subtotal", nullable=False),
        _double("shippingCost", nullable=False, default=True),
        _double("discount", nullable=False, default=True),
        _double("tax", nullable=False, default=True),
        _double("totalAmountPaid", nullable=False),
        _enum("orderType", "OrderType", default=True),
        _enum("deliveryStatus", "DeliveryStatus", default=True),
        _ref("shippingAddressId"),
        _ref("billingAddressId"),
        _enum("paymentStatus", "PaymentStatus", default=True),
        _varchar("paymentIntentId"),
        _varchar("invoiceNumber"),
        _text("customerNotes"),
        _text("adminNotes"),
        _text("cancellationReason"),
        _ts("estimatedDeliveryDate"),
        _ts("deliveredAt"),
        _ref("paymentMethodId", nullable=True),
    ],
    foreign_keys=[
        _cascade("userId", "User", "Order_userId_fkey"),
        ForeignKey(
            column="shippingAddressId",
            table="Address",
            on_update="cascade",
            on_delete="restrict",
            name="Order_shippingAddress_fkey",
        ),
        ForeignKey(
            column="billingAddressId",
            table="Address",
            on_update="cascade",
            on_delete="restrict",
            name="Order_billingAddress_fkey",
        ),
        ForeignKey(
            column="paymentMethodId",
            table="PaymentMethod",
            name="Order_paymentMethod_fkey",
        ),
        ForeignKey(
            column="storeId",
            table="Store",
            on_update="cascade",
            on_delete="set null",
            name="Order_storeId_fkey",
        ),
    ],
)

# Level 4: leaf tables

ORDER_DETAILS = TableDef(
    name="OrderDetails",
    alias="orderDetails",
    columns=[
        _id(),
        _ref("orderId"),
        _ref("productVariantId"),
        _double("originalPrice", nullable=False),
        _double("discountAmount", nullable=False, default=True),
        _double("taxAmount", nullable=False, default=True),
        _double("unitPrice", nullable=False),
        _int("quantity", nullable=False),
        _enum("itemStatus", "DeliveryStatus", default=True),
        _text("returnReason"),
        _ts("returnedAt"),
        _double("refundAmount"),
        _ref("fulfilledFromStoreId", nullable=True),
    ],
    foreign_keys=[
        _cascade("orderId", "Order", "OrderDetails_orderId_fkey"),
        _cascade(
            "productVariantId", "ProductVariant", "OrderDetails_productVariantId_fkey"
        ),
    ],
)

INVENTORY_MANAGEMENT = TableDef(
    name="InventoryManagement",
    alias="inventoryManagement",
    columns=[
        _id(),
        _ref("productVariantId"),
        _ref("orderId", nullable=True),
        _enum("type", "MovementType"),
        _int("quantity", nullable=False),
        _text("reason", nullable=False),
        _ref("storeId"),
        _int("previousStock", nullable=False),
        _int("newStock", nullable=False),
        _ts("createdAt", nullable=False, default=True),
        _ref("createdBy"),
    ],
    foreign_keys=[
        ForeignKey(
            column="productVariantId",
            table="ProductVariant",
            on_update="cascade",
            on_delete="restrict",
        ),
        ForeignKey(
            column="orderId",
            table="Order",
            on_update="cascade",
            on_delete="set null",
        ),
        ForeignKey(
            column="createdBy",
            table="User",
            on_update="cascade",
            on_delete="restrict",
        ),
    ],
)

CART = TableDef(
    name="Cart",
    alias="carts",
    columns=[
        _id(),
        _ref("userId"),
        _ref("productId"),
        _ref("productVariantId"),
        _int("quantity", nullable=False, default=True),
        _text("potency"),
        _text("packSize"),
        *_timestamps(),
    ],
    foreign_keys=[
        ForeignKey(column="userId", table="User", on_delete="cascade", name="Cart_userId_fkey"),
        ForeignKey(
            column="productId", table="Product", on_delete="cascade", name="Cart_productId_fkey"
        ),
        ForeignKey(
            column="productVariantId",
            table="ProductVariant",
            on_delete="cascade",
            name="Cart_productVariantId_fkey",
        ),
    ],
)


TABLES: list[TableDef] = [
    STORE,
    USER,
    CATEGORY,
    MANUFACTURER,
    TAG,
    VERIFICATION_TOKEN,
    PASSWORD_RESET_TOKEN,
    TWO_FACTOR_TOKEN,
    ACCOUNT,
    SESSION,
    TWO_FACTOR_CONFIRMATION,
    ADMIN_STORE_ACCESS,
    ADMIN_STORE_SESSION,
    ADDRESS,
    PAYMENT_METHOD,
    PRODUCT,
    PRODUCT_VARIANT,
    REVIEW,
    PRODUCT_INVENTORY,
    ORDER,
    ORDER_DETAILS,
    INVENTORY_MANAGEMENT,
    CART,
]

RESTORE_ORDER: list[str] = [t.alias for t in TABLES]

STOREFRONT_SCHEMA = BackupSchema(tables=TABLES)
