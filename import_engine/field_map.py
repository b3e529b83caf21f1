"""
import_engine.field_map - Source-column → canonical-field tables.

One ordered table per (SourceFormat, entity).  Each Field lists the
source columns that may feed it; the first listed column holding a
non-blank value wins.  A source column may feed several fields.

``required`` fields must have at least one of their source columns in
the header row (CSV) or a non-blank value in the record (JSON).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from import_engine.errors import ImportFileError
from import_engine.formats import SourceFormat, VENDOR_ENTITIES


class FieldKind(enum.Enum):
    TEXT   = "text"
    MONEY  = "money"      # decimal string quantised to cents
    NUMBER = "number"     # decimal string, precision kept
    BOOL   = "bool"
    DATE   = "date"       # ISO string
    INT    = "int"


# Marker for "no explicit default": DATE falls back to today, the
# other kinds use KIND_DEFAULTS.
UNSET = object()

KIND_DEFAULTS = {
    FieldKind.TEXT:   "",
    FieldKind.MONEY:  "0",
    FieldKind.NUMBER: "0",
    FieldKind.BOOL:   False,
    FieldKind.INT:    None,
}


@dataclass(frozen=True)
class Field:
    name: str
    sources: tuple[str, ...]
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    default: object = UNSET

    @property
    def falls_back_to_today(self) -> bool:
        return self.kind is FieldKind.DATE and self.default is UNSET

    def default_value(self):
        if self.default is not UNSET:
            return self.default
        return KIND_DEFAULTS.get(self.kind)


def f(name, *sources, kind=FieldKind.TEXT, required=False, default=UNSET) -> Field:
    return Field(name, tuple(sources), kind, required, default)


T, M, N, B, D, I = (FieldKind.TEXT, FieldKind.MONEY, FieldKind.NUMBER,
                    FieldKind.BOOL, FieldKind.DATE, FieldKind.INT)


# ── CSV: expenses ──────────────────────────────────────────────────────
GENERIC_EXPENSES = (
    f("date",           "Date", kind=D, required=True),
    f("description",    "Description"),
    f("category",       "Category"),
    f("amount",         "Amount", "Amount (Incl VAT)", kind=M, required=True),
    f("supplier",       "Supplier", "Vendor"),
    f("payment_source", "Payment Source", "Payment"),
    f("vat",            "VAT", kind=M),
    f("total_inc_tax",  "Total Inc Tax", "Amount (Incl VAT)", kind=M),
    f("is_recurring",   "Is Recurring", kind=B),
    f("tax_deductible", "Tax Deductible", kind=B),
    f("receipt_url",    "Receipt URL", "Receipt"),
)

BAKE_DIARY_EXPENSES = (
    f("date",           "Date", kind=D, required=True),
    f("description",    "Description"),
    f("category",       "Category"),
    f("amount",         "Amount (Incl VAT)", "Amount", kind=M, required=True),
    f("supplier",       "Vendor", "Supplier"),
    f("payment_source", "Payment Source", "Payment"),
    f("vat",            "VAT", kind=M),
    f("total_inc_tax",  "Amount (Incl VAT)", "Total Inc Tax", kind=M),
    f("is_recurring",   "Is Recurring", kind=B),
    f("tax_deductible", "Tax Deductible", kind=B),
)

# ── CSV: contacts ──────────────────────────────────────────────────────
GENERIC_CONTACTS = (
    f("contact_type",  "Type", "Contact Type", default="Customer"),
    f("first_name",    "First Name", "First"),
    f("last_name",     "Last Name", "Last"),
    f("name",          "Name", "Full Name", "Contact"),
    f("email",         "Email", "Email Address"),
    f("phone",         "Phone", "Phone Number", "Number"),
    f("business_name", "Business Name", "Company", "Supplier Name"),
    f("address",       "Address"),
    f("notes",         "Notes"),
)

BAKE_DIARY_CONTACTS = (
    f("contact_type",  "Type", default="Customer"),
    f("first_name",    "First Name"),
    f("last_name",     "Last Name"),
    f("business_name", "Supplier Name"),
    f("email",         "Email"),
    f("phone",         "Number"),
    f("website",       "Website"),
    f("source",        "Source"),
)

# ── CSV: orders / quotes (the vendor's quote list shares this layout) ──
ORDER_LIST = (
    f("order_number",       "Order Number", required=True),
    f("contact",            "Contact", "Customer", required=True),
    f("contact_email",      "Contact Email"),
    f("event_date",         "Event Date", kind=D),
    f("event_type",         "Event Type"),
    f("status",             "Status"),
    f("theme",              "Theme"),
    f("total",              "Order Total", "Total", kind=M),
    f("amount_outstanding", "Amount Outstanding", kind=M),
    f("delivery_amount",    "Delivery Amount", kind=M),
)

# ── CSV: order items ───────────────────────────────────────────────────
ORDER_ITEM_LIST = (
    f("order_number", "Order Number", required=True),
    f("item_date",    "Date"),
    f("name",         "Item", required=True),
    f("description",  "Details"),
    f("quantity",     "Servings", "Quantity", kind=I, default=1),
    f("price",        "Sell Price (excl VAT)", "Sell Price", kind=M),
)

# ── JSON dataset ───────────────────────────────────────────────────────
JSON_CONTACTS = (
    f("id",            "id", kind=I),
    f("contact_type",  "type", "contactType", default="Customer"),
    f("first_name",    "firstName"),
    f("last_name",     "lastName"),
    f("email",         "email"),
    f("phone",         "phone"),
    f("business_name", "businessName"),
    f("address",       "address"),
    f("notes",         "notes"),
)

_JSON_SALE_COMMON = (
    f("id",               "id", kind=I),
    f("contact_id",       "contactId", kind=I),
    f("contact_name",     "contactName"),
    f("contact_email",    "contactEmail"),
    f("event_type",       "eventType", default="Other"),
    f("event_date",       "eventDate", kind=D),
    f("theme",            "theme"),
    f("delivery_type",    "deliveryType", default="Pickup"),
    f("delivery_details", "deliveryDetails"),
    f("discount",         "discount", kind=M),
    f("discount_type",    "discountType", default="%"),
    f("setup_fee",        "setupFee", kind=M),
    f("tax_rate",         "taxRate", kind=N),
    f("total",            "total", kind=M),
    f("notes",            "notes"),
)

JSON_ORDERS = (
    f("order_number", "orderNumber", required=True),
    f("status",       "status", default="Quote"),
) + _JSON_SALE_COMMON

JSON_QUOTES = (
    f("quote_number", "quoteNumber", required=True),
    f("status",       "status", default="Draft"),
    f("expiry_date",  "expiryDate", kind=D, default=None),
) + _JSON_SALE_COMMON

JSON_LINE_ITEMS = (
    f("type",        "type", default="Cake"),
    f("name",        "name", required=True),
    f("description", "description"),
    f("quantity",    "quantity", kind=I, default=1),
    f("unit_price",  "unitPrice", kind=M, default=None),
    f("price",       "price", kind=M),
    f("notes",       "notes"),
)

JSON_PRODUCTS = (
    f("type",        "type", default="Other"),
    f("name",        "name", required=True),
    f("description", "description"),
    f("servings",    "servings", kind=I),
    f("price",       "price", kind=M),
    f("cost",        "cost", kind=M),
    f("active",      "active", kind=B, default=True),
)

JSON_INGREDIENTS = (
    f("id",            "id", kind=I),
    f("name",          "name", required=True),
    f("unit",          "unit", default="g"),
    f("cost_per_unit", "costPerUnit", kind=N, default=None),
    f("pack_size",     "packSize", kind=N),
    f("pack_cost",     "packCost", kind=M),
    f("supplier",      "supplier"),
)

JSON_RECIPES = (
    f("id",           "id", kind=I),
    f("name",         "name", required=True),
    f("description",  "description"),
    f("category",     "category"),
    f("servings",     "servings", kind=I, default=1),
    f("instructions", "instructions"),
    f("total_cost",   "totalCost", kind=M, default=None),
    f("prep_time",    "prepTime", kind=I),
    f("cook_time",    "cookTime", kind=I),
)

JSON_RECIPE_INGREDIENTS = (
    f("ingredient_id", "ingredientId", kind=I),
    f("ingredient",    "ingredientName", "name"),
    f("quantity",      "quantity", kind=N),
    f("unit",          "unit", default="g"),
    f("cost",          "cost", kind=M),
)

JSON_EXPENSES = (
    f("date",           "date", kind=D),
    f("category",       "category"),
    f("amount",         "amount", kind=M),
    f("description",    "description"),
    f("supplier",       "supplier"),
    f("payment_source", "paymentSource"),
    f("vat",            "vat", kind=M),
    f("total_inc_tax",  "totalIncTax", kind=M),
    f("is_recurring",   "isRecurring", kind=B),
    f("tax_deductible", "taxDeductible", kind=B),
    f("receipt_url",    "receiptUrl"),
)

JSON_INCOME = (
    f("date",        "date", kind=D),
    f("category",    "category"),
    f("amount",      "amount", kind=M),
    f("description", "description"),
)

JSON_TASKS = (
    f("order_id",    "orderId", "relatedOrderId", kind=I),
    f("title",       "title", required=True),
    f("description", "description"),
    f("due_date",    "dueDate", kind=D, default=None),
    f("completed",   "completed", kind=B),
    f("priority",    "priority", default="Medium"),
)

JSON_ENQUIRIES = (
    f("name",       "name"),
    f("email",      "email"),
    f("phone",      "phone"),
    f("event_type", "eventType"),
    f("event_date", "eventDate", kind=D, default=None),
    f("message",    "message", "details"),
    f("status",     "status", default="New"),
)

JSON_SETTINGS = (
    f("business_name",       "businessName"),
    f("currency",            "currency", default="USD"),
    f("default_tax_rate",    "defaultTaxRate", kind=N),
    f("labor_rate",          "laborRate", kind=M),
    f("order_number_prefix", "orderNumberPrefix"),
    f("quote_number_prefix", "quoteNumberPrefix"),
    f("invoice_footer",      "invoiceFooter"),
    f("quote_footer",        "quoteFooter"),
)

JSON_TAX_RATES = (
    f("name",       "name", required=True),
    f("rate",       "rate", kind=N),
    f("is_default", "isDefault", kind=B),
)

JSON_FEATURE_SETTINGS = (
    f("feature", "feature", "name", required=True),
    f("enabled", "enabled", kind=B, default=True),
)


G, J = SourceFormat.GENERIC, SourceFormat.JSON_DATASET

MAPPINGS: dict[tuple[SourceFormat, str], tuple[Field, ...]] = {
    (G, "expenses"):    GENERIC_EXPENSES,
    (G, "contacts"):    GENERIC_CONTACTS,
    (G, "orders"):      ORDER_LIST,
    (G, "quotes"):      ORDER_LIST,
    (G, "order_items"): ORDER_ITEM_LIST,

    (SourceFormat.BAKE_DIARY_EXPENSES, "expenses"):       BAKE_DIARY_EXPENSES,
    (SourceFormat.BAKE_DIARY_CONTACTS, "contacts"):       BAKE_DIARY_CONTACTS,
    (SourceFormat.BAKE_DIARY_ORDERS, "orders"):           ORDER_LIST,
    (SourceFormat.BAKE_DIARY_ORDERS, "quotes"):           ORDER_LIST,
    (SourceFormat.BAKE_DIARY_ORDER_ITEMS, "order_items"): ORDER_ITEM_LIST,

    (J, "contacts"):           JSON_CONTACTS,
    (J, "orders"):             JSON_ORDERS,
    (J, "quotes"):             JSON_QUOTES,
    (J, "line_items"):         JSON_LINE_ITEMS,
    (J, "products"):           JSON_PRODUCTS,
    (J, "ingredients"):        JSON_INGREDIENTS,
    (J, "recipes"):            JSON_RECIPES,
    (J, "recipe_ingredients"): JSON_RECIPE_INGREDIENTS,
    (J, "expenses"):           JSON_EXPENSES,
    (J, "income"):             JSON_INCOME,
    (J, "tasks"):              JSON_TASKS,
    (J, "enquiries"):          JSON_ENQUIRIES,
    (J, "settings"):           JSON_SETTINGS,
    (J, "tax_rates"):          JSON_TAX_RATES,
    (J, "feature_settings"):   JSON_FEATURE_SETTINGS,
}

CSV_ENTITIES = ("expenses", "contacts", "orders", "quotes", "order_items")


def fields_for(fmt: SourceFormat, entity: str) -> tuple[Field, ...]:
    """Table for a format/entity pair; raises ImportFileError on a mismatch."""
    allowed = VENDOR_ENTITIES.get(fmt)
    if allowed is not None and entity not in allowed:
        carried = ", ".join(sorted(allowed))
        raise ImportFileError(
            f"File looks like a Bake Diary {carried} export and cannot be "
            f"imported as {entity.replace('_', ' ')}"
        )
    table = MAPPINGS.get((fmt, entity)) or MAPPINGS.get((G, entity))
    if table is None:
        raise ImportFileError(f"No column mapping for {entity!r}")
    return table


def check_headers(headers, fields: tuple[Field, ...]) -> None:
    """Raise ImportFileError if a required field has no source column."""
    cols = {h.strip().lower() for h in headers}
    missing = [
        fld.sources[0] for fld in fields
        if fld.required and not any(s.lower() in cols for s in fld.sources)
    ]
    if missing:
        raise ImportFileError(f"Missing required column(s): {', '.join(missing)}")


def describe(entity: str) -> list[dict]:
    """Canonical fields accepted for an entity (CSV table when one exists)."""
    table = MAPPINGS.get((G, entity)) or MAPPINGS.get((J, entity))
    if table is None:
        raise KeyError(entity)
    return [
        {
            "field": fld.name,
            "kind": fld.kind.value,
            "required": fld.required,
            "columns": list(fld.sources),
        }
        for fld in table
    ]


def known_entities() -> list[str]:
    return sorted({entity for _, entity in MAPPINGS})
