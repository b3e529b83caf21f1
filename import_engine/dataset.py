"""
import_engine.dataset - Full-dataset JSON import.

The payload is the data export: camelCase records grouped by
collection (contacts, orders with items, recipes with ingredients,
financials, ...).  Source ids in the payload are only meaningful inside
the payload, so every id reference is remapped through the batch IdMap.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import config
from db.engine import get_session
from import_engine import field_map as fm
from import_engine.errors import ImportFileError, ResolutionError, RowError, RowSkipped
from import_engine.gateway import Gateway
from import_engine.importer import Batch
from import_engine.mapper import map_record
from import_engine.normalizers import money_str
from import_engine.report import ImportReport
from import_engine.row_processor import ORDER_STATUS, event_type, order_status
from services.costing import recipe_cost

logger = logging.getLogger(__name__)

FALSY = frozenset({"false", "0", "no", "off"})

ORDER_STATUSES = frozenset(ORDER_STATUS.values())
QUOTE_STATUSES = frozenset({"Draft", "Sent", "Accepted", "Declined", "Expired", "Cancelled"})

LIST_KEYS = ("contacts", "orders", "quotes", "products", "ingredients",
             "recipes", "tasks", "enquiries", "taxRates", "featureSettings")


def parse_flag(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return default
    return text not in FALSY


@dataclass
class DatasetOptions:
    import_contacts: bool = True
    import_orders: bool = True
    import_products: bool = True
    import_recipes: bool = True
    import_financials: bool = True
    import_tasks: bool = True
    import_enquiries: bool = True
    import_settings: bool = True
    replace_existing: bool = False

    FLAGS = {
        "import_contacts":   "importContacts",
        "import_orders":     "importOrders",
        "import_products":   "importProducts",
        "import_recipes":    "importRecipes",
        "import_financials": "importFinancials",
        "import_tasks":      "importTasks",
        "import_enquiries":  "importEnquiries",
        "import_settings":   "importSettings",
        "replace_existing":  "replaceExisting",
    }

    @classmethod
    def from_flags(cls, flags) -> "DatasetOptions":
        """Build from request form/query values ("true", "0", "off", ...)."""
        opts = cls()
        for attr, flag in cls.FLAGS.items():
            setattr(opts, attr, parse_flag(flags.get(flag), getattr(opts, attr)))
        return opts

    def replace_plan(self) -> list[str]:
        """Entities to clear, children before parents.  Contacts are never cleared."""
        plan: list[str] = []
        if self.import_orders:
            plan += ["order_items", "quote_items"]
        if self.import_tasks:
            plan += ["tasks"]
        if self.import_orders:
            plan += ["orders", "quotes"]
        if self.import_recipes:
            plan += ["recipe_ingredients", "recipes", "ingredients"]
        if self.import_products:
            plan += ["products"]
        if self.import_financials:
            plan += ["expenses", "income"]
        if self.import_enquiries:
            plan += ["enquiries"]
        if self.import_settings:
            plan += ["settings", "tax_rates", "feature_settings"]
        return plan


def load_payload(raw: str | bytes | dict) -> dict:
    """Decode and sanity-check a dataset payload, or raise ImportFileError."""
    if isinstance(raw, (bytes, str)):
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8-sig", errors="replace")
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ImportFileError(f"Invalid JSON file: {exc.msg} (line {exc.lineno})") from None

    if not isinstance(raw, dict):
        raise ImportFileError("Dataset must be a JSON object")

    for key in LIST_KEYS:
        if raw.get(key) is not None and not isinstance(raw[key], list):
            raise ImportFileError(f"'{key}' must be a list")
    fin = raw.get("financials")
    if fin is not None and not isinstance(fin, dict):
        raise ImportFileError("'financials' must be an object")
    if raw.get("settings") is not None and not isinstance(raw["settings"], dict):
        raise ImportFileError("'settings' must be an object")
    return raw


class DatasetImporter:
    """Walks a payload collection by collection, one SAVEPOINT per record."""

    def __init__(self, batch: Batch, today: date | None = None):
        self.batch = batch
        self.gateway = batch.gateway
        self.resolver = batch.resolver
        self.owner_id = batch.owner_id
        self.today = today or date.today()

    def run(self, data: dict, opts: DatasetOptions) -> None:
        if opts.import_settings:
            self._single("settings", data.get("settings"), self._settings)
            self._each("tax_rates", data.get("taxRates"), self._tax_rate)
            self._each("feature_settings", data.get("featureSettings"), self._feature)
        if opts.import_contacts:
            self._each("contacts", data.get("contacts"), self._contact)
        if opts.import_products:
            self._each("products", data.get("products"), self._product)
        if opts.import_recipes:
            self._each("ingredients", data.get("ingredients"), self._ingredient)
            self._each("recipes", data.get("recipes"), self._recipe)
        if opts.import_orders:
            self._each("orders", data.get("orders"), self._order)
            self._each("quotes", data.get("quotes"), self._quote)
        if opts.import_tasks:
            self._each("tasks", data.get("tasks"), self._task)
        if opts.import_enquiries:
            self._each("enquiries", data.get("enquiries"), self._enquiry)
        if opts.import_financials:
            fin = data.get("financials") or {}
            self._each("expenses", fin.get("expenses", data.get("expenses")), self._expense)
            self._each("income", fin.get("income", data.get("income")), self._income)

    # ── Iteration ──────────────────────────────────────────────────────

    def _each(self, entity: str, records, handler) -> None:
        for row, rec in enumerate(records or [], start=1):
            if not isinstance(rec, dict):
                self.batch.report.add_error(entity, row, f"Row {row}: not an object")
                continue
            self.batch.run_row(
                entity, row, _label(rec),
                lambda notes, r=rec: handler(r, notes),
            )

    def _single(self, entity: str, record, handler) -> None:
        if record:
            self._each(entity, [record], handler)

    def _map(self, rec: dict, table, notes: list) -> dict:
        values, mapped_notes = map_record(rec, table, strict=True, today=self.today)
        notes.extend(mapped_notes)
        return values

    def _owned(self, values: dict) -> dict:
        out = {k: v for k, v in values.items() if k != "id"}
        out["owner_id"] = self.owner_id
        return out

    # ── Settings ───────────────────────────────────────────────────────

    def _settings(self, rec: dict, notes: list) -> int:
        if self.gateway.find_by_key("settings", {}, self.owner_id):
            raise RowSkipped("Settings already exist, skipping")
        return self.gateway.insert("settings", self._owned(self._map(rec, fm.JSON_SETTINGS, notes)))

    def _tax_rate(self, rec: dict, notes: list) -> int:
        v = self._map(rec, fm.JSON_TAX_RATES, notes)
        if self.gateway.find_by_key("tax_rates", {"name": v["name"]}, self.owner_id):
            raise RowSkipped(f"Tax rate {v['name']!r} already exists, skipping")
        return self.gateway.insert("tax_rates", self._owned(v))

    def _feature(self, rec: dict, notes: list) -> int:
        v = self._map(rec, fm.JSON_FEATURE_SETTINGS, notes)
        if self.gateway.find_by_key("feature_settings", {"feature": v["feature"]}, self.owner_id):
            raise RowSkipped(f"Feature setting {v['feature']!r} already exists, skipping")
        return self.gateway.insert("feature_settings", self._owned(v))

    # ── Contacts / catalogue ───────────────────────────────────────────

    def _contact(self, rec: dict, notes: list) -> int:
        v = self._map(rec, fm.JSON_CONTACTS, notes)
        name = f"{v['first_name']} {v['last_name']}".strip()
        if not (name or v["email"] or v["business_name"]):
            raise RowError("Contact has no name, email or business name")

        existing = self.resolver.find_contact(name, v["email"]) if (name or v["email"]) else None
        if existing is not None:
            self.resolver.register("contacts", v["id"], existing)
            raise RowSkipped(f"Contact {name or v['email']} already exists, skipping")

        cid = self.gateway.insert("contacts", self._owned(v))
        self.resolver.register("contacts", v["id"], cid)
        self.resolver.remember_contact(cid, name, v["email"])
        return cid

    def _product(self, rec: dict, notes: list) -> int:
        return self.gateway.insert("products", self._owned(self._map(rec, fm.JSON_PRODUCTS, notes)))

    def _ingredient(self, rec: dict, notes: list) -> int:
        v = self._map(rec, fm.JSON_INGREDIENTS, notes)
        existing = self.gateway.find_by_key("ingredients", {"name": v["name"]}, self.owner_id)
        if existing is not None:
            self.resolver.register("ingredients", v["id"], existing.id)
            raise RowSkipped(f"Ingredient {v['name']!r} already exists, skipping")
        iid = self.gateway.insert("ingredients", self._owned(v))
        self.resolver.register("ingredients", v["id"], iid)
        return iid

    def _ingredient_for(self, line: dict) -> int:
        """Remapped id, then an owned id, then a name match or new ingredient."""
        src = line["ingredient_id"]
        iid = self.resolver.remap("ingredients", src)
        if iid is not None:
            return iid
        owned = self.gateway.get_owned("ingredients", src, self.owner_id)
        if owned is not None:
            return owned.id
        name = line["ingredient"]
        if not name:
            raise ResolutionError(f"Ingredient {src} not found")
        existing = self.gateway.find_by_key("ingredients", {"name": name}, self.owner_id)
        if existing is not None:
            return existing.id
        return self.gateway.insert("ingredients", {
            "owner_id": self.owner_id, "name": name, "unit": line["unit"],
        })

    def _recipe(self, rec: dict, notes: list) -> int:
        v = self._map(rec, fm.JSON_RECIPES, notes)
        rid = self.gateway.insert("recipes", self._owned(v))

        for line_rec in rec.get("ingredients") or []:
            line = self._map(line_rec, fm.JSON_RECIPE_INGREDIENTS, notes)
            self.gateway.insert("recipe_ingredients", {
                "recipe_id": rid,
                "ingredient_id": self._ingredient_for(line),
                "quantity": line["quantity"],
                "unit": line["unit"],
                "cost": line["cost"],
            })

        if v["total_cost"] is None:
            recipe = self.gateway.get("recipes", rid)
            self.gateway.expire(recipe)
            self.gateway.update("recipes", rid, {"total_cost": recipe_cost(recipe)})

        self.resolver.register("recipes", v["id"], rid)
        return rid

    # ── Orders / quotes ────────────────────────────────────────────────

    def _contact_for(self, v: dict) -> int:
        """Remapped source id, then natural key, then an owned id."""
        cid = self.resolver.remap("contacts", v["contact_id"])
        if cid is not None:
            return cid
        if v["contact_name"] or v["contact_email"]:
            return self.resolver.contact_id(v["contact_name"], v["contact_email"])
        owned = self.gateway.get_owned("contacts", v["contact_id"], self.owner_id)
        if owned is not None:
            return owned.id
        raise ResolutionError(f"Contact {v['contact_id']} not found")

    def _items(self, entity: str, fk: str, parent_id: int, items, notes: list) -> None:
        for item_rec in items or []:
            item = self._map(item_rec, fm.JSON_LINE_ITEMS, notes)
            qty = item["quantity"] if item["quantity"] and item["quantity"] > 0 else 1
            if item["unit_price"] is None:
                item["unit_price"] = money_str(Decimal(item["price"]) / qty)
            item.update({"quantity": qty, fk: parent_id})
            self.gateway.insert(entity, item)

    def _order(self, rec: dict, notes: list) -> int:
        v = self._map(rec, fm.JSON_ORDERS, notes)
        number = v["order_number"]
        existing = self.resolver.order_id_by_number(number)
        if existing is not None:
            self.resolver.register("orders", v["id"], existing)
            raise RowSkipped(f"Order #{number} already exists, skipping")

        values = self._owned(v)
        values.update({
            "contact_id": self._contact_for(v),
            "status": v["status"] if v["status"] in ORDER_STATUSES else order_status(v["status"]),
            "event_type": event_type(v["event_type"]),
        })
        oid = self.gateway.insert("orders", values)
        self._items("order_items", "order_id", oid, rec.get("items"), notes)
        self.resolver.register("orders", v["id"], oid)
        self.resolver.ids.put("orders", "number", number, oid)
        return oid

    def _quote(self, rec: dict, notes: list) -> int:
        v = self._map(rec, fm.JSON_QUOTES, notes)
        number = v["quote_number"]
        if self.gateway.find_by_key("quotes", {"quote_number": number}, self.owner_id):
            raise RowSkipped(f"Quote #{number} already exists, skipping")

        values = self._owned(v)
        values.update({
            "contact_id": self._contact_for(v),
            "status": v["status"] if v["status"] in QUOTE_STATUSES else "Draft",
            "event_type": event_type(v["event_type"]),
        })
        qid = self.gateway.insert("quotes", values)
        self._items("quote_items", "quote_id", qid, rec.get("items"), notes)
        return qid

    # ── Simple records ─────────────────────────────────────────────────

    def _task(self, rec: dict, notes: list) -> int:
        v = self._map(rec, fm.JSON_TASKS, notes)
        src = v["order_id"]
        order_id = self.resolver.remap("orders", src)
        if order_id is None and src is not None:
            owned = self.gateway.get_owned("orders", src, self.owner_id)
            order_id = owned.id if owned is not None else None
            if order_id is None:
                notes.append(("order_id", f"Order {src} not found, task left unlinked"))
        v["order_id"] = order_id
        return self.gateway.insert("tasks", self._owned(v))

    def _enquiry(self, rec: dict, notes: list) -> int:
        v = self._map(rec, fm.JSON_ENQUIRIES, notes)
        if not v["name"]:
            first, last = rec.get("firstName") or "", rec.get("lastName") or ""
            v["name"] = f"{first} {last}".strip()
        return self.gateway.insert("enquiries", self._owned(v))

    def _expense(self, rec: dict, notes: list) -> int:
        v = self._map(rec, fm.JSON_EXPENSES, notes)
        if config.EXPENSE_DEDUP:
            key = {"date": v["date"], "description": v["description"], "amount": v["amount"]}
            if self.gateway.find_by_key("expenses", key, self.owner_id):
                raise RowSkipped(f"Expense {v['description']!r} on {v['date']} already exists, skipping")
        return self.gateway.insert("expenses", self._owned(v))

    def _income(self, rec: dict, notes: list) -> int:
        return self.gateway.insert("income", self._owned(self._map(rec, fm.JSON_INCOME, notes)))


def _label(rec: dict) -> str:
    for key in ("orderNumber", "quoteNumber", "name", "title", "feature",
                "description", "email"):
        val = rec.get(key)
        if val:
            return f"#{val}" if key.endswith("Number") else str(val)
    first, last = rec.get("firstName") or "", rec.get("lastName") or ""
    return f"{first} {last}".strip() or "Unknown"


def run_dataset_import(
    payload: str | bytes | dict,
    owner_id: int,
    options: DatasetOptions | None = None,
    *,
    today: date | None = None,
) -> ImportReport:
    """
    Import a full JSON dataset for ``owner_id``.

    Raises ImportFileError before touching the database when the payload
    is not a usable dataset.
    """
    data = load_payload(payload)
    opts = options or DatasetOptions()
    report = ImportReport(source_format="json_dataset")

    session = get_session()
    batch = Batch(Gateway(session), owner_id, report)
    try:
        if opts.replace_existing:
            batch.clear(opts.replace_plan())
        DatasetImporter(batch, today).run(data, opts)
        batch.gateway.commit()
    except Exception as exc:
        batch.gateway.rollback()
        logger.exception("dataset import aborted")
        report.fatal = f"Fatal import error: {exc}"
    finally:
        session.close()

    logger.info(
        f"dataset import: {report.imported} imported, {report.skipped} skipped, "
        f"{report.failed} failed"
    )
    return report


def run_ingredients_import(items, owner_id: int, *, today: date | None = None) -> ImportReport:
    """
    Import a bare list of ingredient records (name, unit, costPerUnit,
    packSize, packCost, supplier).  Names already on file are skipped.
    """
    if not isinstance(items, list) or not items:
        raise ImportFileError("No valid ingredient items provided")
    return run_dataset_import({"ingredients": items}, owner_id, today=today)
