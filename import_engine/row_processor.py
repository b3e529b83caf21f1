"""
import_engine.row_processor - Turn one mapped CSV row into persisted rows.

Single-responsibility: given a raw record for a known entity, map it,
resolve what it references and insert it through the Gateway, or raise
RowSkipped / RowError.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import config
from import_engine.errors import ResolutionError, RowError, RowSkipped
from import_engine.field_map import Field
from import_engine.gateway import Gateway
from import_engine.mapper import first_value, map_record
from import_engine.normalizers import money_str, to_decimal
from import_engine.resolver import EntityResolver, split_name

IMPORT_NOTE = "Imported from Bake Diary"

ORDER_STATUS = {
    "":          "Quote",
    "booked":    "Confirmed",
    "paid":      "Paid",
    "ready":     "Ready",
    "delivered": "Delivered",
    "cancelled": "Cancelled",
}

EVENT_TYPES = (
    "Birthday", "Wedding", "Corporate", "Anniversary",
    "Baby Shower", "Gender Reveal", "Christening", "Other",
)
_EVENT_LOOKUP = {e.lower(): e for e in EVENT_TYPES}


def order_status(raw: str) -> str:
    return ORDER_STATUS.get((raw or "").strip().lower(), "Quote")


def event_type(raw: str) -> str:
    return _EVENT_LOOKUP.get((raw or "").strip().lower(), "Other")


def _is_total(value) -> bool:
    return isinstance(value, str) and value.strip().lower() == "total"


class RowProcessor:
    """
    Stateful per-batch processor for one CSV entity type.

    Tracks which orders have already had their items replaced in this
    batch so later rows for the same order append instead of wiping.
    """

    def __init__(
        self,
        gateway: Gateway,
        resolver: EntityResolver,
        owner_id: int,
        entity: str,
        fields: tuple[Field, ...],
        *,
        dedup_expenses: bool | None = None,
        today: date | None = None,
    ):
        self.gateway = gateway
        self.resolver = resolver
        self.owner_id = owner_id
        self.entity = entity
        self.fields = fields
        self.dedup_expenses = (config.EXPENSE_DEDUP if dedup_expenses is None
                               else dedup_expenses)
        self.today = today or date.today()
        self._items_replaced: set[int] = set()
        self._handlers = {
            "expenses":    self._expense,
            "contacts":    self._contact,
            "orders":      self._order,
            "quotes":      self._quote,
            "order_items": self._order_item,
        }
        if entity not in self._handlers:
            raise ValueError(f"No CSV importer for {entity!r}")

    # ── Public API ─────────────────────────────────────────────────────

    def raw(self, record: dict, field_name: str):
        for fld in self.fields:
            if fld.name == field_name:
                return first_value(record, fld.sources)
        return None

    def skip_reason(self, record: dict) -> str | None:
        """Reason to exclude a row before mapping, or None."""
        if self.entity in ("orders", "quotes", "order_items"):
            number = self.raw(record, "order_number")
            if number is None:
                return "Missing order number"
            if _is_total(number) or _is_total(self.raw(record, "item_date")):
                return "Summary row"
        if self.entity == "expenses":
            first = next(iter(record.values()), "")
            if _is_total(first):
                return "Summary row"
        return None

    def label(self, record: dict) -> str:
        """Identifying value used in error messages."""
        if self.entity in ("orders", "quotes"):
            return f"#{self.raw(record, 'order_number') or '?'}"
        if self.entity == "order_items":
            return (f"#{self.raw(record, 'order_number') or '?'} "
                    f"{self.raw(record, 'name') or 'Unknown'}")
        if self.entity == "contacts":
            parts = [self.raw(record, k) for k in ("first_name", "last_name")]
            name = " ".join(p for p in parts if p) or self.raw(record, "name")
            return name or self.raw(record, "email") or "Unknown"
        return self.raw(record, "description") or self.raw(record, "date") or "Unknown"

    def process(self, record: dict, notes: list) -> int:
        """
        Map and persist one record.  Lenient-fallback notes are appended
        to ``notes`` as (field, message).  Returns the new row id.
        """
        values, mapped_notes = map_record(record, self.fields, today=self.today)
        notes.extend(mapped_notes)
        return self._handlers[self.entity](values, notes)

    # ── Entity handlers ────────────────────────────────────────────────

    def _expense(self, v: dict, notes: list) -> int:
        if self.dedup_expenses:
            key = {"date": v["date"], "description": v["description"],
                   "amount": v["amount"]}
            if self.gateway.find_by_key("expenses", key, self.owner_id):
                raise RowSkipped(
                    f"Expense {v['description']!r} on {v['date']} for "
                    f"{v['amount']} already exists, skipping"
                )
        return self.gateway.insert("expenses", {**v, "owner_id": self.owner_id})

    def _contact(self, v: dict, notes: list) -> int:
        first, last = v["first_name"], v["last_name"]
        if not (first or last) and v.get("name"):
            first, last = split_name(v["name"])
        name = f"{first} {last}".strip()
        email = v["email"]

        if not (name or email or v["business_name"]):
            raise RowError("Contact has no name, email or business name")

        if (name or email) and self.resolver.find_contact(name, email) is not None:
            raise RowSkipped(f"Contact {name or email} already exists, skipping")

        extra = [v.get("notes") or ""]
        if v.get("website"):
            extra.append(f"Website: {v['website']}")
        if v.get("source"):
            extra.append(f"Source: {v['source']}")

        cid = self.gateway.insert("contacts", {
            "owner_id": self.owner_id,
            "contact_type": v["contact_type"],
            "first_name": first,
            "last_name": last,
            "email": email,
            "phone": v["phone"],
            "business_name": v["business_name"],
            "address": v.get("address", ""),
            "notes": "\n".join(e for e in extra if e),
        })
        self.resolver.remember_contact(cid, name, email)
        return cid

    def _sale_common(self, v: dict) -> dict:
        contact_id = self.resolver.contact_id(
            v["contact"], v["contact_email"], defaults={"notes": IMPORT_NOTE},
        )
        return {
            "owner_id": self.owner_id,
            "contact_id": contact_id,
            "event_type": event_type(v["event_type"]),
            "event_date": v["event_date"],
            "theme": v["theme"],
            "total": v["total"],
        }

    def _order(self, v: dict, notes: list) -> int:
        number = v["order_number"]
        if self.resolver.order_id_by_number(number) is not None:
            raise RowSkipped(f"Order #{number} already exists, skipping")

        delivery = to_decimal(v["delivery_amount"])
        record = self._sale_common(v)
        record.update({
            "order_number": number,
            "status": order_status(v["status"]),
            "delivery_type": "Delivery" if delivery > 0 else "Pickup",
            "setup_fee": money_str(delivery) if delivery > 0 else "0",
            "notes": IMPORT_NOTE,
        })
        oid = self.gateway.insert("orders", record)
        self.resolver.ids.put("orders", "number", number, oid)
        return oid

    def _quote(self, v: dict, notes: list) -> int:
        number = v["order_number"]
        if self.gateway.find_by_key("quotes", {"quote_number": number}, self.owner_id):
            raise RowSkipped(f"Quote #{number} already exists, skipping")

        record = self._sale_common(v)
        record.update({
            "quote_number": number,
            "status": "Draft",
            "delivery_type": "Pickup",
            "expiry_date": (self.today + timedelta(days=config.QUOTE_EXPIRY_DAYS)).isoformat(),
            "notes": "\n".join(p for p in (v["theme"], IMPORT_NOTE) if p),
        })
        return self.gateway.insert("quotes", record)

    def _order_item(self, v: dict, notes: list) -> int:
        number = v["order_number"]
        order_id = self.resolver.order_id_by_number(number)
        if order_id is None:
            raise ResolutionError(f"Order #{number} not found")

        qty = v["quantity"] if v["quantity"] is not None else 1
        if qty < 1:
            notes.append(("quantity", f"Servings {qty} is not positive, using 1"))
            qty = 1

        price = Decimal(v["price"])
        if order_id not in self._items_replaced:
            self.gateway.delete_children("order_items", order_id)

        item_id = self.gateway.insert("order_items", {
            "order_id": order_id,
            "name": v["name"],
            "description": v["description"],
            "quantity": qty,
            "unit_price": money_str(price / qty),
            "price": v["price"],
        })
        self._items_replaced.add(order_id)
        return item_id


# Deletion plan for replaceExisting: children always precede parents.
# Contacts are never deleted by an import.
REPLACE_PLAN: dict[str, tuple[str, ...]] = {
    "orders":      ("order_items", "orders"),
    "quotes":      ("quote_items", "quotes"),
    "order_items": ("order_items",),
    "expenses":    ("expenses",),
    "contacts":    (),
}
