"""
services.export_service - Owner data export.

dataset() builds the camelCase JSON document that
import_engine.dataset reads back, so an export followed by a
replaceExisting import reproduces the owner's data.  csv_text() renders
one record type as CSV; the order, quote, order-item, contact and
expense layouts use the column names the CSV importers accept.

All session management is the caller's responsibility.
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models import (
    Contact, Enquiry, Expense, FeatureSetting, Income, Ingredient, Order,
    OrderItem, Product, Quote, Recipe, Settings, Task, TaxRate,
)
from import_engine.row_processor import ORDER_STATUS

EXPORT_VERSION = "1.0"

# Stored order status → the vendor wording the order-list importer maps back
VENDOR_STATUS = {v: k.title() for k, v in ORDER_STATUS.items() if k}


def _iso(value) -> str | None:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _yes_no(value) -> str:
    return "Yes" if value else "No"


def _owned(session: Session, model, owner_id: int) -> list:
    stmt = select(model).where(model.owner_id == owner_id).order_by(model.id)
    return list(session.scalars(stmt).all())


# ── JSON records ───────────────────────────────────────────────────────

def _contact(c: Contact) -> dict:
    return {
        "id": c.id, "contactType": c.contact_type,
        "firstName": c.first_name, "lastName": c.last_name,
        "email": c.email, "phone": c.phone, "businessName": c.business_name,
        "address": c.address, "notes": c.notes,
    }


def _line_item(i) -> dict:
    return {
        "type": i.type, "name": i.name, "description": i.description,
        "quantity": i.quantity, "unitPrice": i.unit_price, "price": i.price,
        "notes": i.notes,
    }


def _sale(s) -> dict:
    contact = s.contact
    return {
        "id": s.id,
        "contactId": s.contact_id,
        "contactName": contact.full_name if contact is not None else "",
        "contactEmail": contact.email if contact is not None else "",
        "status": s.status,
        "eventType": s.event_type,
        "eventDate": _iso(s.event_date),
        "theme": s.theme,
        "deliveryType": s.delivery_type,
        "deliveryDetails": s.delivery_details,
        "discount": s.discount,
        "discountType": s.discount_type,
        "setupFee": s.setup_fee,
        "taxRate": s.tax_rate,
        "total": s.total,
        "notes": s.notes,
        "items": [_line_item(i) for i in s.items],
    }


def _order(o: Order) -> dict:
    return {"orderNumber": o.order_number, **_sale(o)}


def _quote(q: Quote) -> dict:
    return {"quoteNumber": q.quote_number, "expiryDate": _iso(q.expiry_date), **_sale(q)}


def _ingredient(i: Ingredient) -> dict:
    return {
        "id": i.id, "name": i.name, "unit": i.unit,
        "costPerUnit": i.cost_per_unit, "packSize": i.pack_size,
        "packCost": i.pack_cost, "supplier": i.supplier,
    }


def _recipe(r: Recipe) -> dict:
    return {
        "id": r.id, "name": r.name, "description": r.description,
        "category": r.category, "servings": r.servings,
        "instructions": r.instructions, "totalCost": r.total_cost,
        "prepTime": r.prep_time, "cookTime": r.cook_time,
        "ingredients": [
            {
                "ingredientId": line.ingredient_id,
                "ingredientName": line.ingredient.name if line.ingredient is not None else "",
                "quantity": line.quantity,
                "unit": line.unit,
                "cost": line.cost,
            }
            for line in r.ingredients
        ],
    }


def _product(p: Product) -> dict:
    return {
        "type": p.type, "name": p.name, "description": p.description,
        "servings": p.servings, "price": p.price, "cost": p.cost,
        "active": p.active,
    }


def _task(t: Task) -> dict:
    return {
        "orderId": t.order_id, "title": t.title, "description": t.description,
        "dueDate": _iso(t.due_date), "completed": t.completed,
        "priority": t.priority,
    }


def _enquiry(e: Enquiry) -> dict:
    return {
        "name": e.name, "email": e.email, "phone": e.phone,
        "eventType": e.event_type, "eventDate": _iso(e.event_date),
        "message": e.message, "status": e.status,
    }


def _expense(e: Expense) -> dict:
    return {
        "date": _iso(e.date), "category": e.category, "amount": e.amount,
        "description": e.description, "supplier": e.supplier,
        "paymentSource": e.payment_source, "vat": e.vat,
        "totalIncTax": e.total_inc_tax, "isRecurring": e.is_recurring,
        "taxDeductible": e.tax_deductible, "receiptUrl": e.receipt_url,
    }


def _income(i: Income) -> dict:
    return {
        "date": _iso(i.date), "category": i.category, "amount": i.amount,
        "description": i.description,
    }


def _settings(s: Settings) -> dict:
    return {
        "businessName": s.business_name, "currency": s.currency,
        "defaultTaxRate": s.default_tax_rate, "laborRate": s.labor_rate,
        "orderNumberPrefix": s.order_number_prefix,
        "quoteNumberPrefix": s.quote_number_prefix,
        "invoiceFooter": s.invoice_footer, "quoteFooter": s.quote_footer,
    }


# ── CSV layouts ────────────────────────────────────────────────────────
# type → (columns, rows(session, owner_id) -> iterable of dicts)

def _order_rows(session, owner_id):
    for o in _owned(session, Order, owner_id):
        yield {
            "Order Number": o.order_number,
            "Contact": o.contact.full_name if o.contact is not None else "",
            "Contact Email": o.contact.email if o.contact is not None else "",
            "Event Date": _iso(o.event_date),
            "Event Type": o.event_type,
            "Status": VENDOR_STATUS.get(o.status, ""),
            "Theme": o.theme,
            "Order Total": o.total,
        }


def _quote_rows(session, owner_id):
    for q in _owned(session, Quote, owner_id):
        yield {
            "Order Number": q.quote_number,
            "Contact": q.contact.full_name if q.contact is not None else "",
            "Contact Email": q.contact.email if q.contact is not None else "",
            "Event Date": _iso(q.event_date),
            "Event Type": q.event_type,
            "Status": q.status,
            "Theme": q.theme,
            "Order Total": q.total,
        }


def _order_item_rows(session, owner_id):
    stmt = (
        select(OrderItem, Order)
        .join(Order, OrderItem.order_id == Order.id)
        .where(Order.owner_id == owner_id)
        .order_by(Order.id, OrderItem.id)
    )
    for item, order in session.execute(stmt):
        yield {
            "Order Number": order.order_number,
            "Date": _iso(order.event_date),
            "Item": item.name,
            "Details": item.description,
            "Servings": item.quantity,
            "Sell Price": item.price,
        }


def _contact_rows(session, owner_id):
    for c in _owned(session, Contact, owner_id):
        yield {
            "Type": c.contact_type, "First Name": c.first_name,
            "Last Name": c.last_name, "Email": c.email, "Phone": c.phone,
            "Business Name": c.business_name, "Address": c.address,
            "Notes": c.notes,
        }


def _expense_rows(session, owner_id):
    for e in _owned(session, Expense, owner_id):
        yield {
            "Date": _iso(e.date), "Description": e.description,
            "Category": e.category, "Amount": e.amount,
            "Supplier": e.supplier, "Payment Source": e.payment_source,
            "VAT": e.vat, "Total Inc Tax": e.total_inc_tax,
            "Is Recurring": _yes_no(e.is_recurring),
            "Tax Deductible": _yes_no(e.tax_deductible),
            "Receipt URL": e.receipt_url,
        }


def _income_rows(session, owner_id):
    for i in _owned(session, Income, owner_id):
        yield {"Date": _iso(i.date), "Description": i.description,
               "Category": i.category, "Amount": i.amount}


def _product_rows(session, owner_id):
    for p in _owned(session, Product, owner_id):
        yield {"Name": p.name, "Type": p.type, "Description": p.description,
               "Servings": p.servings, "Price": p.price, "Cost": p.cost,
               "Active": _yes_no(p.active)}


def _ingredient_rows(session, owner_id):
    for i in _owned(session, Ingredient, owner_id):
        yield {"Name": i.name, "Unit": i.unit, "Cost Per Unit": i.cost_per_unit,
               "Pack Size": i.pack_size, "Pack Cost": i.pack_cost,
               "Supplier": i.supplier}


def _recipe_rows(session, owner_id):
    # one row for the recipe, then one per ingredient line
    for r in _owned(session, Recipe, owner_id):
        yield {"Recipe Name": r.name, "Category": r.category,
               "Servings": r.servings, "Total Cost": r.total_cost}
        for line in r.ingredients:
            yield {"Recipe Name": r.name,
                   "Ingredient": line.ingredient.name if line.ingredient is not None else "",
                   "Quantity": line.quantity, "Unit": line.unit, "Cost": line.cost}


def _task_rows(session, owner_id):
    for t in _owned(session, Task, owner_id):
        yield {"Title": t.title, "Description": t.description,
               "Due Date": _iso(t.due_date), "Priority": t.priority,
               "Completed": _yes_no(t.completed)}


def _enquiry_rows(session, owner_id):
    for e in _owned(session, Enquiry, owner_id):
        yield {"Name": e.name, "Email": e.email, "Phone": e.phone,
               "Event Type": e.event_type, "Event Date": _iso(e.event_date),
               "Message": e.message, "Status": e.status}


SALE_COLUMNS = ("Order Number", "Contact", "Contact Email", "Event Date",
                "Event Type", "Status", "Theme", "Order Total")

CSV_EXPORTS = {
    "orders":      (SALE_COLUMNS, _order_rows),
    "quotes":      (SALE_COLUMNS, _quote_rows),
    "order_items": (("Order Number", "Date", "Item", "Details", "Servings", "Sell Price"),
                    _order_item_rows),
    "contacts":    (("Type", "First Name", "Last Name", "Email", "Phone",
                     "Business Name", "Address", "Notes"), _contact_rows),
    "expenses":    (("Date", "Description", "Category", "Amount", "Supplier",
                     "Payment Source", "VAT", "Total Inc Tax", "Is Recurring",
                     "Tax Deductible", "Receipt URL"), _expense_rows),
    "income":      (("Date", "Description", "Category", "Amount"), _income_rows),
    "products":    (("Name", "Type", "Description", "Servings", "Price", "Cost",
                     "Active"), _product_rows),
    "ingredients": (("Name", "Unit", "Cost Per Unit", "Pack Size", "Pack Cost",
                     "Supplier"), _ingredient_rows),
    "recipes":     (("Recipe Name", "Category", "Servings", "Total Cost",
                     "Ingredient", "Quantity", "Unit", "Cost"), _recipe_rows),
    "tasks":       (("Title", "Description", "Due Date", "Priority", "Completed"),
                    _task_rows),
    "enquiries":   (("Name", "Email", "Phone", "Event Type", "Event Date",
                     "Message", "Status"), _enquiry_rows),
}

# Header-only files for filling in by hand
TEMPLATES = {
    "template_orders":      CSV_EXPORTS["orders"][0],
    "template_quotes":      CSV_EXPORTS["quotes"][0],
    "template_order_items": CSV_EXPORTS["order_items"][0],
    "template_contacts":    CSV_EXPORTS["contacts"][0],
    "template_expenses":    CSV_EXPORTS["expenses"][0],
}


def export_types() -> list[str]:
    return sorted(CSV_EXPORTS) + sorted(TEMPLATES)


class ExportService:

    @staticmethod
    def dataset(session: Session, owner_id: int) -> dict:
        """Everything the owner has, grouped by collection."""
        settings = session.scalars(
            select(Settings).where(Settings.owner_id == owner_id)
        ).first()
        return {
            "version": EXPORT_VERSION,
            "exportDate": datetime.now(timezone.utc).isoformat(),
            "settings": _settings(settings) if settings is not None else None,
            "taxRates": [
                {"name": t.name, "rate": t.rate, "isDefault": t.is_default}
                for t in _owned(session, TaxRate, owner_id)
            ],
            "featureSettings": [
                {"feature": f.feature, "enabled": f.enabled}
                for f in _owned(session, FeatureSetting, owner_id)
            ],
            "contacts": [_contact(c) for c in _owned(session, Contact, owner_id)],
            "products": [_product(p) for p in _owned(session, Product, owner_id)],
            "ingredients": [_ingredient(i) for i in _owned(session, Ingredient, owner_id)],
            "recipes": [_recipe(r) for r in _owned(session, Recipe, owner_id)],
            "orders": [_order(o) for o in _owned(session, Order, owner_id)],
            "quotes": [_quote(q) for q in _owned(session, Quote, owner_id)],
            "tasks": [_task(t) for t in _owned(session, Task, owner_id)],
            "enquiries": [_enquiry(e) for e in _owned(session, Enquiry, owner_id)],
            "financials": {
                "expenses": [_expense(e) for e in _owned(session, Expense, owner_id)],
                "income": [_income(i) for i in _owned(session, Income, owner_id)],
            },
        }

    @staticmethod
    def csv_text(session: Session, owner_id: int, export_type: str) -> str:
        """
        CSV for one record type (or a header-only template).

        Raises KeyError for an unknown type.
        """
        if export_type in TEMPLATES:
            columns, rows = TEMPLATES[export_type], ()
        else:
            columns, producer = CSV_EXPORTS[export_type]
            rows = producer(session, owner_id)

        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=columns, extrasaction="ignore",
                                lineterminator="\n")
        writer.writeheader()
        for row in rows:
            writer.writerow(
                {k: ("" if row.get(k) is None else str(row.get(k))) for k in columns}
            )
        return buf.getvalue()
