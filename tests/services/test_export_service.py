import json
from datetime import date

import pytest

from db import get_session
from db.models import (
    Contact, Enquiry, Expense, FeatureSetting, Income, Ingredient, Order, OrderItem,
    Product, Quote, QuoteItem, Recipe, RecipeIngredient, Settings, Task, TaxRate,
)
from import_engine import DatasetOptions, load_payload, run_csv_import, run_dataset_import
from services.export_service import ExportService, export_types
from tests.factories import UserFactory

TODAY = date(2025, 3, 1)

MODELS = (
    Contact, Order, OrderItem, Quote, QuoteItem, Product, Ingredient, Recipe,
    RecipeIngredient, Expense, Income, Task, Enquiry, Settings, TaxRate, FeatureSetting,
)

SOURCE = {
    "settings": {"businessName": "Sweet Things", "currency": "GBP"},
    "taxRates": [{"name": "Standard", "rate": "20", "isDefault": True}],
    "featureSettings": [{"feature": "recipes", "enabled": False}],
    "contacts": [
        {"id": 1, "firstName": "Jane", "lastName": "Doe", "email": "jane@example.com"},
        {"id": 2, "firstName": "Sam", "lastName": "Hill", "type": "Supplier"},
    ],
    "products": [{"name": "Sponge cake", "price": "35", "servings": 12}],
    "ingredients": [
        {"id": 10, "name": "Flour", "unit": "g", "costPerUnit": "0.002"},
        {"id": 11, "name": "Butter", "unit": "g", "costPerUnit": "0.01"},
    ],
    "recipes": [{
        "id": 20, "name": "Victoria sponge", "servings": 12,
        "ingredients": [
            {"ingredientId": 10, "quantity": "500", "unit": "g"},
            {"ingredientId": 11, "quantity": "250", "unit": "g"},
        ],
    }],
    "orders": [{
        "id": 30, "orderNumber": "5001", "contactId": 1, "eventDate": "2025-06-01",
        "eventType": "Birthday", "status": "Confirmed", "total": "120",
        "items": [
            {"name": "Sponge", "quantity": 2, "price": "100"},
            {"name": "Candles", "price": "20"},
        ],
    }],
    "quotes": [{
        "id": 40, "quoteNumber": "Q-1", "contactId": 2, "eventDate": "2025-07-01",
        "status": "Sent", "items": [{"name": "Tiered cake", "price": "300"}],
    }],
    "tasks": [
        {"title": "Bake sponge", "orderId": 30, "dueDate": "2025-05-31"},
        {"title": "Clean oven"},
    ],
    "enquiries": [{"name": "Pat Lee", "email": "pat@example.com", "message": "Wedding cake?"}],
    "financials": {
        "expenses": [
            {"date": "2025-01-11", "description": "Flour", "amount": "45", "taxDeductible": True},
            {"date": "2025-01-12", "description": "Boxes", "amount": "12.50"},
        ],
        "income": [{"date": "2025-01-12", "description": "Market stall", "amount": "200"}],
    },
}


def _counts(rows):
    return {model.__tablename__: len(rows(model)) for model in MODELS}


def _dataset(owner_id):
    session = get_session()
    try:
        return ExportService.dataset(session, owner_id)
    finally:
        session.close()


def _csv(owner_id, export_type):
    session = get_session()
    try:
        return ExportService.csv_text(session, owner_id, export_type)
    finally:
        session.close()


@pytest.fixture
def seeded(owner_id):
    report = run_dataset_import(SOURCE, owner_id, today=TODAY)
    assert report.ok and report.failed == 0
    return owner_id


# ── JSON dataset ───────────────────────────────────────────────────────

class TestDatasetExport:

    def test_replace_import_of_export_reproduces_data(self, seeded, rows):
        before = _counts(rows)
        exported = json.dumps(_dataset(seeded))

        report = run_dataset_import(exported, seeded,
                                    DatasetOptions(replace_existing=True), today=TODAY)

        assert report.ok, report.fatal
        assert report.failed == 0
        assert _counts(rows) == before
        assert before["order_items"] == 2
        assert before["recipe_ingredients"] == 2

    def test_links_survive_round_trip(self, seeded, rows):
        run_dataset_import(json.dumps(_dataset(seeded)), seeded,
                           DatasetOptions(replace_existing=True), today=TODAY)

        (order,) = rows(Order, owner_id=seeded)
        (jane,) = rows(Contact, owner_id=seeded, email="jane@example.com")
        assert order.contact_id == jane.id
        task = rows(Task, owner_id=seeded, title="Bake sponge")[0]
        assert task.order_id == order.id
        (recipe,) = rows(Recipe, owner_id=seeded)
        names = {rows(Ingredient, id=line.ingredient_id)[0].name
                 for line in rows(RecipeIngredient, recipe_id=recipe.id)}
        assert names == {"Flour", "Butter"}
        assert recipe.total_cost == "3.50"

    def test_export_shape(self, seeded):
        data = _dataset(seeded)

        assert load_payload(json.dumps(data)) == data
        (order,) = data["orders"]
        assert order["orderNumber"] == "5001"
        assert order["contactName"] == "Jane Doe"
        assert order["eventDate"] == "2025-06-01"
        assert [i["unitPrice"] for i in order["items"]] == ["50.00", "20.00"]
        assert data["quotes"][0]["expiryDate"] is None
        assert data["settings"]["currency"] == "GBP"
        assert len(data["financials"]["expenses"]) == 2
        assert data["recipes"][0]["ingredients"][0]["ingredientName"] == "Flour"

    def test_other_owners_not_exported(self, seeded):
        other = UserFactory().id
        data = _dataset(other)
        assert data["orders"] == []
        assert data["contacts"] == []
        assert data["settings"] is None


# ── CSV ────────────────────────────────────────────────────────────────

class TestCsvExport:

    def test_orders_csv_imports_for_another_owner(self, seeded, rows):
        text = _csv(seeded, "orders")
        assert text.splitlines()[0] == (
            "Order Number,Contact,Contact Email,Event Date,Event Type,Status,Theme,Order Total"
        )

        other = UserFactory().id
        report = run_csv_import(text, other, "orders", today=TODAY)

        assert report.imported == 1
        (order,) = rows(Order, owner_id=other)
        assert order.order_number == "5001"
        assert order.status == "Confirmed"
        assert order.event_date == date(2025, 6, 1)
        assert order.total == "120.00"
        (contact,) = rows(Contact, owner_id=other)
        assert contact.email == "jane@example.com"

    def test_expenses_csv_imports_back(self, seeded, rows):
        other = UserFactory().id
        report = run_csv_import(_csv(seeded, "expenses"), other, "expenses", today=TODAY)
        assert report.imported == 2
        flour = rows(Expense, owner_id=other, description="Flour")[0]
        assert flour.amount == "45.00"
        assert flour.tax_deductible is True

    def test_recipe_csv_lists_lines_under_recipe(self, seeded):
        lines = _csv(seeded, "recipes").splitlines()
        assert lines[1].startswith("Victoria sponge,,12,3.50")
        assert lines[2].startswith("Victoria sponge,,,,Flour,500,g")
        assert len(lines) == 4

    def test_template_is_header_only(self, owner_id):
        assert _csv(owner_id, "template_order_items") == (
            "Order Number,Date,Item,Details,Servings,Sell Price\n"
        )

    def test_unknown_type_raises(self, owner_id):
        with pytest.raises(KeyError):
            _csv(owner_id, "invoices")

    def test_export_types_listed(self):
        types = export_types()
        assert "orders" in types
        assert "template_orders" in types
