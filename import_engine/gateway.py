"""
import_engine.gateway - The import pipeline's only door to the database.

Everything the importers persist, look up or delete goes through
Gateway, keyed by entity name ("orders", "order_items", ...).  Owner
scoping is applied here: owner-scoped tables filter on owner_id, child
tables (line items, recipe lines) filter through their parent.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date

from sqlalchemy import Date, delete, func, select
from sqlalchemy.orm import Session

from db.models import (
    Base, Contact, Enquiry, Expense, FeatureSetting, Income, Ingredient,
    Order, OrderItem, Product, Quote, QuoteItem, Recipe, RecipeIngredient,
    Settings, Task, TaxRate,
)

ENTITIES: dict[str, type[Base]] = {
    "contacts":           Contact,
    "orders":             Order,
    "order_items":        OrderItem,
    "quotes":             Quote,
    "quote_items":        QuoteItem,
    "products":           Product,
    "ingredients":        Ingredient,
    "recipes":            Recipe,
    "recipe_ingredients": RecipeIngredient,
    "expenses":           Expense,
    "income":             Income,
    "tasks":              Task,
    "enquiries":          Enquiry,
    "settings":           Settings,
    "tax_rates":          TaxRate,
    "feature_settings":   FeatureSetting,
}

# child entity → (foreign-key column name, parent entity)
CHILDREN: dict[str, tuple[str, str]] = {
    "order_items":        ("order_id", "orders"),
    "quote_items":        ("quote_id", "quotes"),
    "recipe_ingredients": ("recipe_id", "recipes"),
}


def model_for(entity: str) -> type[Base]:
    try:
        return ENTITIES[entity]
    except KeyError:
        raise ValueError(f"Unknown entity type {entity!r}") from None


class Gateway:
    """Per-batch persistence facade over one SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    # ── Writes ─────────────────────────────────────────────────────────

    def insert(self, entity: str, record: dict) -> int:
        """Insert one row and return its generated id."""
        model = model_for(entity)
        obj = model(**self._prepare(model, record))
        self.session.add(obj)
        self.session.flush()
        return obj.id

    def update(self, entity: str, row_id: int, values: dict) -> None:
        model = model_for(entity)
        obj = self.session.get(model, row_id)
        if obj is None:
            raise LookupError(f"{entity} #{row_id} not found")
        for key, val in self._prepare(model, values).items():
            setattr(obj, key, val)
        self.session.flush()

    def delete_all_for_owner(self, entity: str, owner_id: int) -> int:
        """Delete every row of ``entity`` belonging to ``owner_id``; return the count."""
        model = model_for(entity)
        if entity in CHILDREN:
            fk, parent = CHILDREN[entity]
            parent_model = model_for(parent)
            parent_ids = select(parent_model.id).where(parent_model.owner_id == owner_id)
            stmt = delete(model).where(getattr(model, fk).in_(parent_ids))
        else:
            stmt = delete(model).where(model.owner_id == owner_id)
        return self._bulk(stmt)

    def delete_children(self, entity: str, parent_id: int) -> int:
        """Delete the child rows of one parent (e.g. an order's items)."""
        fk, _ = CHILDREN[entity]
        model = model_for(entity)
        return self._bulk(delete(model).where(getattr(model, fk) == parent_id))

    def _bulk(self, stmt) -> int:
        result = self.session.execute(stmt.execution_options(synchronize_session=False))
        self.session.expire_all()
        return result.rowcount or 0

    # ── Reads ──────────────────────────────────────────────────────────

    def get(self, entity: str, row_id: int):
        return self.session.get(model_for(entity), row_id)

    def get_owned(self, entity: str, row_id, owner_id: int):
        """Row by id, only if it belongs to ``owner_id``."""
        if row_id is None:
            return None
        obj = self.session.get(model_for(entity), row_id)
        if obj is None or getattr(obj, "owner_id", None) != owner_id:
            return None
        return obj

    def find_by_key(self, entity: str, key: dict, owner_id: int):
        """
        First row of ``entity`` for ``owner_id`` whose columns match ``key``.
        String values compare case-insensitively, ignoring outer whitespace.
        """
        model = model_for(entity)
        stmt = select(model).where(model.owner_id == owner_id)
        for col_name, val in self._prepare(model, key).items():
            col = getattr(model, col_name)
            if isinstance(val, str):
                stmt = stmt.where(func.lower(func.trim(col)) == val.strip().lower())
            elif val is None:
                stmt = stmt.where(col.is_(None))
            else:
                stmt = stmt.where(col == val)
        return self.session.scalars(stmt.order_by(model.id).limit(1)).first()

    def expire(self, obj) -> None:
        """Drop loaded state so relationships reload on next access."""
        self.session.expire(obj)

    # ── Transactions ───────────────────────────────────────────────────

    @contextmanager
    def savepoint(self):
        """Run a block in a SAVEPOINT; an exception rolls back only that block."""
        with self.session.begin_nested():
            yield

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    # ── Private helpers ────────────────────────────────────────────────

    @staticmethod
    def _prepare(model: type[Base], record: dict) -> dict:
        """Keep only real columns; turn ISO strings into dates for Date columns."""
        cols = model.__table__.columns
        values = {}
        for key, val in record.items():
            if key not in cols:
                continue
            if isinstance(cols[key].type, Date) and isinstance(val, str):
                val = date.fromisoformat(val) if val else None
            values[key] = val
        return values
