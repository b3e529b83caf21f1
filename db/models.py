"""
db.models - SQLAlchemy ORM declarations.

Tables
------
users                - business owners; every other table is scoped to one.
contacts             - customers and suppliers.
orders / quotes      - numbered per owner, each owning a set of line items
                       (order_items / quote_items) that is always replaced
                       as a unit.
products             - sellable catalogue entries.
ingredients          - priced stock items, shared across recipes through
                       recipe_ingredients.
expenses / income    - bookkeeping rows.
tasks / enquiries    - simple owner-scoped records.
settings             - one row per owner.
tax_rates / feature_settings - owner-scoped lookup rows.

Monetary values are stored as decimal strings ("45.00"), never floats.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _now():
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):

    # ── Serialisation ──────────────────────────────────────────────────
    def to_dict(self) -> dict:
        d = {}
        for col in self.__table__.columns:
            val = getattr(self, col.key)
            if isinstance(val, (date, datetime)):
                val = val.isoformat()
            d[col.key] = val
        return d


def _owner_fk():
    return Column(Integer, ForeignKey("users.id"), nullable=False, index=True)


class User(Base):
    __tablename__ = "users"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    username      = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(300), nullable=False)
    email         = Column(String(200), default="")
    business_name = Column(String(200), default="")
    created_at    = Column(DateTime, default=_now)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d.pop("password_hash")
        return d


class Contact(Base):
    __tablename__ = "contacts"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    owner_id      = _owner_fk()
    contact_type  = Column(String(50), default="Customer")
    first_name    = Column(String(100), nullable=False, default="")
    last_name     = Column(String(100), nullable=False, default="")
    email         = Column(String(200), default="", index=True)
    phone         = Column(String(50), default="")
    business_name = Column(String(200), default="")
    address       = Column(Text, default="")
    notes         = Column(Text, default="")
    created_at    = Column(DateTime, default=_now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Order(Base):
    __tablename__ = "orders"

    id               = Column(Integer, primary_key=True, autoincrement=True)
    owner_id         = _owner_fk()
    contact_id       = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    order_number     = Column(String(50), nullable=False)
    event_type       = Column(String(50), nullable=False, default="Other")
    event_date       = Column(Date, nullable=False)
    status           = Column(String(30), nullable=False, default="Quote")
    theme            = Column(String(300), default="")
    delivery_type    = Column(String(20), nullable=False, default="Pickup")
    delivery_details = Column(Text, default="")
    discount         = Column(String(20), default="0")
    discount_type    = Column(String(5), default="%")
    setup_fee        = Column(String(20), default="0")
    tax_rate         = Column(String(20), default="0")
    total            = Column(String(20), nullable=False, default="0")
    notes            = Column(Text, default="")
    created_at       = Column(DateTime, default=_now)

    contact = relationship("Contact")
    items = relationship(
        "OrderItem", back_populates="order",
        cascade="all, delete-orphan", lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("owner_id", "order_number", name="uq_order_number"),
    )

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["items"] = [i.to_dict() for i in self.items]
        return d


class OrderItem(Base):
    __tablename__ = "order_items"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    order_id    = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    type        = Column(String(50), default="Cake")
    name        = Column(String(300), nullable=False, default="")
    description = Column(Text, default="")
    quantity    = Column(Integer, nullable=False, default=1)
    unit_price  = Column(String(20), nullable=False, default="0")
    price       = Column(String(20), nullable=False, default="0")
    notes       = Column(Text, default="")

    order = relationship("Order", back_populates="items")


class Quote(Base):
    __tablename__ = "quotes"

    id               = Column(Integer, primary_key=True, autoincrement=True)
    owner_id         = _owner_fk()
    contact_id       = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    quote_number     = Column(String(50), nullable=False)
    event_type       = Column(String(50), nullable=False, default="Other")
    event_date       = Column(Date, nullable=False)
    status           = Column(String(30), nullable=False, default="Draft")
    theme            = Column(String(300), default="")
    delivery_type    = Column(String(20), nullable=False, default="Pickup")
    delivery_details = Column(Text, default="")
    discount         = Column(String(20), default="0")
    discount_type    = Column(String(5), default="%")
    setup_fee        = Column(String(20), default="0")
    tax_rate         = Column(String(20), default="0")
    total            = Column(String(20), nullable=False, default="0")
    notes            = Column(Text, default="")
    expiry_date      = Column(Date, nullable=True)
    created_at       = Column(DateTime, default=_now)

    contact = relationship("Contact")
    items = relationship(
        "QuoteItem", back_populates="quote",
        cascade="all, delete-orphan", lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("owner_id", "quote_number", name="uq_quote_number"),
    )

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["items"] = [i.to_dict() for i in self.items]
        return d


class QuoteItem(Base):
    __tablename__ = "quote_items"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    quote_id    = Column(Integer, ForeignKey("quotes.id"), nullable=False, index=True)
    type        = Column(String(50), default="Cake")
    name        = Column(String(300), nullable=False, default="")
    description = Column(Text, default="")
    quantity    = Column(Integer, nullable=False, default=1)
    unit_price  = Column(String(20), nullable=False, default="0")
    price       = Column(String(20), nullable=False, default="0")
    notes       = Column(Text, default="")

    quote = relationship("Quote", back_populates="items")


class Product(Base):
    __tablename__ = "products"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    owner_id    = _owner_fk()
    type        = Column(String(50), nullable=False, default="Other")
    name        = Column(String(300), nullable=False)
    description = Column(Text, default="")
    servings    = Column(Integer, nullable=True)
    price       = Column(String(20), nullable=False, default="0")
    cost        = Column(String(20), default="0")
    active      = Column(Boolean, default=True)
    created_at  = Column(DateTime, default=_now)


class Ingredient(Base):
    __tablename__ = "ingredients"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    owner_id      = _owner_fk()
    name          = Column(String(300), nullable=False)
    unit          = Column(String(20), nullable=False, default="g")
    cost_per_unit = Column(String(20), nullable=True)
    pack_size     = Column(String(20), default="0")
    pack_cost     = Column(String(20), default="0")
    supplier      = Column(String(200), default="")
    created_at    = Column(DateTime, default=_now)


class Recipe(Base):
    __tablename__ = "recipes"

    id           = Column(Integer, primary_key=True, autoincrement=True)
    owner_id     = _owner_fk()
    name         = Column(String(300), nullable=False)
    description  = Column(Text, default="")
    category     = Column(String(100), default="")
    servings     = Column(Integer, nullable=False, default=1)
    instructions = Column(Text, default="")
    total_cost   = Column(String(20), nullable=True)
    prep_time    = Column(Integer, nullable=True)
    cook_time    = Column(Integer, nullable=True)
    created_at   = Column(DateTime, default=_now)

    ingredients = relationship(
        "RecipeIngredient", back_populates="recipe",
        cascade="all, delete-orphan", lazy="selectin",
    )


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    recipe_id     = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    ingredient_id = Column(Integer, ForeignKey("ingredients.id"), nullable=False, index=True)
    quantity      = Column(String(20), nullable=False, default="0")
    unit          = Column(String(20), default="g")
    cost          = Column(String(20), default="0")

    recipe = relationship("Recipe", back_populates="ingredients")
    ingredient = relationship("Ingredient", lazy="joined")


class Expense(Base):
    __tablename__ = "expenses"

    id             = Column(Integer, primary_key=True, autoincrement=True)
    owner_id       = _owner_fk()
    date           = Column(Date, nullable=False)
    category       = Column(String(100), nullable=False, default="")
    amount         = Column(String(20), nullable=False, default="0")
    description    = Column(Text, default="")
    supplier       = Column(String(200), default="")
    payment_source = Column(String(100), default="")
    vat            = Column(String(20), default="0")
    total_inc_tax  = Column(String(20), default="0")
    is_recurring   = Column(Boolean, default=False)
    tax_deductible = Column(Boolean, default=False)
    receipt_url    = Column(String(500), default="")
    created_at     = Column(DateTime, default=_now)


class Income(Base):
    __tablename__ = "income"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    owner_id    = _owner_fk()
    date        = Column(Date, nullable=False)
    category    = Column(String(100), nullable=False, default="")
    amount      = Column(String(20), nullable=False, default="0")
    description = Column(Text, default="")
    created_at  = Column(DateTime, default=_now)


class Task(Base):
    __tablename__ = "tasks"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    owner_id    = _owner_fk()
    order_id    = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"),
                         nullable=True)
    title       = Column(String(300), nullable=False)
    description = Column(Text, default="")
    due_date    = Column(Date, nullable=True)
    completed   = Column(Boolean, default=False)
    priority    = Column(String(20), default="Medium")
    created_at  = Column(DateTime, default=_now)


class Enquiry(Base):
    __tablename__ = "enquiries"

    id         = Column(Integer, primary_key=True, autoincrement=True)
    owner_id   = _owner_fk()
    name       = Column(String(200), nullable=False, default="")
    email      = Column(String(200), nullable=False, default="")
    phone      = Column(String(50), default="")
    event_type = Column(String(50), default="")
    event_date = Column(Date, nullable=True)
    message    = Column(Text, nullable=False, default="")
    status     = Column(String(30), nullable=False, default="New")
    created_at = Column(DateTime, default=_now)


class Settings(Base):
    __tablename__ = "settings"

    id                  = Column(Integer, primary_key=True, autoincrement=True)
    owner_id            = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    business_name       = Column(String(200), default="")
    currency            = Column(String(10), default="USD")
    default_tax_rate    = Column(String(20), default="0")
    labor_rate          = Column(String(20), default="0")
    order_number_prefix = Column(String(20), default="")
    quote_number_prefix = Column(String(20), default="")
    invoice_footer      = Column(Text, default="")
    quote_footer        = Column(Text, default="")
    created_at          = Column(DateTime, default=_now)


class TaxRate(Base):
    __tablename__ = "tax_rates"

    id         = Column(Integer, primary_key=True, autoincrement=True)
    owner_id   = _owner_fk()
    name       = Column(String(100), nullable=False)
    rate       = Column(String(20), nullable=False, default="0")
    is_default = Column(Boolean, default=False)
    created_at = Column(DateTime, default=_now)


class FeatureSetting(Base):
    __tablename__ = "feature_settings"

    id         = Column(Integer, primary_key=True, autoincrement=True)
    owner_id   = _owner_fk()
    feature    = Column(String(100), nullable=False)
    enabled    = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_now)

    __table_args__ = (
        UniqueConstraint("owner_id", "feature", name="uq_feature"),
    )
