"""
db - Database layer.

Public API:
    init_db(url)    → create engine + tables
    dispose_db()    → close the current engine
    get_session()   → new Session
    models          → ORM classes, one per table
"""

from db.engine import init_db, dispose_db, get_session   # noqa: F401
from db.models import (                              # noqa: F401
    Base,
    User,
    Contact,
    Order,
    OrderItem,
    Quote,
    QuoteItem,
    Product,
    Ingredient,
    Recipe,
    RecipeIngredient,
    Expense,
    Income,
    Task,
    Enquiry,
    Settings,
    TaxRate,
    FeatureSetting,
)
