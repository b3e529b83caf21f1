"""
services.costing - Derived money figures for recipes and orders.

Nothing here writes to the database.  Order totals in particular are
trusted as stored; order_items_subtotal() is for display only.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from db.models import Order, Quote, Recipe

_CENT = Decimal("0.01")


def _dec(value) -> Decimal | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def line_cost(line) -> Decimal:
    """
    Cost of one RecipeIngredient: live unit price × quantity, or the
    stored line cost when the ingredient has no unit price.
    """
    unit = _dec(line.ingredient.cost_per_unit) if line.ingredient is not None else None
    qty = _dec(line.quantity)
    if unit is not None and qty is not None:
        return unit * qty
    return _dec(line.cost) or Decimal("0")


def recipe_cost(recipe: Recipe) -> str:
    total = sum((line_cost(line) for line in recipe.ingredients), Decimal("0"))
    return str(total.quantize(_CENT, rounding=ROUND_HALF_UP))


def cost_per_serving(recipe: Recipe) -> str:
    servings = recipe.servings or 1
    per = Decimal(recipe_cost(recipe)) / servings
    return str(per.quantize(_CENT, rounding=ROUND_HALF_UP))


def order_items_subtotal(order: Order | Quote) -> str:
    """Sum of line prices.  Never written back to ``order.total``."""
    total = sum((_dec(i.price) or Decimal("0") for i in order.items), Decimal("0"))
    return str(total.quantize(_CENT, rounding=ROUND_HALF_UP))


def recipe_cost_breakdown(recipe: Recipe) -> dict:
    lines = []
    for line in recipe.ingredients:
        lines.append({
            "ingredient_id": line.ingredient_id,
            "name": line.ingredient.name if line.ingredient is not None else "",
            "quantity": line.quantity,
            "unit": line.unit,
            "cost": str(line_cost(line).quantize(_CENT, rounding=ROUND_HALF_UP)),
            "live_price": (line.ingredient is not None
                           and _dec(line.ingredient.cost_per_unit) is not None),
        })
    return {
        "recipe_id": recipe.id,
        "name": recipe.name,
        "servings": recipe.servings,
        "total_cost": recipe_cost(recipe),
        "stored_total_cost": recipe.total_cost,
        "cost_per_serving": cost_per_serving(recipe),
        "lines": lines,
    }
