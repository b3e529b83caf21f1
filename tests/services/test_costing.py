from db import get_session
from db.models import Order, Recipe
from services import costing
from tests.factories import (
    IngredientFactory, OrderFactory, RecipeFactory, RecipeIngredientFactory,
)


def _load(model, row_id):
    """Read a row with its eager-loaded lines, then detach it."""
    session = get_session()
    try:
        return session.get(model, row_id)
    finally:
        session.close()


def test_recipe_cost_uses_live_unit_price(app):
    recipe = RecipeFactory(servings=8)
    flour = IngredientFactory(owner_id=recipe.owner_id, cost_per_unit="0.002")
    butter = IngredientFactory(owner_id=recipe.owner_id, cost_per_unit="0.0125")
    RecipeIngredientFactory(recipe_id=recipe.id, ingredient_id=flour.id, quantity="500", cost="9")
    RecipeIngredientFactory(recipe_id=recipe.id, ingredient_id=butter.id, quantity="200")

    loaded = _load(Recipe, recipe.id)
    assert costing.recipe_cost(loaded) == "3.50"
    assert costing.cost_per_serving(loaded) == "0.44"


def test_stored_line_cost_used_without_unit_price(app):
    recipe = RecipeFactory()
    sugar = IngredientFactory(owner_id=recipe.owner_id, cost_per_unit=None)
    RecipeIngredientFactory(recipe_id=recipe.id, ingredient_id=sugar.id, cost="1.20")

    loaded = _load(Recipe, recipe.id)
    breakdown = costing.recipe_cost_breakdown(loaded)
    assert breakdown["total_cost"] == "1.20"
    assert breakdown["lines"][0]["live_price"] is False


def test_empty_recipe_costs_nothing(app):
    loaded = _load(Recipe, RecipeFactory().id)
    assert costing.recipe_cost(loaded) == "0.00"


def test_order_subtotal_does_not_touch_total(app):
    order = OrderFactory(total="999.00", with_items=3)
    loaded = _load(Order, order.id)
    assert costing.order_items_subtotal(loaded) == "75.00"
    assert loaded.total == "999.00"
