"""
api.routes_recipes - recipe costing endpoint.
"""

from flask import g, jsonify

from api import api_bp
from api.auth import owner_required
from db import Recipe, get_session
from services.costing import recipe_cost_breakdown


@api_bp.route("/recipes/<int:recipe_id>/cost")
@owner_required
def recipe_cost(recipe_id: int):
    """GET /api/recipes/{id}/cost  - live ingredient cost of a recipe."""
    session = get_session()
    try:
        recipe = session.get(Recipe, recipe_id)
        if recipe is None or recipe.owner_id != g.owner_id:
            return jsonify({"error": "not found"}), 404
        return jsonify(recipe_cost_breakdown(recipe))
    finally:
        session.close()
