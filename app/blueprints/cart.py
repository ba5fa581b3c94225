"""Cart blueprint — /api/cart/*

Route Map:
  POST   /api/cart              — Add a recipe ({recipeId})
  GET    /api/cart              — Cart with live prices and total
  DELETE /api/cart/<recipe_id>  — Remove a recipe
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from app.errors import ValidationError
from app.services import atomic, cart_service

cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@cart_bp.route("", methods=["POST"])
@login_required
def add_to_cart():
    data = request.get_json(silent=True) or {}
    recipe_id = data.get("recipeId")
    if not recipe_id or not isinstance(recipe_id, str):
        raise ValidationError("recipeId is required")

    with atomic():
        entry = cart_service.add_to_cart(current_user.id, recipe_id)

    return jsonify(
        success=True, message="Recipe added to cart", data=entry
    ), 201


@cart_bp.route("", methods=["GET"])
@login_required
def get_cart():
    return jsonify(success=True, data=cart_service.get_cart(current_user.id))


@cart_bp.route("/<recipe_id>", methods=["DELETE"])
@login_required
def remove_from_cart(recipe_id):
    with atomic():
        removed = cart_service.remove_from_cart(current_user.id, recipe_id)

    return jsonify(
        success=True, message="Recipe removed from cart", data=removed
    )
