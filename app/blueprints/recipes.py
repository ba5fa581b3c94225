"""Recipes blueprint — /api/recipes/*

Public catalog browse, purchase-gated detail, admin CRUD.

Route Map:
  GET    /api/recipes                 — Overview (?search, difficulty, cookingTime, sortBy, myRecipes, page, limit)
  GET    /api/recipes/<id>            — Detail (admin or purchaser)
  POST   /api/recipes                 — Admin: create
  PUT    /api/recipes/<id>            — Admin: replace
  DELETE /api/recipes/<id>            — Admin: delete (only if never bought/ordered)
  PUT    /api/recipes/<id>/sale       — Admin: toggle sale eligibility ({isForSale})
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user

from app.decorators import admin_required, optional_user
from app.services import atomic, recipe_service, storage_service

recipes_bp = Blueprint("recipes", __name__, url_prefix="/api/recipes")


def _flag(value):
    return (value or "").lower() in ("1", "true", "yes")


# ─── Public ──────────────────────────────────────────────────────

@recipes_bp.route("", methods=["GET"])
def overview():
    args = request.args
    result = recipe_service.get_recipes_overview(
        search=args.get("search"),
        difficulty=args.get("difficulty"),
        cooking_time=args.get("cookingTime"),
        sort_by=args.get("sortBy", "newest"),
        my_recipes=_flag(args.get("myRecipes")),
        user=optional_user(),
        page=args.get("page"),
        limit=args.get("limit"),
    )
    return jsonify(success=True, data=result)


@recipes_bp.route("/<recipe_id>", methods=["GET"])
def detail(recipe_id):
    with atomic():
        data = recipe_service.get_recipe_detail(recipe_id, optional_user())
    return jsonify(success=True, data=data)


# ─── Admin ───────────────────────────────────────────────────────

@recipes_bp.route("", methods=["POST"])
@admin_required
def create():
    data = request.get_json(silent=True)
    with atomic():
        recipe = recipe_service.create_recipe(current_user.id, data)
    return jsonify(
        success=True, message="Recipe created successfully", data=recipe
    ), 201


@recipes_bp.route("/<recipe_id>", methods=["PUT"])
@admin_required
def update(recipe_id):
    data = request.get_json(silent=True)
    with atomic():
        recipe = recipe_service.update_recipe(recipe_id, data, current_user.id)
    return jsonify(
        success=True, message="Recipe updated successfully", data=recipe
    )


@recipes_bp.route("/<recipe_id>", methods=["DELETE"])
@admin_required
def delete(recipe_id):
    with atomic():
        thumbnail = recipe_service.delete_recipe(recipe_id, current_user.id)

    if thumbnail:
        storage_service.delete_file(thumbnail)
    return jsonify(success=True, message="Recipe deleted successfully")


@recipes_bp.route("/<recipe_id>/sale", methods=["PUT"])
@admin_required
def set_for_sale(recipe_id):
    data = request.get_json(silent=True) or {}
    with atomic():
        recipe = recipe_service.set_for_sale(
            recipe_id, data.get("isForSale"), current_user.id
        )
    return jsonify(
        success=True,
        message="Recipe is now for sale" if recipe.is_for_sale else "Recipe taken off sale",
        data=recipe.to_summary_dict(),
    )
