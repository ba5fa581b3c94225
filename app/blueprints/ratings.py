"""Ratings blueprint — /api/ratings/*

Route Map:
  POST   /api/ratings/recipe/<recipe_id>  — Rate a purchased recipe (upsert)
  GET    /api/ratings/recipe/<recipe_id>  — Public list + average
  DELETE /api/ratings/<rating_id>         — Delete own rating
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from app.services import atomic, rating_service

ratings_bp = Blueprint("ratings", __name__, url_prefix="/api/ratings")


@ratings_bp.route("/recipe/<recipe_id>", methods=["POST"])
@login_required
def rate_recipe(recipe_id):
    data = request.get_json(silent=True) or {}

    with atomic():
        rating, created = rating_service.create_or_update_rating(
            current_user.id,
            recipe_id,
            data.get("ratingScore"),
            data.get("comment"),
        )

    return jsonify(
        success=True,
        message="Rating submitted successfully" if created else "Rating updated successfully",
        data=rating.to_dict(),
    ), 201 if created else 200


@ratings_bp.route("/recipe/<recipe_id>", methods=["GET"])
def recipe_ratings(recipe_id):
    return jsonify(success=True, data=rating_service.get_recipe_ratings(recipe_id))


@ratings_bp.route("/<rating_id>", methods=["DELETE"])
@login_required
def delete_rating(rating_id):
    with atomic():
        rating_service.delete_rating(rating_id, current_user.id)

    return jsonify(success=True, message="Rating deleted successfully")
