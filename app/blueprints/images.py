"""Images blueprint — /api/images/*

Route Map:
  POST /api/images/profile                   — Replace own profile picture (multipart: image)
  POST /api/images/recipes/<id>/thumbnail    — Admin: replace recipe thumbnail (multipart: image)
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from app.decorators import admin_required
from app.services import image_service

images_bp = Blueprint("images", __name__, url_prefix="/api/images")


@images_bp.route("/profile", methods=["POST"])
@login_required
def upload_profile_picture():
    user = image_service.upload_profile_picture(
        current_user.id, request.files.get("image")
    )
    return jsonify(
        success=True,
        message="Profile picture updated successfully",
        data={"profilePicture": user.profile_picture, "user": user.to_dict()},
    )


@images_bp.route("/recipes/<recipe_id>/thumbnail", methods=["POST"])
@admin_required
def upload_recipe_thumbnail(recipe_id):
    recipe = image_service.upload_recipe_thumbnail(
        recipe_id, request.files.get("image"), actor_user_id=current_user.id
    )
    return jsonify(
        success=True,
        message="Thumbnail updated successfully",
        data={"recipeId": recipe.id, "videoThumbnail": recipe.video_thumbnail},
    )
