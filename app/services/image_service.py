"""Image service — profile pictures, recipe thumbnails, payment proofs.

Upload-and-link flow:
1. Upload the new blob (outside any DB transaction).
2. Link it in one atomic() unit. If this fails the new blob is orphaned;
   that is accepted and not cleaned up here.
3. After commit, delete the superseded blob best-effort.
"""

import logging

from app.errors import NotFoundError
from app.extensions import db
from app.models.recipe import Recipe
from app.models.user import User
from app.services import atomic, audit_service, storage_service

logger = logging.getLogger(__name__)


def upload_profile_picture(user_id, file):
    """Replace a user's profile picture. Returns the updated User."""
    url = storage_service.upload_image(file, f"profiles/{user_id}")

    with atomic():
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        previous = user.profile_picture
        user.profile_picture = url
        audit_service.record(
            "user.profile_picture_updated", actor_user_id=user_id, subject=user
        )

    if previous and previous != url:
        storage_service.delete_file(previous)
    logger.info(f"Profile picture updated for user {user_id}")
    return user


def upload_recipe_thumbnail(recipe_id, file, actor_user_id=None):
    """Replace a recipe's thumbnail. Returns the updated Recipe."""
    # Check first so a bad id does not leave an orphaned upload behind.
    if db.session.get(Recipe, recipe_id) is None:
        raise NotFoundError("Recipe not found")

    url = storage_service.upload_image(file, f"recipes/{recipe_id}")

    with atomic():
        recipe = db.session.get(Recipe, recipe_id)
        if recipe is None:
            raise NotFoundError("Recipe not found")
        previous = recipe.video_thumbnail
        recipe.video_thumbnail = url
        audit_service.record(
            "recipe.thumbnail_updated",
            actor_user_id=actor_user_id,
            subject=recipe,
        )

    if previous and previous != url:
        storage_service.delete_file(previous)
    logger.info(f"Thumbnail updated for recipe {recipe_id}")
    return recipe


def upload_payment_proof(file, transaction_id):
    """Store a payment-proof image and return its URL (no DB write)."""
    return storage_service.upload_image(file, f"payment-proofs/{transaction_id}")
