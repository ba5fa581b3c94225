"""Rating service — purchase-gated recipe reviews.

One rating per (user, recipe); posting again updates it in place.
Comments are sanitized with bleach.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.errors import (
    ConflictError,
    MustPurchaseFirstError,
    NotFoundError,
    RatingMissingError,
    RatingNotOwnedError,
    ValidationError,
)
from app.extensions import db
from app.models.rating import Rating
from app.models.recipe import Recipe
from app.services import purchase_service, sanitize

logger = logging.getLogger(__name__)


def _parse_score(score):
    """Accept an integer 1-5, its string form, or an integral float (4.0).

    Bools and fractional scores are rejected.
    """
    if isinstance(score, bool):
        raise ValidationError("Rating score must be an integer between 1 and 5")
    if isinstance(score, str) and score.strip().lstrip("-").isdigit():
        score = int(score.strip())
    elif isinstance(score, float) and score.is_integer():
        score = int(score)
    if not isinstance(score, int) or not (
        Rating.MIN_SCORE <= score <= Rating.MAX_SCORE
    ):
        raise ValidationError("Rating score must be an integer between 1 and 5")
    return score


def rating_summary(recipe_id):
    """Return (average rounded to 2 dp, count) for a recipe."""
    average, count = db.session.execute(
        select(
            func.coalesce(func.round(func.avg(Rating.rating_score), 2), 0),
            func.count(Rating.id),
        ).where(Rating.recipe_id == recipe_id)
    ).one()
    return round(float(average), 2), int(count)


def create_or_update_rating(user_id, recipe_id, score, comment=None):
    """Rate a purchased recipe.

    Check order: score validity, purchase gate, recipe existence.

    Returns:
        (rating, created) where created is False for an update.

    Raises:
        ValidationError: Score not an integer in [1, 5].
        MustPurchaseFirstError: User has no purchase for the recipe.
        NotFoundError: Recipe does not exist.
    """
    score = _parse_score(score)

    if not purchase_service.exists(user_id, recipe_id):
        raise MustPurchaseFirstError()

    if db.session.get(Recipe, recipe_id) is None:
        raise NotFoundError("Recipe not found")

    comment = sanitize(comment) or None
    now = datetime.now(timezone.utc)

    rating = Rating.query.filter_by(user_id=user_id, recipe_id=recipe_id).first()
    if rating is not None:
        rating.rating_score = score
        rating.comment = comment
        rating.updated_at = now
        db.session.flush()
        logger.info(f"User {user_id} updated rating for recipe {recipe_id}: {score}")
        return rating, False

    rating = Rating(
        user_id=user_id,
        recipe_id=recipe_id,
        rating_score=score,
        comment=comment,
        created_at=now,
        updated_at=now,
    )
    db.session.add(rating)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Rating was submitted twice at once, please retry")

    logger.info(f"User {user_id} rated recipe {recipe_id}: {score}")
    return rating, True


def get_recipe_ratings(recipe_id):
    """Ratings for a recipe, newest first, with the average."""
    if db.session.get(Recipe, recipe_id) is None:
        raise NotFoundError("Recipe not found")

    ratings = (
        Rating.query.filter_by(recipe_id=recipe_id)
        .order_by(Rating.created_at.desc())
        .all()
    )
    average, total = rating_summary(recipe_id)
    return {
        "average": average,
        "total": total,
        "ratings": [r.to_dict() for r in ratings],
    }


def delete_rating(rating_id, user_id):
    """Delete the caller's own rating.

    Raises:
        RatingMissingError / RatingNotOwnedError: Both surface as one 403.
    """
    rating = db.session.get(Rating, rating_id)
    if rating is None:
        raise RatingMissingError()
    if rating.user_id != user_id:
        logger.warning(
            f"User {user_id} tried to delete rating {rating_id} owned by {rating.user_id}"
        )
        raise RatingNotOwnedError()

    db.session.delete(rating)
    db.session.flush()
    return rating_id
