"""Cart service — per-user staging area for recipes to buy.

The (user_id, recipe_id) unique constraint on cart_items is the real guard
against duplicates; the pre-checks only pick the most helpful error.
Prices shown here are live and informational; the authoritative price is
snapshotted by transaction_service.create_transaction().
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.errors import (
    AlreadyInCartError,
    AlreadyOwnedError,
    NotForSaleError,
    NotFoundError,
)
from app.extensions import db
from app.models.cart import CartItem
from app.models.recipe import Recipe
from app.services import purchase_service

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _entry_dict(item, recipe):
    return {
        "id": item.id,
        "recipeId": recipe.id,
        "title": recipe.title,
        "description": recipe.description,
        "price": float(recipe.price),
        "difficulty": recipe.difficulty,
        "cookingTime": recipe.cooking_time,
        "servings": recipe.servings,
        "category": recipe.category,
        "videoThumbnail": recipe.video_thumbnail,
        "addedAt": item.added_at.isoformat() if item.added_at else None,
    }


def _find_entry(user_id, recipe_id):
    return CartItem.query.filter_by(user_id=user_id, recipe_id=recipe_id).first()


def add_to_cart(user_id, recipe_id):
    """Add a recipe to the user's cart.

    Raises, in this order:
        NotFoundError: Recipe does not exist.
        NotForSaleError: Recipe is not sale-eligible.
        AlreadyInCartError: Pair already in the cart.
        AlreadyOwnedError: User already purchased the recipe.
    """
    recipe = db.session.get(Recipe, recipe_id) if recipe_id else None
    if recipe is None:
        raise NotFoundError("Recipe not found")
    if not recipe.is_for_sale:
        raise NotForSaleError()

    if _find_entry(user_id, recipe_id) is not None:
        raise AlreadyInCartError()

    if purchase_service.exists(user_id, recipe_id):
        raise AlreadyOwnedError()

    item = CartItem(user_id=user_id, recipe_id=recipe_id)
    db.session.add(item)
    try:
        db.session.flush()
    except IntegrityError:
        # A concurrent add for the same pair won.
        db.session.rollback()
        raise AlreadyInCartError()

    logger.info(f"User {user_id} added recipe {recipe_id} to cart")
    return _entry_dict(item, recipe)


def remove_from_cart(user_id, recipe_id):
    """Remove a recipe from the cart. A second removal fails with NotFound."""
    item = _find_entry(user_id, recipe_id)
    if item is None:
        raise NotFoundError("Recipe not found in cart")

    db.session.delete(item)
    db.session.flush()
    return {"id": item.id, "recipeId": recipe_id}


def get_cart(user_id):
    """Current cart joined with live recipe data.

    Recipes taken off sale drop out of the view (their rows stay put).
    """
    rows = db.session.execute(
        select(CartItem, Recipe)
        .join(Recipe, Recipe.id == CartItem.recipe_id)
        .where(CartItem.user_id == user_id, Recipe.is_for_sale.is_(True))
        .order_by(CartItem.added_at.desc())
    ).all()

    total = sum((Decimal(str(recipe.price)) for _, recipe in rows), Decimal("0"))
    return {
        "items": [_entry_dict(item, recipe) for item, recipe in rows],
        "total": float(total.quantize(CENT)),
        "itemCount": len(rows),
    }
