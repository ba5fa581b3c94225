"""Recipe service — catalog CRUD, browse and gated detail.

Responsible for:
- Validating recipe payloads before any write
- Creating / replacing child rows (ingredients, instructions, nutrition)
  with one batched insert per child type
- Public overview (sale-eligible only) with filters, sort and paging
- Detail view gated on purchase (admins bypass)

purchase_count is owned by purchase_service and never written here.
Functions flush but do NOT commit — wrap each call in services.atomic().
"""

import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy import delete, exists, func, insert, or_, select, update

from app.errors import (
    ForbiddenError,
    NotFoundError,
    RecipeInUseError,
    UnauthenticatedError,
    ValidationError,
)
from app.extensions import db
from app.models.cart import CartItem
from app.models.purchase import Purchase
from app.models.rating import Rating
from app.models.recipe import (
    Nutrition,
    Recipe,
    RecipeIngredient,
    RecipeInstruction,
)
from app.models.transaction import TransactionRecipe
from app.services import (
    audit_service,
    pagination_dict,
    purchase_service,
    rating_service,
    resolve_page,
    sanitize,
)

logger = logging.getLogger(__name__)

# Overview cooking-time filter, in minutes
COOKING_TIME_BUCKETS = {
    "<30": lambda col: col < 30,
    "30-60": lambda col: (col >= 30) & (col <= 60),
    "60-120": lambda col: (col > 60) & (col <= 120),
    ">120": lambda col: col > 120,
}


# ─── Validation ────────────────────────────────────────────

def _to_decimal(value, label):
    if isinstance(value, bool) or value is None or value == "":
        raise ValidationError(f"{label} must be a number")
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{label} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{label} must be a number")
    return number


def _to_int(value, label):
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a whole number")
    if number != Decimal(str(value)):
        raise ValidationError(f"{label} must be a whole number")
    return number


def _optional_quantity(value, label):
    if value is None or value == "":
        return None
    quantity = _to_decimal(value, label)
    if quantity < 0:
        raise ValidationError(f"{label} must be a positive number")
    return quantity


def _validate_recipe(data):
    """Validate and normalise a create/update payload.

    Returns:
        (fields, ingredients, instructions, nutrition) ready for insert.

    Raises:
        ValidationError: On the first invalid field.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    title = sanitize(data.get("title")) or ""
    if len(title) < 3:
        raise ValidationError("Recipe title must be at least 3 characters long")

    ingredients = data.get("ingredients")
    if not isinstance(ingredients, list) or not ingredients:
        raise ValidationError("At least one ingredient is required")

    instructions = data.get("instructions")
    if not isinstance(instructions, list) or not instructions:
        raise ValidationError("At least one instruction is required")

    nutrition = data.get("nutrition") or []
    if not isinstance(nutrition, list):
        raise ValidationError("Nutrition must be a list")

    if data.get("price") is None:
        raise ValidationError("Price is required and must be 0 or greater")
    price = _to_decimal(data.get("price"), "Price")
    if price < 0:
        raise ValidationError("Price is required and must be 0 or greater")

    difficulty = (data.get("difficulty") or "")
    difficulty = difficulty.lower() if isinstance(difficulty, str) else ""
    if difficulty not in Recipe.DIFFICULTIES:
        raise ValidationError(
            f"Difficulty must be one of: {', '.join(Recipe.DIFFICULTIES)}"
        )

    cooking_time = _to_int(data.get("cookingTime"), "Cooking time")
    if cooking_time < 1:
        raise ValidationError("Cooking time is required and must be at least 1 minute")

    servings = _to_int(data.get("servings"), "Servings")
    if servings < 1:
        raise ValidationError("Servings is required and must be at least 1")

    category = sanitize(data.get("category")) or ""
    if not category:
        raise ValidationError("Category is required")

    ingredient_rows = []
    for i, ingredient in enumerate(ingredients, start=1):
        if not isinstance(ingredient, dict):
            raise ValidationError(f"Ingredient {i} must be an object")
        label = sanitize(ingredient.get("label"))
        if not label:
            raise ValidationError(f"Ingredient {i} must have a label")
        ingredient_rows.append({
            "position": i,
            "label": label,
            "quantity": _optional_quantity(
                ingredient.get("quantity"), f"Ingredient {i} quantity"
            ),
            "measurement": sanitize(ingredient.get("measurement")) or None,
        })

    instruction_rows = []
    for i, instruction in enumerate(instructions, start=1):
        if not isinstance(instruction, dict):
            raise ValidationError(f"Instruction {i} must be an object")
        content = sanitize(instruction.get("content")) or ""
        if len(content) < 10:
            raise ValidationError(
                f"Instruction {i} must be at least 10 characters long"
            )
        try:
            step = _to_int(instruction.get("step"), "Step")
        except ValidationError:
            raise ValidationError(f"Instruction {i} must have a valid step number")
        if step < 1:
            raise ValidationError(f"Instruction {i} must have a valid step number")
        instruction_rows.append({"step": step, "content": content})

    nutrition_rows = []
    for i, nut in enumerate(nutrition, start=1):
        if not isinstance(nut, dict):
            raise ValidationError(f"Nutrition {i} must be an object")
        nut_type = sanitize(nut.get("type"))
        if not nut_type:
            raise ValidationError(f"Nutrition {i} must have a type")
        nutrition_rows.append({
            "position": i,
            "type": nut_type,
            "quantity": _optional_quantity(
                nut.get("quantity"), f"Nutrition {i} quantity"
            ),
            "measurement": sanitize(nut.get("measurement")) or None,
        })

    fields = {
        "title": title,
        "description": sanitize(data.get("description")) or None,
        "video_url": (data.get("videoUrl") or "").strip() or None,
        "price": price.quantize(Decimal("0.01")),
        "difficulty": difficulty,
        "cooking_time": cooking_time,
        "servings": servings,
        "category": category,
    }
    return fields, ingredient_rows, instruction_rows, nutrition_rows


def _insert_children(recipe, ingredients, instructions, nutrition):
    """One batched INSERT per child type."""
    for model, rows in (
        (RecipeIngredient, ingredients),
        (RecipeInstruction, instructions),
        (Nutrition, nutrition),
    ):
        if rows:
            db.session.execute(
                insert(model),
                [dict(row, recipe_id=recipe.id) for row in rows],
            )
    db.session.expire(recipe, ["ingredients", "instructions", "nutrition"])


def _get_recipe(recipe_id):
    recipe = db.session.get(Recipe, recipe_id) if recipe_id else None
    if recipe is None:
        raise NotFoundError("Recipe not found")
    return recipe


def _detail_dict(recipe, user=None):
    data = recipe.to_detail_dict()
    data["rating"], data["totalRatings"] = rating_service.rating_summary(recipe.id)
    if user is not None:
        data["isPurchased"] = purchase_service.exists(user.id, recipe.id)
    return data


# ─── Admin CRUD ────────────────────────────────────────────

def create_recipe(user_id, data):
    """Create a recipe and its children.

    Returns:
        Detail dict of the new recipe.

    Raises:
        ValidationError: Invalid payload (nothing is written).
    """
    fields, ingredients, instructions, nutrition = _validate_recipe(data)

    is_for_sale = data.get("isForSale", True)
    if not isinstance(is_for_sale, bool):
        raise ValidationError("isForSale must be true or false")

    recipe = Recipe(author_user_id=user_id, is_for_sale=is_for_sale, **fields)
    db.session.add(recipe)
    db.session.flush()

    _insert_children(recipe, ingredients, instructions, nutrition)

    audit_service.record(
        "recipe.created", actor_user_id=user_id,
        subject=recipe, title=recipe.title,
    )
    logger.info(f"Recipe {recipe.id} created: {recipe.title}")
    return _detail_dict(recipe)


def update_recipe(recipe_id, data, actor_user_id=None):
    """Replace a recipe's fields and all its child rows."""
    recipe = _get_recipe(recipe_id)
    fields, ingredients, instructions, nutrition = _validate_recipe(data)

    for key, value in fields.items():
        setattr(recipe, key, value)
    if "isForSale" in data:
        if not isinstance(data["isForSale"], bool):
            raise ValidationError("isForSale must be true or false")
        recipe.is_for_sale = data["isForSale"]
    db.session.flush()

    for model in (RecipeIngredient, RecipeInstruction, Nutrition):
        db.session.execute(
            delete(model)
            .where(model.recipe_id == recipe.id)
            .execution_options(synchronize_session=False)
        )
    _insert_children(recipe, ingredients, instructions, nutrition)

    audit_service.record(
        "recipe.updated", actor_user_id=actor_user_id, subject=recipe,
    )
    logger.info(f"Recipe {recipe.id} updated")
    return _detail_dict(recipe)


def delete_recipe(recipe_id, actor_user_id=None):
    """Delete a recipe nobody has bought or ordered.

    Returns:
        The removed thumbnail URL (or None) so the caller can clean up the
        blob after commit.

    Raises:
        NotFoundError: No such recipe.
        RecipeInUseError: Purchases or transaction line items reference it.
    """
    recipe = _get_recipe(recipe_id)

    in_use = db.session.scalar(
        select(
            or_(
                exists().where(Purchase.recipe_id == recipe.id),
                exists().where(TransactionRecipe.recipe_id == recipe.id),
            )
        )
    )
    if in_use:
        raise RecipeInUseError()

    for model in (CartItem, Rating):
        db.session.execute(
            delete(model)
            .where(model.recipe_id == recipe.id)
            .execution_options(synchronize_session=False)
        )

    audit_service.record(
        "recipe.deleted", actor_user_id=actor_user_id,
        subject=recipe, title=recipe.title,
    )

    thumbnail = recipe.video_thumbnail
    db.session.delete(recipe)
    db.session.flush()
    logger.info(f"Recipe {recipe_id} deleted")
    return thumbnail


def set_for_sale(recipe_id, is_for_sale, actor_user_id=None):
    """Toggle sale eligibility. Carts hide recipes taken off sale."""
    if not isinstance(is_for_sale, bool):
        raise ValidationError("isForSale must be true or false")

    recipe = _get_recipe(recipe_id)
    recipe.is_for_sale = is_for_sale
    db.session.flush()

    audit_service.record(
        "recipe.sale_toggled", actor_user_id=actor_user_id,
        subject=recipe, is_for_sale=is_for_sale,
    )
    return recipe


# ─── Browse ────────────────────────────────────────────────

def get_recipes_overview(
    search=None,
    difficulty=None,
    cooking_time=None,
    sort_by="newest",
    my_recipes=False,
    user=None,
    page=None,
    limit=None,
):
    """Public, paginated list of sale-eligible recipes.

    Unknown difficulty / cooking-time / sort values are ignored (sort falls
    back to newest).

    Returns:
        dict with "recipes" (summary fields plus rating and totalRatings)
        and "pagination".

    Raises:
        UnauthenticatedError: my_recipes without a signed-in user.
        ValidationError: Bad page / limit.
    """
    page, limit = resolve_page(page, limit)

    conditions = [Recipe.is_for_sale.is_(True)]

    if my_recipes:
        if user is None:
            raise UnauthenticatedError("Log in to view your purchased recipes")
        conditions.append(
            Recipe.id.in_(purchase_service.purchased_recipe_ids(user.id))
        )

    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(
            or_(Recipe.title.ilike(pattern), Recipe.category.ilike(pattern))
        )

    if difficulty and difficulty.lower() in Recipe.DIFFICULTIES:
        conditions.append(Recipe.difficulty == difficulty.lower())

    bucket = COOKING_TIME_BUCKETS.get(cooking_time)
    if bucket is not None:
        conditions.append(bucket(Recipe.cooking_time))

    rating = func.coalesce(func.round(func.avg(Rating.rating_score), 2), 0)
    total_ratings = func.count(Rating.id)

    order_by = {
        "price": (Recipe.price.asc(), Recipe.created_at.desc()),
        "rating": (rating.desc(), Recipe.created_at.desc()),
        "popular": (Recipe.purchase_count.desc(), Recipe.view_count.desc()),
    }.get(sort_by, (Recipe.created_at.desc(),))

    total = db.session.scalar(
        select(func.count(Recipe.id)).where(*conditions)
    )
    rows = db.session.execute(
        select(Recipe, rating, total_ratings)
        .outerjoin(Rating, Rating.recipe_id == Recipe.id)
        .where(*conditions)
        .group_by(Recipe.id)
        .order_by(*order_by)
        .limit(limit)
        .offset((page - 1) * limit)
    ).all()

    recipes = []
    for recipe, avg, count in rows:
        data = recipe.to_summary_dict()
        data["rating"] = round(float(avg), 2)
        data["totalRatings"] = int(count)
        recipes.append(data)

    return {"recipes": recipes, "pagination": pagination_dict(page, limit, total)}


def get_recipe_detail(recipe_id, user=None):
    """Full recipe for admins and purchasers; bumps the view counter.

    Raises:
        NotFoundError: No such recipe.
        UnauthenticatedError: Anonymous caller.
        ForbiddenError: Signed-in non-admin without a purchase.
    """
    recipe = _get_recipe(recipe_id)

    if user is None:
        raise UnauthenticatedError("Log in to view recipe details")
    if not user.is_admin and not purchase_service.exists(user.id, recipe.id):
        raise ForbiddenError("You must purchase this recipe to view its details")

    db.session.execute(
        update(Recipe)
        .where(Recipe.id == recipe.id)
        .values(view_count=Recipe.view_count + 1)
        .execution_options(synchronize_session=False)
    )
    db.session.refresh(recipe)
    return _detail_dict(recipe, user)
