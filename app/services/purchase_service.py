"""Purchase service — the entitlement ledger.

Responsible for:
- Answering "does this user own this recipe?" (cart, rating and catalog gates)
- Granting purchases on transaction verification, idempotently

There is no update or delete: entitlements are permanent once granted.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite

from app.extensions import db
from app.models.purchase import Purchase
from app.models.recipe import Recipe

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def exists(user_id, recipe_id):
    """Return True if the user holds a purchase for the recipe."""
    if user_id is None:
        return False
    return db.session.execute(
        select(Purchase.id).where(
            Purchase.user_id == user_id,
            Purchase.recipe_id == recipe_id,
        ).limit(1)
    ).first() is not None


def purchased_recipe_ids(user_id):
    return select(Purchase.recipe_id).where(Purchase.user_id == user_id)


def grant(user_id, items):
    """Insert-if-absent purchases and bump counters for the new ones.

    Args:
        user_id: Buyer's user UUID string.
        items: Iterable of (recipe_id, price) pairs; price is the
            snapshot carried by the transaction line item.

    Returns:
        List of (purchase_id, recipe_id) for rows actually inserted. Pairs
        the user already owned are skipped and do not touch the counter.
    """
    items = list(items)
    if not items:
        return []

    # Core statements below bypass the unit of work.
    db.session.flush()

    now = datetime.now(timezone.utc)
    rows = [
        {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "recipe_id": recipe_id,
            "price": price,
            "purchased_at": now,
        }
        for recipe_id, price in items
    ]

    dialect = db.session.get_bind().dialect.name
    insert = _DIALECT_INSERTS[dialect]
    db.session.execute(
        insert(Purchase.__table__)
        .values(rows)
        .on_conflict_do_nothing(index_elements=["user_id", "recipe_id"])
    )

    # Ids we generated that made it in are exactly the new grants.
    granted = db.session.execute(
        select(Purchase.id, Purchase.recipe_id).where(
            Purchase.id.in_([r["id"] for r in rows])
        )
    ).all()

    if granted:
        db.session.execute(
            update(Recipe)
            .where(Recipe.id.in_([recipe_id for _, recipe_id in granted]))
            .values(purchase_count=Recipe.purchase_count + 1)
            .execution_options(synchronize_session="fetch")
        )

    skipped = len(rows) - len(granted)
    logger.info(
        f"Granted {len(granted)} purchase(s) to user {user_id}"
        + (f" ({skipped} already owned)" if skipped else "")
    )
    return [(purchase_id, recipe_id) for purchase_id, recipe_id in granted]
