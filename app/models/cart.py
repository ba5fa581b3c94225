"""Cart model.

One row per (user, recipe) the user intends to buy. The unique constraint
is the authoritative guard against duplicate adds; the service's pre-check
only exists to give the friendlier error first.
"""

import uuid
from datetime import datetime, timezone

from app.extensions import db


class CartItem(db.Model):
    __tablename__ = "cart_items"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    recipe_id = db.Column(
        db.String(36), db.ForeignKey("recipes.id"), nullable=False
    )
    added_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "recipe_id", name="uq_cart_items_user_recipe"),
    )

    # --- Relationships ---
    user = db.relationship("User", back_populates="cart_items")
    recipe = db.relationship("Recipe")

    def __repr__(self):
        return f"<CartItem user={self.user_id} recipe={self.recipe_id}>"
