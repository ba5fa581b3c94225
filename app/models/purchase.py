"""Purchase model (entitlement ledger).

A row grants permanent access to a recipe's full content. Rows are only
created by transaction verification and are never updated or deleted.
The (user_id, recipe_id) unique constraint makes re-grants no-ops, even
when two verifications race.
"""

import uuid
from datetime import datetime, timezone

from app.extensions import db


class Purchase(db.Model):
    __tablename__ = "purchases"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False
    )
    recipe_id = db.Column(
        db.String(36), db.ForeignKey("recipes.id"), nullable=False, index=True
    )
    price = db.Column(db.Numeric(10, 2), nullable=False)  # price paid
    purchased_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "recipe_id", name="uq_purchases_user_recipe"),
    )

    # --- Relationships ---
    user = db.relationship("User", back_populates="purchases")
    recipe = db.relationship("Recipe")

    def __repr__(self):
        return f"<Purchase user={self.user_id} recipe={self.recipe_id}>"
