"""Rating model.

One rating per (user, recipe), score 1-5. Only purchasers may rate;
that gate lives in rating_service.
"""

import uuid
from datetime import datetime, timezone

from app.extensions import db


class Rating(db.Model):
    __tablename__ = "ratings"

    MIN_SCORE = 1
    MAX_SCORE = 5

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    recipe_id = db.Column(
        db.String(36), db.ForeignKey("recipes.id"), nullable=False, index=True
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False
    )
    rating_score = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "recipe_id", name="uq_ratings_user_recipe"),
        db.CheckConstraint(
            "rating_score BETWEEN 1 AND 5", name="ck_ratings_score_range"
        ),
    )

    # --- Relationships ---
    recipe = db.relationship("Recipe", back_populates="ratings")
    user = db.relationship("User", back_populates="ratings")

    def to_dict(self):
        return {
            "id": self.id,
            "recipeId": self.recipe_id,
            "userId": self.user_id,
            "username": self.user.username if self.user else None,
            "ratingScore": self.rating_score,
            "comment": self.comment,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Rating {self.rating_score} recipe={self.recipe_id}>"
