"""Recipe catalog models.

- Recipe: sellable recipe with price, sale flag and popularity counters.
- RecipeIngredient / RecipeInstruction / Nutrition: child rows owned by a
  recipe and replaced wholesale on update.

purchase_count is only ever incremented by transaction verification;
catalog edits never touch it.
"""

import uuid
from datetime import datetime, timezone

from app.extensions import db


def _money(value):
    return float(value) if value is not None else None


class Recipe(db.Model):
    __tablename__ = "recipes"

    # -- Valid difficulty levels --
    DIFFICULTIES = ["easy", "medium", "hard"]

    # -- Overview sort orders --
    SORTS = ["newest", "price", "rating", "popular"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    author_user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=True
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    video_url = db.Column(db.String(1000), nullable=True)
    video_thumbnail = db.Column(db.String(1000), nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    difficulty = db.Column(db.String(20), nullable=False)  # easy | medium | hard
    cooking_time = db.Column(db.Integer, nullable=False)   # minutes
    servings = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(100), nullable=False)
    is_for_sale = db.Column(db.Boolean, default=True, nullable=False)
    purchase_count = db.Column(db.Integer, default=0, nullable=False)
    view_count = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __table_args__ = (
        db.CheckConstraint("price >= 0", name="ck_recipes_price_non_negative"),
        db.Index("ix_recipes_is_for_sale", "is_for_sale"),
    )

    # --- Relationships ---
    author = db.relationship("User")
    ingredients = db.relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
    )
    instructions = db.relationship(
        "RecipeInstruction",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeInstruction.step",
    )
    nutrition = db.relationship(
        "Nutrition",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="Nutrition.position",
    )
    ratings = db.relationship("Rating", back_populates="recipe", lazy="dynamic")

    def to_summary_dict(self):
        """Fields visible to everyone browsing the catalog."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "videoThumbnail": self.video_thumbnail,
            "price": _money(self.price),
            "difficulty": self.difficulty,
            "cookingTime": self.cooking_time,
            "servings": self.servings,
            "category": self.category,
            "isForSale": self.is_for_sale,
            "viewCount": self.view_count,
            "purchaseCount": self.purchase_count,
        }

    def to_detail_dict(self):
        """Full content, for admins and purchasers only."""
        data = self.to_summary_dict()
        data.update({
            "videoUrl": self.video_url,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "ingredients": [i.to_dict() for i in self.ingredients],
            "instructions": [i.to_dict() for i in self.instructions],
            "nutrition": [n.to_dict() for n in self.nutrition],
        })
        return data

    def __repr__(self):
        return f"<Recipe {self.title[:30]} ({self.price})>"


class RecipeIngredient(db.Model):
    __tablename__ = "recipe_ingredients"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    recipe_id = db.Column(
        db.String(36),
        db.ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    label = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Numeric(10, 2), nullable=True)
    measurement = db.Column(db.String(50), nullable=True)

    recipe = db.relationship("Recipe", back_populates="ingredients")

    def to_dict(self):
        return {
            "id": self.id,
            "label": self.label,
            "quantity": _money(self.quantity),
            "measurement": self.measurement,
        }


class RecipeInstruction(db.Model):
    __tablename__ = "recipe_instructions"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    recipe_id = db.Column(
        db.String(36),
        db.ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    step = db.Column(db.Integer, nullable=False)
    content = db.Column(db.Text, nullable=False)

    recipe = db.relationship("Recipe", back_populates="instructions")

    def to_dict(self):
        return {"id": self.id, "step": self.step, "content": self.content}


class Nutrition(db.Model):
    __tablename__ = "nutrition"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    recipe_id = db.Column(
        db.String(36),
        db.ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    type = db.Column(db.String(100), nullable=False)  # e.g. "protein"
    quantity = db.Column(db.Numeric(10, 2), nullable=True)
    measurement = db.Column(db.String(50), nullable=True)

    recipe = db.relationship("Recipe", back_populates="nutrition")

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "quantity": _money(self.quantity),
            "measurement": self.measurement,
        }
