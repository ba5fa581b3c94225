"""Transaction models.

- Transaction: priced order created from a cart. Walks the review state
  machine pending -> verified | rejected; both outcomes are terminal.
- TransactionRecipe: line item carrying the price snapshot taken when the
  transaction was created. Line items never change after creation.
"""

import uuid
from datetime import datetime, timezone

from app.extensions import db


class Transaction(db.Model):
    __tablename__ = "transactions"

    # -- Valid statuses --
    STATUSES = ["pending", "verified", "rejected"]

    # -- Valid status transitions (enforced in transaction_service) --
    VALID_TRANSITIONS = {
        "pending": ["verified", "rejected"],
    }

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False
    )
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(
        db.String(20), default="pending", nullable=False
    )  # pending | verified | rejected
    payment_method = db.Column(db.String(100), nullable=True)  # e.g. bank_transfer
    payment_proof = db.Column(db.String(1000), nullable=True)   # proof image URL
    admin_notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    verified_at = db.Column(db.DateTime(timezone=True), nullable=True)
    verified_by = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=True
    )  # admin who verified or rejected

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'verified', 'rejected')",
            name="ck_transactions_status",
        ),
        db.Index("ix_transactions_user_status", "user_id", "status"),
        db.Index("ix_transactions_status_created", "status", "created_at"),
    )

    # --- Relationships ---
    user = db.relationship(
        "User", foreign_keys=[user_id], back_populates="transactions"
    )
    reviewer = db.relationship("User", foreign_keys=[verified_by])
    items = db.relationship(
        "TransactionRecipe",
        back_populates="transaction",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_terminal(self):
        return self.status not in self.VALID_TRANSITIONS

    def to_dict(self, include_items=False):
        data = {
            "id": self.id,
            "userId": self.user_id,
            "totalAmount": float(self.total_amount),
            "status": self.status,
            "paymentMethod": self.payment_method,
            "paymentProof": self.payment_proof,
            "adminNotes": self.admin_notes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "verifiedAt": self.verified_at.isoformat() if self.verified_at else None,
            "verifiedBy": self.verified_by,
        }
        if include_items:
            data["recipes"] = [item.to_dict() for item in self.items]
            data["itemCount"] = len(self.items)
        return data

    def __repr__(self):
        return f"<Transaction {self.id} ({self.status})>"


class TransactionRecipe(db.Model):
    __tablename__ = "transaction_recipes"

    transaction_id = db.Column(
        db.String(36),
        db.ForeignKey("transactions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    recipe_id = db.Column(
        db.String(36), db.ForeignKey("recipes.id"), primary_key=True
    )
    price = db.Column(db.Numeric(10, 2), nullable=False)  # snapshot at checkout

    # --- Relationships ---
    transaction = db.relationship("Transaction", back_populates="items")
    recipe = db.relationship("Recipe", lazy="joined")

    def to_dict(self):
        return {
            "recipeId": self.recipe_id,
            "recipeTitle": self.recipe.title if self.recipe else None,
            "price": float(self.price),
        }

    def __repr__(self):
        return f"<TransactionRecipe txn={self.transaction_id} recipe={self.recipe_id}>"
