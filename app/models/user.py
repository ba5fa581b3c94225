"""User model.

Stores authentication credentials, profile picture and role.
Flask-Login integration via UserMixin; the principal is resolved per
request from a bearer token (see extensions.load_user_from_request).
"""

import uuid

from flask_login import UserMixin

from app.extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    # -- Valid roles --
    ROLES = ["user", "admin"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    username = db.Column(db.String(50), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    profile_picture = db.Column(db.String(1000), nullable=True)
    role = db.Column(db.String(20), default="user", nullable=False)  # user | admin
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    cart_items = db.relationship(
        "CartItem", back_populates="user", lazy="dynamic"
    )
    transactions = db.relationship(
        "Transaction",
        foreign_keys="Transaction.user_id",
        back_populates="user",
        lazy="dynamic",
    )
    purchases = db.relationship(
        "Purchase", back_populates="user", lazy="dynamic"
    )
    ratings = db.relationship(
        "Rating", back_populates="user", lazy="dynamic"
    )
    audit_events = db.relationship(
        "AuditEvent", back_populates="actor", lazy="dynamic"
    )

    @property
    def is_admin(self):
        return self.role == "admin"

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "profilePicture": self.profile_picture,
            "role": self.role,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.username} ({self.role})>"
