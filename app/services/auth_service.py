"""Auth service — registration, credential checks and token minting.

Tokens are Flask-JWT-Extended access tokens: identity is the user id, the
role and username ride along as extra claims. They are resolved back to a
User by the request_loader in app.extensions.
"""

import logging
from datetime import timedelta

from flask import current_app
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from app.errors import (
    NotFoundError,
    UnauthenticatedError,
    UsernameTakenError,
    ValidationError,
)
from app.extensions import db
from app.models.user import User
from app.services import audit_service

logger = logging.getLogger(__name__)

USERNAME_MIN = 3
USERNAME_MAX = 50
PASSWORD_MIN = 6


def generate_token(user):
    """Mint an access token for a user."""
    return create_access_token(
        identity=user.id,
        additional_claims={"role": user.role, "username": user.username},
        expires_delta=timedelta(hours=current_app.config["JWT_ACCESS_TOKEN_HOURS"]),
    )


def register(username, password, role="user"):
    """Create a user account.

    Args:
        username: 3-50 characters, unique.
        password: At least 6 characters.
        role: "user" or "admin" (admin only via the CLI).

    Returns:
        (user, token)

    Raises:
        ValidationError: Bad username / password / role.
        UsernameTakenError: Username already exists.
    """
    username = (username or "").strip()
    password = password or ""

    if not USERNAME_MIN <= len(username) <= USERNAME_MAX:
        raise ValidationError(
            f"Username must be between {USERNAME_MIN} and {USERNAME_MAX} characters"
        )
    if len(password) < PASSWORD_MIN:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN} characters long"
        )
    if role not in User.ROLES:
        raise ValidationError(f"Role must be one of: {', '.join(User.ROLES)}")

    if User.query.filter_by(username=username).first() is not None:
        raise UsernameTakenError()

    user = User(
        username=username,
        password_hash=generate_password_hash(password),
        role=role,
    )
    db.session.add(user)
    try:
        db.session.flush()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same name.
        db.session.rollback()
        raise UsernameTakenError()

    audit_service.record(
        "user.registered", actor_user_id=user.id, subject=user, role=role
    )
    logger.info(f"Registered user {user.username} ({user.role})")
    return user, generate_token(user)


def authenticate(username, password):
    """Check credentials.

    Returns:
        (user, token)

    Raises:
        UnauthenticatedError: Unknown user, wrong password or inactive account.
    """
    username = (username or "").strip()
    if not username or not password:
        raise ValidationError("Username and password are required")

    user = User.query.filter_by(username=username).first()
    if user is None or not check_password_hash(user.password_hash, password):
        raise UnauthenticatedError("Invalid username or password")
    if not user.is_active:
        raise UnauthenticatedError("Account is disabled")

    return user, generate_token(user)


def get_profile(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
