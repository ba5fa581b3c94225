"""
Deferred extension instances.

Created here, bound to the app in create_app() via init_app().
"""

from flask import g
from flask_jwt_extended import JWTManager, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from jwt.exceptions import PyJWTError

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
jwt = JWTManager()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # No global limit, limits are per-route
    storage_uri="memory://",
)


@login_manager.request_loader
def load_user_from_request(req):
    """Resolve the principal from an `Authorization: Bearer <token>` header.

    The token is minted by auth_service.generate_token(). Imports lazily to
    avoid circular deps.
    """
    from app.models.user import User

    auth_header = req.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None

    token = auth_header[7:].strip()
    try:
        claims = decode_token(token)
    except (PyJWTError, JWTExtendedException):
        g.auth_error = "Invalid or expired token"
        return None

    user = db.session.get(User, claims.get("sub"))
    if user is None or not user.is_active:
        g.auth_error = "Invalid or expired token"
        return None
    return user


@login_manager.unauthorized_handler
def unauthorized():
    """JSON 401 instead of the login-page redirect."""
    from app.errors import UnauthenticatedError

    raise UnauthenticatedError(g.get("auth_error") or "Access token required")
