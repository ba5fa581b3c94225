"""
Custom route decorators for access control.

- login_required (Flask-Login): bearer token must resolve to an active user,
  otherwise 401 via the unauthorized handler in app.extensions.
- admin_required: login_required AND role == "admin", otherwise 403.
"""

from functools import wraps

from flask_login import current_user, login_required

from app.errors import ForbiddenError


def admin_required(f):
    """Require login + admin role."""

    @wraps(f)
    @login_required
    def decorated(*args, **kwargs):
        if not current_user.is_admin:
            raise ForbiddenError("Admin access required")
        return f(*args, **kwargs)

    return decorated


def optional_user():
    """The signed-in user, or None for anonymous callers."""
    if current_user.is_authenticated:
        return current_user._get_current_object()
    return None
