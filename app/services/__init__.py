"""Service layer.

Services flush but do NOT commit. Every unit of work is wrapped by the
caller in atomic(), which commits once at the end or rolls the whole unit
back on any exception.
"""

from contextlib import contextmanager

import bleach
from flask import current_app

from app.errors import ValidationError
from app.extensions import db


@contextmanager
def atomic():
    """Run a block as one all-or-nothing database transaction.

    Usage:
        with atomic():
            txn = transaction_service.create_transaction(user_id)
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(str(text), tags=[], strip=True).strip()


def resolve_page(page=None, limit=None):
    """Validate page/limit query values.

    Returns:
        (page, limit) as ints; limit defaults to DEFAULT_PAGE_SIZE and is
        clamped to MAX_PAGE_SIZE.

    Raises:
        ValidationError: If either value is not an integer >= 1.
    """
    try:
        page = int(page) if page not in (None, "") else 1
        limit = (
            int(limit) if limit not in (None, "")
            else current_app.config["DEFAULT_PAGE_SIZE"]
        )
    except (TypeError, ValueError):
        raise ValidationError("Page and limit must be integers")

    if page < 1 or limit < 1:
        raise ValidationError("Page and limit must be at least 1")

    return page, min(limit, current_app.config["MAX_PAGE_SIZE"])


def pagination_dict(page, limit, total):
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": (total + limit - 1) // limit,
    }
