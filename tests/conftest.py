"""Shared test fixtures for the recipe marketplace test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, rate limits off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: admin, two buyers, three recipes and bearer headers
"""

from decimal import Decimal

import pytest
from flask import g
from flask.testing import FlaskClient
from werkzeug.security import generate_password_hash

from app import create_app
from app.extensions import db as _db
from app.models.recipe import Recipe, RecipeIngredient, RecipeInstruction
from app.models.user import User
from app.services import auth_service


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


class _IsolatedLoginClient(FlaskClient):
    """Test client that drops Flask-Login's cached user before each request.

    db_session keeps one app context pushed for the whole test and Flask
    reuses it for client requests, so ``g`` (and the ``g._login_user`` cache)
    would otherwise leak the signed-in user from one request into the next.
    """

    def open(self, *args, **kwargs):
        g.pop("_login_user", None)
        return super().open(*args, **kwargs)


@pytest.fixture
def client(app):
    """Flask test client."""
    app.test_client_class = _IsolatedLoginClient
    return app.test_client()


def make_user(session, username, role="user", password="password123"):
    user = User(
        username=username,
        password_hash=generate_password_hash(password),
        role=role,
    )
    session.add(user)
    session.flush()
    return user


def make_recipe(session, title, price, is_for_sale=True, **kwargs):
    defaults = {
        "description": f"{title} description",
        "difficulty": "easy",
        "cooking_time": 30,
        "servings": 2,
        "category": "Test",
    }
    defaults.update(kwargs)
    recipe = Recipe(
        title=title,
        price=Decimal(str(price)),
        is_for_sale=is_for_sale,
        **defaults,
    )
    session.add(recipe)
    session.flush()
    session.add(RecipeIngredient(recipe_id=recipe.id, position=1, label="Salt"))
    session.add(RecipeInstruction(
        recipe_id=recipe.id, step=1, content="Mix everything together well."
    ))
    session.flush()
    return recipe


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def seed_data(db_session):
    """Seed an admin, a buyer, a second user and three recipes.

    r1 ($10) and r2 ($5) are for sale; r3 ($7) is not.
    Returns plain ids and ready-made bearer headers.
    """
    admin = make_user(db_session, "admin", role="admin")
    buyer = make_user(db_session, "buyer")
    other = make_user(db_session, "other")

    r1 = make_recipe(db_session, "Pasta Carbonara", "10.00")
    r2 = make_recipe(db_session, "Greek Salad", "5.00")
    r3 = make_recipe(db_session, "Secret Stew", "7.00", is_for_sale=False)

    db_session.commit()

    return {
        "admin_id": admin.id,
        "buyer_id": buyer.id,
        "other_id": other.id,
        "r1_id": r1.id,
        "r2_id": r2.id,
        "r3_id": r3.id,
        "admin_headers": bearer(auth_service.generate_token(admin)),
        "buyer_headers": bearer(auth_service.generate_token(buyer)),
        "other_headers": bearer(auth_service.generate_token(other)),
    }
