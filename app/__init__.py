import os
import logging
from datetime import datetime, timezone

import click
from flask import Flask, jsonify, request
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from app.config import config_by_name
from app.errors import AppError, DependencyError, InvalidUploadError
from app.extensions import db, migrate, login_manager, jwt, limiter

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    jwt.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from app import models  # noqa: F401

    # --- Register blueprints ---
    from app.blueprints.auth import auth_bp
    from app.blueprints.recipes import recipes_bp
    from app.blueprints.cart import cart_bp
    from app.blueprints.transactions import transactions_bp
    from app.blueprints.ratings import ratings_bp
    from app.blueprints.images import images_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(recipes_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(ratings_bp)
    app.register_blueprint(images_bp)

    # --- Health check ---
    @app.route("/api/health")
    def health():
        return jsonify(
            success=True,
            message="Server is running!",
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    # --- Local file serving (dev only) ---
    if app.debug:
        @app.route("/uploads/<path:filepath>")
        def serve_upload(filepath):
            """Serve uploaded files from instance/uploads in dev mode."""
            from flask import send_from_directory
            upload_dir = os.path.join(app.instance_path, "uploads")
            return send_from_directory(upload_dir, filepath)

    # --- Error handlers ---
    register_error_handlers(app)

    # --- CLI commands ---
    register_cli(app)

    # --- Security + CORS headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Control referrer information
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # JSON API: nothing should ever be rendered or framed
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none';"
        )
        # Strict Transport Security (only in production)
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        origin = request.headers.get("Origin")
        if origin and origin in app.config["CORS_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Methods"] = (
                "GET, POST, PUT, DELETE, OPTIONS"
            )
            response.headers["Access-Control-Allow-Headers"] = (
                "Authorization, Content-Type"
            )
            response.headers["Vary"] = "Origin"
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_error_handlers(app):
    """Map errors to the JSON envelope {success: false, message, error}."""

    @app.errorhandler(AppError)
    def handle_app_error(e):
        if e.status_code >= 500:
            logger.error(f"{e.kind}: {e.message}")
        else:
            logger.info(f"{request.method} {request.path} -> {e.status_code} {e.kind}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(OperationalError)
    def handle_db_unavailable(e):
        logger.exception("Database unavailable")
        db.session.rollback()
        return handle_app_error(DependencyError())

    @app.errorhandler(RequestEntityTooLarge)
    def handle_body_too_large(e):
        # Oversized multipart bodies are cut off before validate_image() runs.
        max_mb = app.config["MAX_UPLOAD_BYTES"] // (1024 * 1024)
        return handle_app_error(
            InvalidUploadError(f"File is too large. Maximum is {max_mb} MB.")
        )

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        messages = {
            404: "Route not found",
            405: "Method not allowed",
        }
        return jsonify(
            success=False,
            message=messages.get(e.code, e.description),
        ), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        db.session.rollback()
        return jsonify(success=False, message="Internal server error"), 500


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-admin")
    @click.option("--username", default="admin", help="Admin username")
    @click.option("--password", default="admin123", help="Admin password")
    def seed_admin(username, password):
        """Create an admin user.

        Usage:
            flask seed-admin
            flask seed-admin --username chef --password s3cret
        """
        from app.models.user import User
        from app.services import atomic, auth_service

        existing = User.query.filter_by(username=username).first()
        if existing:
            click.echo(f"User already exists: {username} ({existing.role})")
            return

        with atomic():
            user, _ = auth_service.register(username, password, role="admin")
        click.echo(f"Created admin user: {user.username}")

    @app.cli.command("seed-recipes")
    def seed_recipes():
        """Insert a handful of demo recipes (skips titles that already exist).

        Usage:
            flask seed-recipes
        """
        from app.models.recipe import Recipe
        from app.models.user import User
        from app.services import atomic, recipe_service

        admin = User.query.filter_by(role="admin").first()
        if admin is None:
            click.echo("No admin user found. Run `flask seed-admin` first.")
            return

        created = 0
        for data in DEMO_RECIPES:
            if Recipe.query.filter_by(title=data["title"]).first():
                continue
            with atomic():
                recipe_service.create_recipe(admin.id, data)
            created += 1

        click.echo(f"Seeded {created} recipe(s).")


DEMO_RECIPES = [
    {
        "title": "Classic Margherita Pizza",
        "description": "Thin crust, San Marzano tomatoes, fresh mozzarella and basil.",
        "price": 9.99,
        "difficulty": "medium",
        "cookingTime": 45,
        "servings": 4,
        "category": "Italian",
        "ingredients": [
            {"label": "Pizza dough", "quantity": 500, "measurement": "g"},
            {"label": "San Marzano tomatoes", "quantity": 400, "measurement": "g"},
            {"label": "Fresh mozzarella", "quantity": 250, "measurement": "g"},
            {"label": "Basil leaves", "quantity": 10, "measurement": "pcs"},
        ],
        "instructions": [
            {"step": 1, "content": "Preheat the oven to its highest setting with a stone inside."},
            {"step": 2, "content": "Stretch the dough and spread the crushed tomatoes evenly."},
            {"step": 3, "content": "Top with torn mozzarella and bake for 8 to 10 minutes."},
            {"step": 4, "content": "Finish with basil leaves and a drizzle of olive oil."},
        ],
        "nutrition": [
            {"type": "calories", "quantity": 850, "measurement": "kcal"},
            {"type": "protein", "quantity": 34, "measurement": "g"},
        ],
    },
    {
        "title": "Chicken Adobo",
        "description": "Filipino braise of chicken in vinegar, soy sauce and garlic.",
        "price": 7.50,
        "difficulty": "easy",
        "cookingTime": 60,
        "servings": 4,
        "category": "Filipino",
        "ingredients": [
            {"label": "Chicken thighs", "quantity": 1, "measurement": "kg"},
            {"label": "Soy sauce", "quantity": 120, "measurement": "ml"},
            {"label": "Cane vinegar", "quantity": 120, "measurement": "ml"},
            {"label": "Garlic cloves", "quantity": 8, "measurement": "pcs"},
            {"label": "Bay leaves", "quantity": 3, "measurement": "pcs"},
        ],
        "instructions": [
            {"step": 1, "content": "Marinate the chicken in soy sauce and garlic for 30 minutes."},
            {"step": 2, "content": "Brown the chicken pieces in a hot pan on both sides."},
            {"step": 3, "content": "Add marinade, vinegar and bay leaves, then simmer covered for 30 minutes."},
            {"step": 4, "content": "Uncover and reduce the sauce until glossy before serving."},
        ],
    },
    {
        "title": "Overnight Oats",
        "description": "No-cook breakfast prepared the night before.",
        "price": 2.00,
        "difficulty": "easy",
        "cookingTime": 5,
        "servings": 1,
        "category": "Breakfast",
        "ingredients": [
            {"label": "Rolled oats", "quantity": 50, "measurement": "g"},
            {"label": "Milk", "quantity": 150, "measurement": "ml"},
            {"label": "Honey", "quantity": 1, "measurement": "tbsp"},
        ],
        "instructions": [
            {"step": 1, "content": "Combine oats, milk and honey in a jar and stir well."},
            {"step": 2, "content": "Cover and refrigerate overnight, then top with fruit."},
        ],
    },
]
