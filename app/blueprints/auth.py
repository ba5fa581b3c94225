"""Auth blueprint — /api/auth/*

Registration, login (both rate limited) and the caller's profile.
Tokens are bearer JWTs; see auth_service.generate_token().

Route Map:
  POST /api/auth/register  — Create account, returns {user, token}
  POST /api/auth/login     — Exchange credentials for a token
  GET  /api/auth/profile   — Current user's profile
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from app.extensions import limiter
from app.services import atomic, auth_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


# ──────────────────────────────────────────────
# POST /api/auth/register
# ──────────────────────────────────────────────

@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per minute")
def register():
    data = request.get_json(silent=True) or {}

    with atomic():
        user, token = auth_service.register(
            data.get("username"), data.get("password")
        )

    return jsonify(
        success=True,
        message="User registered successfully",
        data={"user": user.to_dict(), "token": token},
    ), 201


# ──────────────────────────────────────────────
# POST /api/auth/login
# ──────────────────────────────────────────────

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("15 per minute")
def login():
    data = request.get_json(silent=True) or {}
    user, token = auth_service.authenticate(
        data.get("username"), data.get("password")
    )
    return jsonify(
        success=True,
        message="Login successful",
        data={"user": user.to_dict(), "token": token},
    )


# ──────────────────────────────────────────────
# GET /api/auth/profile
# ──────────────────────────────────────────────

@auth_bp.route("/profile")
@login_required
def profile():
    user = auth_service.get_profile(current_user.id)
    return jsonify(success=True, data=user.to_dict())
