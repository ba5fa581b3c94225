"""Transactions blueprint — /api/transactions/*

Checkout, payment-proof submission and the admin review queue.

Route Map:
  POST /api/transactions                  — Convert cart to a pending transaction
  GET  /api/transactions                  — Own transactions (?status=)
  GET  /api/transactions/all              — Admin: paginated list (?status, userId, page, limit)
  GET  /api/transactions/<id>             — Detail (owner or admin; admins also get the audit history)
  PUT  /api/transactions/<id>/payment     — Multipart: paymentMethod + paymentProof image
  PUT  /api/transactions/<id>/verify      — Admin: approve ({adminNotes?})
  PUT  /api/transactions/<id>/reject      — Admin: reject ({adminNotes} required)
"""

import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from app.decorators import admin_required
from app.errors import InvalidUploadError, ValidationError
from app.services import (
    atomic,
    audit_service,
    image_service,
    sanitize,
    storage_service,
    transaction_service,
)

transactions_bp = Blueprint(
    "transactions", __name__, url_prefix="/api/transactions"
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════
#  BUYER
# ══════════════════════════════════════════════

@transactions_bp.route("", methods=["POST"])
@login_required
def create_transaction():
    with atomic():
        txn = transaction_service.create_transaction(current_user.id)

    return jsonify(
        success=True,
        message="Transaction created successfully",
        data=txn.to_dict(include_items=True),
    ), 201


@transactions_bp.route("", methods=["GET"])
@login_required
def list_own_transactions():
    transactions = transaction_service.get_user_transactions(
        current_user.id, status=request.args.get("status")
    )
    return jsonify(
        success=True,
        data=[t.to_dict(include_items=True) for t in transactions],
    )


@transactions_bp.route("/<transaction_id>", methods=["GET"])
@login_required
def get_transaction(transaction_id):
    txn = transaction_service.get_transaction(transaction_id, current_user)
    data = txn.to_dict(include_items=True)
    if current_user.is_admin:
        data["history"] = [e.to_dict() for e in audit_service.history(txn)]
    return jsonify(success=True, data=data)


@transactions_bp.route("/<transaction_id>/payment", methods=["PUT"])
@login_required
def submit_payment(transaction_id):
    """Upload a proof image and attach it to a pending transaction.

    Everything that can be checked without the blob store is checked before
    the upload, so a rejected request leaves nothing behind.
    """
    payment_method = sanitize(request.form.get("paymentMethod"))
    proof = request.files.get("paymentProof")

    if not payment_method:
        raise ValidationError("Payment method is required")
    if proof is None:
        raise InvalidUploadError("Payment proof image is required")
    storage_service.validate_image(proof)

    txn = transaction_service.check_can_submit_payment(
        transaction_id, current_user.id
    )
    previous_proof = txn.payment_proof

    proof_url = image_service.upload_payment_proof(proof, transaction_id)

    with atomic():
        txn = transaction_service.submit_payment(
            transaction_id, current_user.id, payment_method, proof_url
        )

    if previous_proof and previous_proof != proof_url:
        storage_service.delete_file(previous_proof)

    return jsonify(
        success=True,
        message="Payment submitted successfully. Awaiting admin verification.",
        data=txn.to_dict(include_items=True),
    )


# ══════════════════════════════════════════════
#  ADMIN
# ══════════════════════════════════════════════

@transactions_bp.route("/all", methods=["GET"])
@admin_required
def list_all_transactions():
    result = transaction_service.get_all_transactions(
        status=request.args.get("status"),
        user_id=request.args.get("userId"),
        page=request.args.get("page"),
        limit=request.args.get("limit"),
    )
    return jsonify(success=True, data=result)


@transactions_bp.route("/<transaction_id>/verify", methods=["PUT"])
@admin_required
def verify_transaction(transaction_id):
    data = request.get_json(silent=True) or {}

    with atomic():
        result = transaction_service.verify_transaction(
            transaction_id, current_user.id, data.get("adminNotes")
        )

    return jsonify(
        success=True,
        message="Transaction verified successfully",
        data={
            "transaction": result["transaction"].to_dict(include_items=True),
            "purchaseCount": result["purchaseCount"],
            "purchaseIds": result["purchaseIds"],
        },
    )


@transactions_bp.route("/<transaction_id>/reject", methods=["PUT"])
@admin_required
def reject_transaction(transaction_id):
    data = request.get_json(silent=True) or {}

    with atomic():
        txn = transaction_service.reject_transaction(
            transaction_id, current_user.id, data.get("adminNotes")
        )

    return jsonify(
        success=True,
        message="Transaction rejected",
        data=txn.to_dict(include_items=True),
    )
