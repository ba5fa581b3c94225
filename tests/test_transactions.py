"""Tests for the transaction lifecycle.

Covers:
- Checkout: price snapshot, cart consumption, empty / ineligible carts
- Atomicity: a torn checkout rolls back completely
- Payment submission: ownership, re-submission, state checks, upload ordering
- Admin verification: purchase grants, counters, idempotent re-grant
- Admin rejection: notes required, terminal, cart not restored
- Listings, pagination and audit trail
"""

import io
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import update

from app.errors import (
    AlreadyRejectedError,
    AlreadyVerifiedError,
    CannotRejectVerifiedError,
    CannotVerifyRejectedError,
    CartChangedError,
    EmptyCartError,
    InvalidStateError,
    NotFoundError,
    NotesRequiredError,
    TransactionMissingError,
    TransactionNotOwnedError,
    ValidationError,
)
from app.extensions import db
from app.models.audit import AuditEvent
from app.models.cart import CartItem
from app.models.purchase import Purchase
from app.models.recipe import Recipe
from app.models.transaction import Transaction, TransactionRecipe
from app.services import atomic, cart_service, transaction_service

from conftest import make_recipe


# ─── Helpers ───────────────────────────────────────────────

def _checkout(user_id, *recipe_ids):
    """Fill the cart and create a transaction; returns its id."""
    with atomic():
        for recipe_id in recipe_ids:
            cart_service.add_to_cart(user_id, recipe_id)
    with atomic():
        txn = transaction_service.create_transaction(user_id)
    return txn.id


def _cart_count(user_id):
    return CartItem.query.filter_by(user_id=user_id).count()


def _proof(name="proof.png", content_type="image/png", data=b"\x89PNG fake"):
    return (io.BytesIO(data), name, content_type)


def _status_flips_after(loader, status):
    """Wrap a loader so the row moves to `status` right after being read,
    the way a second admin committing in between would leave it."""
    def load(transaction_id, *args):
        txn = loader(transaction_id, *args)
        db.session.execute(
            update(Transaction)
            .where(Transaction.id == transaction_id)
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        return txn
    return load


# ─── Checkout ──────────────────────────────────────────────

class TestCreateTransaction:
    """Tests for transaction_service.create_transaction()."""

    def test_creates_transaction_and_empties_cart(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"], seed_data["r2_id"])

        txn = db.session.get(Transaction, txn_id)
        assert txn.status == "pending"
        assert txn.total_amount == Decimal("15.00")
        assert {(i.recipe_id, i.price) for i in txn.items} == {
            (seed_data["r1_id"], Decimal("10.00")),
            (seed_data["r2_id"], Decimal("5.00")),
        }
        assert _cart_count(seed_data["buyer_id"]) == 0

    def test_single_recipe_snapshot(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])

        assert Transaction.query.filter_by(user_id=seed_data["buyer_id"]).count() == 1
        items = TransactionRecipe.query.filter_by(transaction_id=txn_id).all()
        assert len(items) == 1
        assert items[0].price == Decimal("10.00")

    def test_price_snapshot_survives_price_change(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])

        recipe = db.session.get(Recipe, seed_data["r1_id"])
        recipe.price = Decimal("99.00")
        db.session.commit()

        txn = db.session.get(Transaction, txn_id)
        assert txn.total_amount == Decimal("10.00")
        assert txn.items[0].price == Decimal("10.00")

    def test_empty_cart_fails(self, seed_data):
        with pytest.raises(EmptyCartError):
            with atomic():
                transaction_service.create_transaction(seed_data["buyer_id"])
        assert Transaction.query.count() == 0

    def test_all_ineligible_cart_fails(self, seed_data):
        with atomic():
            cart_service.add_to_cart(seed_data["buyer_id"], seed_data["r1_id"])
        recipe = db.session.get(Recipe, seed_data["r1_id"])
        recipe.is_for_sale = False
        db.session.commit()

        with pytest.raises(EmptyCartError):
            with atomic():
                transaction_service.create_transaction(seed_data["buyer_id"])
        assert Transaction.query.count() == 0
        assert _cart_count(seed_data["buyer_id"]) == 1

    def test_ineligible_rows_are_left_in_cart(self, seed_data):
        with atomic():
            cart_service.add_to_cart(seed_data["buyer_id"], seed_data["r1_id"])
            cart_service.add_to_cart(seed_data["buyer_id"], seed_data["r2_id"])
        db.session.get(Recipe, seed_data["r2_id"]).is_for_sale = False
        db.session.commit()

        with atomic():
            txn = transaction_service.create_transaction(seed_data["buyer_id"])

        assert txn.total_amount == Decimal("10.00")
        remaining = CartItem.query.filter_by(user_id=seed_data["buyer_id"]).all()
        assert [c.recipe_id for c in remaining] == [seed_data["r2_id"]]

    def test_torn_cart_delete_rolls_back_everything(self, seed_data):
        """If fewer cart rows are deleted than priced, nothing is kept."""
        with atomic():
            cart_service.add_to_cart(seed_data["buyer_id"], seed_data["r1_id"])
            cart_service.add_to_cart(seed_data["buyer_id"], seed_data["r2_id"])

        real_delete = transaction_service.delete

        def delete_only_r1(model):
            return real_delete(model).where(CartItem.recipe_id == seed_data["r1_id"])

        with patch("app.services.transaction_service.delete", side_effect=delete_only_r1):
            with pytest.raises(CartChangedError):
                with atomic():
                    transaction_service.create_transaction(seed_data["buyer_id"])

        db.session.expire_all()
        assert Transaction.query.count() == 0
        assert TransactionRecipe.query.count() == 0
        assert _cart_count(seed_data["buyer_id"]) == 2

    def test_writes_audit_event(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        event = AuditEvent.query.filter_by(action="transaction.created").one()
        assert event.actor_user_id == seed_data["buyer_id"]
        assert (event.subject_type, event.subject_id) == ("transactions", txn_id)
        assert event.metadata_["item_count"] == 1

    def test_http_create(self, client, seed_data):
        client.post("/api/cart", json={"recipeId": seed_data["r1_id"]},
                    headers=seed_data["buyer_headers"])
        client.post("/api/cart", json={"recipeId": seed_data["r2_id"]},
                    headers=seed_data["buyer_headers"])

        resp = client.post("/api/transactions", headers=seed_data["buyer_headers"])
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["success"] is True
        assert body["data"]["totalAmount"] == 15.0
        assert body["data"]["status"] == "pending"
        assert body["data"]["itemCount"] == 2

    def test_http_empty_cart(self, client, seed_data):
        resp = client.post("/api/transactions", headers=seed_data["buyer_headers"])
        assert resp.status_code == 400
        assert resp.get_json() == {
            "success": False,
            "message": "Cart is empty",
            "error": "empty_cart",
        }

    def test_http_requires_auth(self, client, seed_data):
        resp = client.post("/api/transactions")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "unauthenticated"


# ─── Payment submission ────────────────────────────────────

class TestSubmitPayment:
    """Tests for submit_payment (service + multipart route)."""

    def test_submit_and_resubmit_while_pending(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])

        with atomic():
            transaction_service.submit_payment(
                txn_id, seed_data["buyer_id"], "bank_transfer", "https://x/proof1.png"
            )
        with atomic():
            txn = transaction_service.submit_payment(
                txn_id, seed_data["buyer_id"], "bank_transfer", "https://x/proof2.png"
            )

        assert txn.payment_proof == "https://x/proof2.png"
        assert txn.payment_method == "bank_transfer"
        assert txn.status == "pending"

    def test_missing_transaction_and_foreign_transaction_look_the_same(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])

        with pytest.raises(TransactionNotOwnedError) as foreign:
            transaction_service.submit_payment(
                txn_id, seed_data["other_id"], "bank_transfer", "https://x/p.png"
            )
        with pytest.raises(TransactionMissingError) as missing:
            transaction_service.submit_payment(
                "does-not-exist", seed_data["other_id"], "bank_transfer", "https://x/p.png"
            )

        assert foreign.value.status_code == missing.value.status_code == 403
        assert foreign.value.to_dict() == missing.value.to_dict()
        assert foreign.value.kind != missing.value.kind

    def test_requires_method_and_proof(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        with pytest.raises(ValidationError):
            transaction_service.submit_payment(txn_id, seed_data["buyer_id"], "", "https://x/p.png")
        with pytest.raises(ValidationError):
            transaction_service.submit_payment(txn_id, seed_data["buyer_id"], "bank_transfer", "")

    def test_rejected_after_processing(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        with atomic():
            transaction_service.verify_transaction(txn_id, seed_data["admin_id"])

        with pytest.raises(InvalidStateError):
            transaction_service.submit_payment(
                txn_id, seed_data["buyer_id"], "bank_transfer", "https://x/p.png"
            )

    @patch("app.services.storage_service.delete_file")
    @patch("app.services.image_service.storage_service.upload_image")
    def test_http_submit_payment(self, mock_upload, mock_delete, client, seed_data):
        mock_upload.side_effect = ["https://cdn/proof1.png", "https://cdn/proof2.png"]
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])

        resp = client.put(
            f"/api/transactions/{txn_id}/payment",
            data={"paymentMethod": "bank_transfer", "paymentProof": _proof()},
            content_type="multipart/form-data",
            headers=seed_data["buyer_headers"],
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["paymentProof"] == "https://cdn/proof1.png"
        mock_delete.assert_not_called()

        # Re-submission overwrites and removes the superseded proof.
        resp = client.put(
            f"/api/transactions/{txn_id}/payment",
            data={"paymentMethod": "bank_transfer", "paymentProof": _proof()},
            content_type="multipart/form-data",
            headers=seed_data["buyer_headers"],
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["paymentProof"] == "https://cdn/proof2.png"
        mock_delete.assert_called_once_with("https://cdn/proof1.png")

    @patch("app.services.image_service.storage_service.upload_image")
    def test_http_foreign_transaction_uploads_nothing(self, mock_upload, client, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])

        resp = client.put(
            f"/api/transactions/{txn_id}/payment",
            data={"paymentMethod": "bank_transfer", "paymentProof": _proof()},
            content_type="multipart/form-data",
            headers=seed_data["other_headers"],
        )
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "forbidden"
        mock_upload.assert_not_called()

    @patch("app.services.image_service.storage_service.upload_image")
    def test_http_rejects_non_image(self, mock_upload, client, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])

        resp = client.put(
            f"/api/transactions/{txn_id}/payment",
            data={
                "paymentMethod": "bank_transfer",
                "paymentProof": _proof("proof.pdf", "application/pdf"),
            },
            content_type="multipart/form-data",
            headers=seed_data["buyer_headers"],
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_upload"
        mock_upload.assert_not_called()

    def test_http_missing_method(self, client, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        resp = client.put(
            f"/api/transactions/{txn_id}/payment",
            data={"paymentProof": _proof()},
            content_type="multipart/form-data",
            headers=seed_data["buyer_headers"],
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"

    @patch("app.services.image_service.storage_service.upload_image")
    def test_http_oversized_body_is_invalid_upload(self, mock_upload, client, seed_data, app):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        too_big = b"\x89PNG" + b"0" * (app.config["MAX_CONTENT_LENGTH"] + 1024)

        resp = client.put(
            f"/api/transactions/{txn_id}/payment",
            data={"paymentMethod": "bank_transfer", "paymentProof": _proof(data=too_big)},
            content_type="multipart/form-data",
            headers=seed_data["buyer_headers"],
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_upload"
        mock_upload.assert_not_called()


# ─── Verification ──────────────────────────────────────────

class TestVerifyTransaction:
    """Tests for transaction_service.verify_transaction()."""

    def test_verify_grants_purchases_and_bumps_counters(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"], seed_data["r2_id"])

        with atomic():
            result = transaction_service.verify_transaction(
                txn_id, seed_data["admin_id"], "Payment received"
            )

        assert result["purchaseCount"] == 2
        assert len(result["purchaseIds"]) == 2

        db.session.expire_all()
        txn = db.session.get(Transaction, txn_id)
        assert txn.status == "verified"
        assert txn.verified_by == seed_data["admin_id"]
        assert txn.verified_at is not None
        assert txn.admin_notes == "Payment received"

        assert Purchase.query.filter_by(user_id=seed_data["buyer_id"]).count() == 2
        assert db.session.get(Recipe, seed_data["r1_id"]).purchase_count == 1
        assert db.session.get(Recipe, seed_data["r2_id"]).purchase_count == 1

    def test_second_verify_fails_and_counts_once(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        with atomic():
            transaction_service.verify_transaction(txn_id, seed_data["admin_id"])

        with pytest.raises(AlreadyVerifiedError):
            with atomic():
                transaction_service.verify_transaction(txn_id, seed_data["admin_id"])

        db.session.expire_all()
        assert Purchase.query.count() == 1
        assert db.session.get(Recipe, seed_data["r1_id"]).purchase_count == 1

    def test_idempotent_regrant_for_owned_recipe(self, seed_data, db_session):
        """A transaction containing an already-owned recipe grants it once."""
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"], seed_data["r2_id"])

        # Buyer somehow already owns r1.
        db_session.add(Purchase(
            user_id=seed_data["buyer_id"],
            recipe_id=seed_data["r1_id"],
            price=Decimal("10.00"),
        ))
        db_session.commit()

        with atomic():
            result = transaction_service.verify_transaction(txn_id, seed_data["admin_id"])

        assert result["purchaseCount"] == 1
        db.session.expire_all()
        assert Purchase.query.filter_by(
            user_id=seed_data["buyer_id"], recipe_id=seed_data["r1_id"]
        ).count() == 1
        assert db.session.get(Recipe, seed_data["r1_id"]).purchase_count == 0
        assert db.session.get(Recipe, seed_data["r2_id"]).purchase_count == 1

    def test_purchase_keeps_snapshot_price(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        db.session.get(Recipe, seed_data["r1_id"]).price = Decimal("42.00")
        db.session.commit()

        with atomic():
            transaction_service.verify_transaction(txn_id, seed_data["admin_id"])

        purchase = Purchase.query.filter_by(recipe_id=seed_data["r1_id"]).one()
        assert purchase.price == Decimal("10.00")

    def test_verify_missing(self, seed_data):
        with pytest.raises(NotFoundError):
            transaction_service.verify_transaction("nope", seed_data["admin_id"])

    def test_cannot_verify_rejected(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        with atomic():
            transaction_service.reject_transaction(txn_id, seed_data["admin_id"], "Blurry proof")

        with pytest.raises(CannotVerifyRejectedError):
            transaction_service.verify_transaction(txn_id, seed_data["admin_id"])
        assert Purchase.query.count() == 0

    def test_scenario_full_lifecycle_over_http(self, client, seed_data):
        headers = seed_data["buyer_headers"]
        client.post("/api/cart", json={"recipeId": seed_data["r1_id"]}, headers=headers)
        client.post("/api/cart", json={"recipeId": seed_data["r2_id"]}, headers=headers)
        txn_id = client.post("/api/transactions", headers=headers).get_json()["data"]["id"]

        with patch(
            "app.services.image_service.storage_service.upload_image",
            return_value="https://cdn/proof.png",
        ):
            resp = client.put(
                f"/api/transactions/{txn_id}/payment",
                data={"paymentMethod": "bank_transfer", "paymentProof": _proof()},
                content_type="multipart/form-data",
                headers=headers,
            )
        assert resp.status_code == 200

        resp = client.put(
            f"/api/transactions/{txn_id}/verify",
            json={"adminNotes": "ok"},
            headers=seed_data["admin_headers"],
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["purchaseCount"] == 2
        assert data["transaction"]["status"] == "verified"

        resp = client.put(
            f"/api/transactions/{txn_id}/verify",
            json={},
            headers=seed_data["admin_headers"],
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "already_verified"
        assert resp.get_json()["message"] == "Transaction is already verified"

    def test_verify_requires_admin(self, client, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        resp = client.put(
            f"/api/transactions/{txn_id}/verify", json={}, headers=seed_data["buyer_headers"]
        )
        assert resp.status_code == 403
        assert resp.get_json()["success"] is False


# ─── Rejection ─────────────────────────────────────────────

class TestRejectTransaction:
    """Tests for transaction_service.reject_transaction()."""

    def test_notes_required(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        for notes in (None, "", "   ", "<b></b>"):
            with pytest.raises(NotesRequiredError):
                transaction_service.reject_transaction(txn_id, seed_data["admin_id"], notes)

    def test_notes_checked_before_state(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        with atomic():
            transaction_service.verify_transaction(txn_id, seed_data["admin_id"])

        with pytest.raises(ValidationError):
            transaction_service.reject_transaction(txn_id, seed_data["admin_id"], "")

    def test_reject_is_terminal_and_grants_nothing(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        with atomic():
            txn = transaction_service.reject_transaction(
                txn_id, seed_data["admin_id"], "<i>Proof</i> unreadable"
            )

        assert txn.status == "rejected"
        assert txn.admin_notes == "Proof unreadable"
        assert Purchase.query.count() == 0

        with pytest.raises(AlreadyRejectedError):
            transaction_service.reject_transaction(txn_id, seed_data["admin_id"], "again")

    def test_rejection_does_not_restore_cart(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        with atomic():
            transaction_service.reject_transaction(txn_id, seed_data["admin_id"], "No payment")
        assert _cart_count(seed_data["buyer_id"]) == 0

    def test_cannot_reject_verified(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        with atomic():
            transaction_service.verify_transaction(txn_id, seed_data["admin_id"])
        with pytest.raises(CannotRejectVerifiedError):
            transaction_service.reject_transaction(txn_id, seed_data["admin_id"], "late")

    def test_http_reject_without_notes(self, client, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        resp = client.put(
            f"/api/transactions/{txn_id}/reject", json={}, headers=seed_data["admin_headers"]
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "notes_required"


# ─── Lost races ────────────────────────────────────────────

class TestConcurrentTransitions:
    """The conditional UPDATE decides who wins, not the earlier status read."""

    def test_verify_loses_to_concurrent_verify(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"], seed_data["r2_id"])

        with patch(
            "app.services.transaction_service._get_for_review",
            side_effect=_status_flips_after(transaction_service._get_for_review, "verified"),
        ):
            with pytest.raises(AlreadyVerifiedError):
                with atomic():
                    transaction_service.verify_transaction(txn_id, seed_data["admin_id"])

        db.session.expire_all()
        assert Purchase.query.count() == 0
        assert db.session.get(Recipe, seed_data["r1_id"]).purchase_count == 0
        assert db.session.get(Recipe, seed_data["r2_id"]).purchase_count == 0
        assert AuditEvent.query.filter_by(action="transaction.verified").count() == 0

    def test_reject_loses_to_concurrent_verify(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])

        with patch(
            "app.services.transaction_service._get_for_review",
            side_effect=_status_flips_after(transaction_service._get_for_review, "verified"),
        ):
            with pytest.raises(CannotRejectVerifiedError):
                with atomic():
                    transaction_service.reject_transaction(
                        txn_id, seed_data["admin_id"], "Proof unreadable"
                    )

        db.session.expire_all()
        txn = db.session.get(Transaction, txn_id)
        assert txn.admin_notes is None
        assert AuditEvent.query.filter_by(action="transaction.rejected").count() == 0

    def test_payment_loses_to_concurrent_reject(self, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])

        with patch(
            "app.services.transaction_service._get_for_owner",
            side_effect=_status_flips_after(transaction_service._get_for_owner, "rejected"),
        ):
            with pytest.raises(InvalidStateError):
                with atomic():
                    transaction_service.submit_payment(
                        txn_id, seed_data["buyer_id"], "bank_transfer", "https://x/p.png"
                    )

        db.session.expire_all()
        assert db.session.get(Transaction, txn_id).payment_proof is None


# ─── Reads ─────────────────────────────────────────────────

class TestTransactionReads:
    """Listing, detail and pagination."""

    def test_user_transactions_with_status_filter(self, client, seed_data):
        first = _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        _checkout(seed_data["buyer_id"], seed_data["r2_id"])
        with atomic():
            transaction_service.verify_transaction(first, seed_data["admin_id"])

        resp = client.get("/api/transactions", headers=seed_data["buyer_headers"])
        assert len(resp.get_json()["data"]) == 2

        resp = client.get("/api/transactions?status=verified", headers=seed_data["buyer_headers"])
        data = resp.get_json()["data"]
        assert [t["id"] for t in data] == [first]

    def test_invalid_status_filter(self, client, seed_data):
        resp = client.get("/api/transactions?status=paid", headers=seed_data["buyer_headers"])
        assert resp.status_code == 400

    def test_detail_owner_admin_and_stranger(self, client, seed_data):
        txn_id = _checkout(seed_data["buyer_id"], seed_data["r1_id"])

        resp = client.get(f"/api/transactions/{txn_id}", headers=seed_data["buyer_headers"])
        assert resp.status_code == 200
        assert resp.get_json()["data"]["recipes"][0]["recipeTitle"] == "Pasta Carbonara"
        assert "history" not in resp.get_json()["data"]

        client.put(f"/api/transactions/{txn_id}/verify", json={}, headers=seed_data["admin_headers"])
        resp = client.get(f"/api/transactions/{txn_id}", headers=seed_data["admin_headers"])
        assert resp.status_code == 200
        history = resp.get_json()["data"]["history"]
        assert [e["action"] for e in history] == ["transaction.created", "transaction.verified"]
        assert history[1]["actorUserId"] == seed_data["admin_id"]

        stranger = client.get(f"/api/transactions/{txn_id}", headers=seed_data["other_headers"])
        missing = client.get("/api/transactions/nope", headers=seed_data["other_headers"])
        assert stranger.status_code == missing.status_code == 403
        assert stranger.get_json() == missing.get_json()

    def test_admin_list_paginates(self, client, db_session, seed_data):
        for i in range(3):
            recipe = make_recipe(db_session, f"Extra {i}", "1.00")
            db_session.commit()
            _checkout(seed_data["buyer_id"], recipe.id)

        resp = client.get("/api/transactions/all?page=2&limit=2", headers=seed_data["admin_headers"])
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert len(data["transactions"]) == 1
        assert data["transactions"][0]["username"] == "buyer"
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}

    def test_admin_list_filters_by_user(self, seed_data):
        _checkout(seed_data["buyer_id"], seed_data["r1_id"])
        _checkout(seed_data["other_id"], seed_data["r1_id"])

        result = transaction_service.get_all_transactions(user_id=seed_data["other_id"])
        assert result["pagination"]["total"] == 1
        assert result["transactions"][0]["userId"] == seed_data["other_id"]

    def test_admin_list_rejects_bad_page(self, client, seed_data):
        resp = client.get("/api/transactions/all?page=0", headers=seed_data["admin_headers"])
        assert resp.status_code == 400
        resp = client.get("/api/transactions/all?limit=abc", headers=seed_data["admin_headers"])
        assert resp.status_code == 400

    def test_admin_list_clamps_limit(self, seed_data, app):
        result = transaction_service.get_all_transactions(limit=10_000)
        assert result["pagination"]["limit"] == app.config["MAX_PAGE_SIZE"]

    def test_admin_list_forbidden_for_users(self, client, seed_data):
        resp = client.get("/api/transactions/all", headers=seed_data["buyer_headers"])
        assert resp.status_code == 403
