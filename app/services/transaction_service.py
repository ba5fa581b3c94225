"""Transaction service — checkout, payment submission and admin review.

State machine (Transaction.VALID_TRANSITIONS):

    pending -> verified | rejected      (both terminal)

Every status change is a conditional UPDATE whose WHERE clause only
matches statuses allowed to move to the target. That statement is the
linearization point, so two admins racing on the same transaction cannot
both win. The loser re-reads the row and gets the matching
AlreadyProcessed error.

Functions flush but do NOT commit — wrap each call in services.atomic().
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import delete, insert, select, update

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
from app.models.cart import CartItem
from app.models.recipe import Recipe
from app.models.transaction import Transaction, TransactionRecipe
from app.models.user import User
from app.services import (
    audit_service,
    pagination_dict,
    purchase_service,
    resolve_page,
    sanitize,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


# ─── Helpers ───────────────────────────────────────────────

def _validate_status(status):
    if status and status not in Transaction.STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(Transaction.STATUSES)}"
        )


def _get_for_owner(transaction_id, user_id):
    """Load a transaction the caller owns.

    Missing and foreign transactions raise different errors internally but
    share one external message.
    """
    txn = db.session.get(Transaction, transaction_id, populate_existing=True)
    if txn is None:
        logger.info(f"Transaction {transaction_id} not found (user {user_id})")
        raise TransactionMissingError()
    if txn.user_id != user_id:
        logger.warning(
            f"User {user_id} tried to access transaction {transaction_id} "
            f"owned by {txn.user_id}"
        )
        raise TransactionNotOwnedError()
    return txn


def _get_for_review(transaction_id):
    txn = db.session.get(Transaction, transaction_id, populate_existing=True)
    if txn is None:
        raise NotFoundError("Transaction not found")
    return txn


# (current status, requested status) -> error for a refused transition
_REFUSED_TRANSITIONS = {
    ("verified", "verified"): AlreadyVerifiedError,
    ("rejected", "verified"): CannotVerifyRejectedError,
    ("rejected", "rejected"): AlreadyRejectedError,
    ("verified", "rejected"): CannotRejectVerifiedError,
}


def _sources_for(target):
    """Statuses a transaction may move to `target` from."""
    return [
        status
        for status, targets in Transaction.VALID_TRANSITIONS.items()
        if target in targets
    ]


def _ensure_can_transition(txn, target):
    """Raise the AlreadyProcessed variant matching (current status, target)."""
    if target in Transaction.VALID_TRANSITIONS.get(txn.status, []):
        return
    raise _REFUSED_TRANSITIONS.get((txn.status, target), InvalidStateError)()


def _transition(txn, target, **values):
    """Move a transaction to `target` or raise if someone beat us to it."""
    result = db.session.execute(
        update(Transaction)
        .where(
            Transaction.id == txn.id,
            Transaction.status.in_(_sources_for(target)),
        )
        .values(status=target, **values)
        .execution_options(synchronize_session=False)
    )
    db.session.refresh(txn)
    if result.rowcount == 0:
        _ensure_can_transition(txn, target)
        # Still movable yet nothing matched; treat as a lost race.
        raise InvalidStateError()


# ─── Checkout ──────────────────────────────────────────────

def create_transaction(user_id):
    """Convert the user's cart into a pending transaction.

    Only cart rows whose recipe is still sale-eligible are priced in; those
    rows (and only those) are consumed.

    Returns:
        The created Transaction with its line items.

    Raises:
        EmptyCartError: Nothing in the cart qualifies.
        CartChangedError: A concurrent checkout consumed some of the rows.
    """
    lines = db.session.execute(
        select(CartItem.id, Recipe.id, Recipe.price)
        .join(Recipe, Recipe.id == CartItem.recipe_id)
        .where(CartItem.user_id == user_id, Recipe.is_for_sale.is_(True))
    ).all()
    if not lines:
        raise EmptyCartError()

    total = sum(
        (Decimal(str(price)) for _, _, price in lines), Decimal("0")
    ).quantize(CENT)

    txn = Transaction(user_id=user_id, total_amount=total, status="pending")
    db.session.add(txn)
    db.session.flush()

    db.session.execute(
        insert(TransactionRecipe),
        [
            {"transaction_id": txn.id, "recipe_id": recipe_id, "price": price}
            for _, recipe_id, price in lines
        ],
    )

    cart_ids = [cart_id for cart_id, _, _ in lines]
    deleted = db.session.execute(
        delete(CartItem)
        .where(CartItem.id.in_(cart_ids))
        .execution_options(synchronize_session=False)
    ).rowcount
    if deleted != len(cart_ids):
        logger.warning(
            f"Checkout for user {user_id} priced {len(cart_ids)} cart rows "
            f"but deleted {deleted}; rolling back"
        )
        raise CartChangedError()

    audit_service.record(
        "transaction.created",
        actor_user_id=user_id,
        subject=txn,
        total_amount=str(total),
        item_count=len(lines),
    )
    db.session.expire(txn, ["items"])

    logger.info(
        f"Transaction {txn.id} created for user {user_id}: "
        f"{len(lines)} item(s), total {total}"
    )
    return txn


# ─── Payment submission ────────────────────────────────────

def check_can_submit_payment(transaction_id, user_id):
    """Ownership + state pre-check, run before a proof is uploaded."""
    txn = _get_for_owner(transaction_id, user_id)
    if txn.is_terminal:
        raise InvalidStateError()
    return txn


def submit_payment(transaction_id, user_id, payment_method, payment_proof_url):
    """Attach payment method and proof to a pending transaction.

    Re-submission while pending overwrites the previous proof. Status is
    unchanged.

    Raises:
        TransactionMissingError / TransactionNotOwnedError: Not the owner.
        InvalidStateError: Transaction already processed.
        ValidationError: Method or proof missing.
    """
    txn = check_can_submit_payment(transaction_id, user_id)

    payment_method = sanitize(payment_method)
    payment_proof_url = (payment_proof_url or "").strip()
    if not payment_method or not payment_proof_url:
        raise ValidationError("Payment method and payment proof are required")

    result = db.session.execute(
        update(Transaction)
        .where(
            Transaction.id == txn.id,
            Transaction.user_id == user_id,
            Transaction.status.in_(list(Transaction.VALID_TRANSITIONS)),
        )
        .values(payment_method=payment_method, payment_proof=payment_proof_url)
        .execution_options(synchronize_session=False)
    )
    db.session.refresh(txn)
    if result.rowcount == 0:
        raise InvalidStateError()

    audit_service.record(
        "transaction.payment_submitted",
        actor_user_id=user_id,
        subject=txn,
        payment_method=payment_method,
    )
    logger.info(f"Payment submitted for transaction {txn.id} ({payment_method})")
    return txn


# ─── Admin review ──────────────────────────────────────────

def verify_transaction(transaction_id, admin_id, admin_notes=None):
    """Approve a pending transaction and grant its recipes.

    Returns:
        dict with the refreshed transaction, purchaseCount and purchaseIds
        (only newly granted purchases; recipes already owned are skipped).

    Raises:
        NotFoundError: No such transaction.
        AlreadyVerifiedError / CannotVerifyRejectedError: Not pending.
    """
    txn = _get_for_review(transaction_id)
    _ensure_can_transition(txn, "verified")

    values = {
        "verified_at": datetime.now(timezone.utc),
        "verified_by": admin_id,
    }
    notes = sanitize(admin_notes)
    if notes:
        values["admin_notes"] = notes

    _transition(txn, "verified", **values)

    items = db.session.execute(
        select(TransactionRecipe.recipe_id, TransactionRecipe.price).where(
            TransactionRecipe.transaction_id == txn.id
        )
    ).all()
    granted = purchase_service.grant(txn.user_id, items)

    audit_service.record(
        "transaction.verified",
        actor_user_id=admin_id,
        subject=txn,
        purchase_ids=[purchase_id for purchase_id, _ in granted],
    )
    logger.info(
        f"Transaction {txn.id} verified by {admin_id}; "
        f"{len(granted)} purchase(s) granted"
    )
    return {
        "transaction": txn,
        "purchaseCount": len(granted),
        "purchaseIds": [purchase_id for purchase_id, _ in granted],
    }


def reject_transaction(transaction_id, admin_id, admin_notes):
    """Reject a pending transaction. Grants nothing; the cart is not restored.

    Raises:
        NotesRequiredError: adminNotes empty (checked first).
        NotFoundError: No such transaction.
        AlreadyRejectedError / CannotRejectVerifiedError: Not pending.
    """
    notes = sanitize(admin_notes)
    if not notes:
        raise NotesRequiredError()

    txn = _get_for_review(transaction_id)
    _ensure_can_transition(txn, "rejected")

    _transition(
        txn,
        "rejected",
        admin_notes=notes,
        verified_at=datetime.now(timezone.utc),
        verified_by=admin_id,
    )

    audit_service.record(
        "transaction.rejected",
        actor_user_id=admin_id,
        subject=txn,
    )
    logger.info(f"Transaction {txn.id} rejected by {admin_id}")
    return txn


# ─── Reads ─────────────────────────────────────────────────

def get_transaction(transaction_id, user):
    """Detail view for the owner or an admin."""
    if user.is_admin:
        txn = db.session.get(Transaction, transaction_id)
        if txn is None:
            raise TransactionMissingError()
        return txn
    return _get_for_owner(transaction_id, user.id)


def get_user_transactions(user_id, status=None):
    _validate_status(status)

    query = Transaction.query.filter_by(user_id=user_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Transaction.created_at.desc()).all()


def get_all_transactions(status=None, user_id=None, page=None, limit=None):
    """Admin listing with filters and pagination.

    Returns:
        dict with "transactions" (each including the buyer's username) and
        "pagination".
    """
    _validate_status(status)
    page, limit = resolve_page(page, limit)

    conditions = []
    if status:
        conditions.append(Transaction.status == status)
    if user_id:
        conditions.append(Transaction.user_id == user_id)

    total = db.session.scalar(
        select(db.func.count(Transaction.id)).where(*conditions)
    )
    rows = db.session.execute(
        select(Transaction, User.username)
        .join(User, User.id == Transaction.user_id)
        .where(*conditions)
        .order_by(Transaction.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    ).all()

    transactions = []
    for txn, username in rows:
        data = txn.to_dict(include_items=True)
        data["username"] = username
        transactions.append(data)

    return {
        "transactions": transactions,
        "pagination": pagination_dict(page, limit, total),
    }
