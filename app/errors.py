"""Application error taxonomy.

Services raise these; the handler registered in create_app() turns them
into `{"success": false, "message": ..., "error": <kind>}` responses using
the class's status_code. Routes never inspect message text.

    ValidationError      400  malformed or out-of-range input
    ConflictError        400  state-machine violation (already in cart, ...)
    UnauthenticatedError 401  missing / invalid bearer token
    ForbiddenError       403  authenticated but not entitled
    NotFoundError        404  entity absent
    DependencyError      503  blob store or database unavailable
"""


class AppError(Exception):
    status_code = 500
    kind = "app_error"
    # Kind reported to the client when it must differ from the logged one.
    public_kind = None
    default_message = "Something went wrong."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {
            "success": False,
            "message": self.message,
            "error": self.public_kind or self.kind,
        }


# ─── 400: caller input ────────────────────────────────────

class ValidationError(AppError):
    status_code = 400
    kind = "validation_error"
    default_message = "Invalid input."


class NotesRequiredError(ValidationError):
    kind = "notes_required"
    default_message = "Admin notes are required when rejecting a transaction"


class InvalidUploadError(ValidationError):
    kind = "invalid_upload"
    default_message = "Only image files are allowed."


# ─── 400: state conflicts ─────────────────────────────────

class ConflictError(AppError):
    status_code = 400
    kind = "conflict"
    default_message = "The request conflicts with the current state."


class NotForSaleError(ConflictError):
    kind = "not_for_sale"
    default_message = "Recipe is not available for purchase"


class AlreadyInCartError(ConflictError):
    kind = "already_in_cart"
    default_message = "Recipe is already in your cart"


class AlreadyOwnedError(ConflictError):
    kind = "already_owned"
    default_message = "You already own this recipe"


class EmptyCartError(ConflictError):
    kind = "empty_cart"
    default_message = "Cart is empty"


class CartChangedError(ConflictError):
    kind = "cart_changed"
    default_message = "Your cart changed during checkout. Please try again."


class InvalidStateError(ConflictError):
    kind = "invalid_state"
    default_message = "Transaction has already been processed"


class AlreadyProcessedError(ConflictError):
    """Any attempt to move a transaction out of a terminal state."""

    kind = "already_processed"
    default_message = "Transaction has already been processed"


class AlreadyVerifiedError(AlreadyProcessedError):
    kind = "already_verified"
    default_message = "Transaction is already verified"


class CannotVerifyRejectedError(AlreadyProcessedError):
    kind = "cannot_verify_rejected"
    default_message = "Cannot verify a rejected transaction"


class AlreadyRejectedError(AlreadyProcessedError):
    kind = "already_rejected"
    default_message = "Transaction is already rejected"


class CannotRejectVerifiedError(AlreadyProcessedError):
    kind = "cannot_reject_verified"
    default_message = "Cannot reject a verified transaction"


class UsernameTakenError(ConflictError):
    kind = "username_taken"
    default_message = "Username already exists"


class RecipeInUseError(ConflictError):
    kind = "recipe_in_use"
    default_message = (
        "Recipe has purchases or orders and cannot be deleted. "
        "Take it off sale instead."
    )


# ─── 401 / 403 / 404 ──────────────────────────────────────

class UnauthenticatedError(AppError):
    status_code = 401
    kind = "unauthenticated"
    default_message = "Access token required"


class ForbiddenError(AppError):
    status_code = 403
    kind = "forbidden"
    default_message = "You do not have permission to perform this action"


class MustPurchaseFirstError(ForbiddenError):
    kind = "must_purchase_first"
    default_message = "You must purchase this recipe before rating it"


# Missing and not-owned transactions share one external message so callers
# can't probe for other users' transaction ids; the kinds stay distinct.
TRANSACTION_ACCESS_MESSAGE = (
    "Transaction not found or you do not have permission to access it"
)


class TransactionMissingError(ForbiddenError):
    kind = "transaction_missing"
    public_kind = "forbidden"
    default_message = TRANSACTION_ACCESS_MESSAGE


class TransactionNotOwnedError(ForbiddenError):
    kind = "transaction_not_owned"
    public_kind = "forbidden"
    default_message = TRANSACTION_ACCESS_MESSAGE


RATING_ACCESS_MESSAGE = (
    "Rating not found or you do not have permission to delete it"
)


class RatingMissingError(ForbiddenError):
    kind = "rating_missing"
    public_kind = "forbidden"
    default_message = RATING_ACCESS_MESSAGE


class RatingNotOwnedError(ForbiddenError):
    kind = "rating_not_owned"
    public_kind = "forbidden"
    default_message = RATING_ACCESS_MESSAGE


class NotFoundError(AppError):
    status_code = 404
    kind = "not_found"
    default_message = "Not found"


# ─── 503 ──────────────────────────────────────────────────

class DependencyError(AppError):
    status_code = 503
    kind = "dependency_error"
    default_message = "Service temporarily unavailable"
