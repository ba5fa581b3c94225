# Models package: import all models here so Alembic can discover them.

from app.models.user import User  # noqa: F401
from app.models.recipe import (  # noqa: F401
    Nutrition,
    Recipe,
    RecipeIngredient,
    RecipeInstruction,
)
from app.models.cart import CartItem  # noqa: F401
from app.models.transaction import Transaction, TransactionRecipe  # noqa: F401
from app.models.purchase import Purchase  # noqa: F401
from app.models.rating import Rating  # noqa: F401
from app.models.audit import AuditEvent  # noqa: F401
