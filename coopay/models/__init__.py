from coopay.db.base import Base

# Import all models so Alembic can detect them
from coopay.models.user import User, UserRoleEnum
from coopay.models.cooperative import Cooperative, CooperativeCash, Season, SeasonName, SeasonStatus
from coopay.models.fees import FeeType, FeeTypeStatus, Fee, FeeStatus
from coopay.models.loan import Loan, LoanStatus, LoanTransaction
from coopay.models.production import Product, Production, ProductionPaymentStatus
from coopay.models.payment import Payment, PaymentStatus, PaymentTransaction

__all__ = [
    "Base",
    "User",
    "UserRoleEnum",
    "Cooperative",
    "CooperativeCash",
    "Season",
    "SeasonName",
    "SeasonStatus",
    "FeeType",
    "FeeTypeStatus",
    "Fee",
    "FeeStatus",
    "Loan",
    "LoanStatus",
    "LoanTransaction",
    "Product",
    "Production",
    "ProductionPaymentStatus",
    "Payment",
    "PaymentStatus",
    "PaymentTransaction",
]
