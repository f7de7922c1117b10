"""All models imported here for metadata discovery."""

from coworking.models.admin_log import AdminAction, AdminLog
from coworking.models.base import Base
from coworking.models.booking import ACTIVE_STATUSES, Booking, BookingStatus, PaymentStatus
from coworking.models.review import Review
from coworking.models.transaction import PaymentMethod, Transaction, TransactionStatus, TransactionType
from coworking.models.user import LoyaltyStatus, User, UserRole
from coworking.models.workspace import Workspace, WorkspaceType

__all__ = [
    "Base",
    "User",
    "UserRole",
    "LoyaltyStatus",
    "Workspace",
    "WorkspaceType",
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "ACTIVE_STATUSES",
    "Transaction",
    "TransactionType",
    "TransactionStatus",
    "PaymentMethod",
    "Review",
    "AdminLog",
    "AdminAction",
]
