"""Wallet service: the transaction ledger and balance.

There is no stored balance. A user's balance is the sum of all their
transaction amounts, recomputed on every read. Every money movement is a
new signed row: deposits and refunds are positive, payments and
withdrawals negative. Callers choose the sign; ``create_transaction``
stores what it is given.
"""

import logging
from decimal import Decimal
from urllib.parse import urlencode

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.config import settings
from coworking.core.errors import NotFound
from coworking.models.transaction import PaymentMethod, Transaction, TransactionStatus, TransactionType
from coworking.models.user import User

logger = logging.getLogger(__name__)


async def get_balance(db: AsyncSession, user_id: int) -> Decimal:
    """Sum of every transaction amount for the user."""
    result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(Transaction.user_id == user_id)
    )
    return Decimal(result.scalar_one()).quantize(Decimal("0.01"))


async def lock_user(db: AsyncSession, user_id: int) -> User:
    """Load the user row with SELECT ... FOR UPDATE.

    Held until the request transaction ends, so a balance check and the
    debit that follows cannot interleave with another spend by the same user.
    """
    result = await db.execute(
        select(User).where(User.id == user_id).with_for_update().execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound(f"User #{user_id} not found.")
    return user


async def create_transaction(
    db: AsyncSession,
    user_id: int,
    txn_type: TransactionType,
    amount: Decimal,
    description: str | None,
    status: TransactionStatus = TransactionStatus.COMPLETED,
    booking_id: int | None = None,
    payment_method: PaymentMethod | None = None,
) -> Transaction:
    """Append a ledger row. The signed amount is stored as given."""
    txn = Transaction(
        user_id=user_id,
        booking_id=booking_id,
        type=txn_type,
        amount=amount,
        currency=settings.currency,
        status=status,
        payment_method=payment_method,
        description=description,
    )
    db.add(txn)
    await db.flush()
    logger.info("Ledger %s %s for user %s (txn %s)", txn_type.value, amount, user_id, txn.id)
    return txn


async def list_transactions(db: AsyncSession, user_id: int, limit: int = 100) -> list[Transaction]:
    result = await db.execute(
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def sbp_payment_link(amount: Decimal) -> str:
    """Build the (simulated) SBP QR payment link for a wallet top-up."""
    query = urlencode(
        {
            "type": "02",
            "amount": str(amount),
            "currency": "643",
            "purpose": f"{settings.app_name} wallet top-up",
        }
    )
    return f"{settings.sbp_payment_url}?{query}"


async def top_up(db: AsyncSession, user_id: int, amount: Decimal) -> Transaction:
    """Record a completed QR/SBP deposit. Bounds are validated at the edge."""
    return await create_transaction(
        db,
        user_id,
        TransactionType.DEPOSIT,
        amount,
        description=f"Wallet top-up via SBP ({amount} {settings.currency})",
        payment_method=PaymentMethod.QR_CODE,
    )
