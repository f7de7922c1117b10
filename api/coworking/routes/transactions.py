"""Wallet routes: ledger, balance, top-up."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.database import get_db
from coworking.core.dependencies import get_current_user
from coworking.models.user import User
from coworking.schemas import BalanceOut, IdOut, TopUpOut, TopUpRequest, TransactionCreate, TransactionOut
from coworking.services import wallet

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=list[TransactionOut])
async def list_my_transactions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wallet.list_transactions(db, user.id)


@router.get("/balance", response_model=BalanceOut)
async def get_my_balance(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return BalanceOut(balance=await wallet.get_balance(db, user.id))


@router.post("", response_model=IdOut, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    body: TransactionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    txn = await wallet.create_transaction(db, user.id, body.type, body.amount, body.description)
    return IdOut(id=txn.id)


@router.post("/top-up", response_model=TopUpOut, status_code=status.HTTP_201_CREATED)
async def top_up_wallet(
    body: TopUpRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    txn = await wallet.top_up(db, user.id, body.amount)
    return TopUpOut(
        transaction_id=txn.id,
        payment_link=wallet.sbp_payment_link(body.amount),
        balance=await wallet.get_balance(db, user.id),
    )
