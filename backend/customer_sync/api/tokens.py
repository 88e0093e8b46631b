"""Reward token endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends

from customer_sync.core.deps import get_token_ledger
from customer_sync.services.tokens import TokenLedger
from customer_sync.schemas.token import BalanceResponse, BalanceUpdateResponse, TokenAmount

router = APIRouter(prefix="/customers/{customer_id}", tags=["tokens"])


@router.get("/tokens", response_model=BalanceResponse)
async def get_balance(
    customer_id: UUID,
    ledger: TokenLedger = Depends(get_token_ledger),
):
    return BalanceResponse(balance=await ledger.get_balance(customer_id))


@router.post("/use-tokens", response_model=BalanceUpdateResponse)
async def use_tokens(
    customer_id: UUID,
    body: TokenAmount,
    ledger: TokenLedger = Depends(get_token_ledger),
):
    """Spend tokens. 400 when the amount is not positive or exceeds the balance."""
    new_balance = await ledger.deduct(customer_id, body.token_amount)
    return BalanceUpdateResponse(new_balance=new_balance)


@router.post("/tokens/credit", response_model=BalanceUpdateResponse)
async def credit_tokens(
    customer_id: UUID,
    body: TokenAmount,
    ledger: TokenLedger = Depends(get_token_ledger),
):
    new_balance = await ledger.credit(customer_id, body.token_amount)
    return BalanceUpdateResponse(new_balance=new_balance)
