"""Reward token schemas."""

from pydantic import BaseModel


class TokenAmount(BaseModel):
    # Range is checked by the ledger so that zero/negative is a 400, not a 422.
    token_amount: int


class BalanceResponse(BaseModel):
    balance: int


class BalanceUpdateResponse(BaseModel):
    success: bool = True
    new_balance: int
