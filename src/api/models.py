"""Requests and Response models"""

from typing import Optional

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, Status

PlayerId = str


def _is_algebraic_notation(value: str) -> bool:
    if len(value) != 2:
        return False
    file, rank = value[0].lower(), value[1]
    return "a" <= file <= "h" and rank in "12345678"


# --- REQUEST MODELS ---
class JoinRequest(BaseModel):
    player_id: PlayerId


class LeaveRequest(BaseModel):
    player_id: PlayerId


class MoveRequest(BaseModel):
    player_id: PlayerId
    from_square: str
    to_square: str

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value.lower()


class ExchangeRequest(BaseModel):
    player_id: PlayerId
    sm_units: int
    external_account_ref: str

    @field_validator("sm_units")
    @classmethod
    def validate_amount(cls, value: int) -> int:
        if value <= 0:
            raise InvalidRequestError(
                f"Amount to exchange must be a positive number of units, got {value}."
            )
        return value

    @field_validator("external_account_ref")
    @classmethod
    def validate_account(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError(
                "Please enter the external account to transfer to."
            )
        return value.strip()


# --- RESPONSE MODELS ---
class SessionResponse(BaseModel):
    board: str
    turn: Color
    seat_white: Optional[PlayerId]
    seat_black: Optional[PlayerId]
    status: Status
    winner: Optional[PlayerId]
    version: int


class MoveResponse(BaseModel):
    session: SessionResponse
    captured_king: bool
    settled: bool


class WalletResponse(BaseModel):
    player_id: PlayerId
    balance: int


class ExchangeResponse(BaseModel):
    player_id: PlayerId
    sm_units: int
    cost_deducted: int
    balance: int
    status: str
