"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

# Type aliases to make the models easier to read
PlayerId = str
BoardString = str


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionModel:
    """Transport-safe representation of the shared game session.

    `version` is the optimistic concurrency stamp: it increases by one on every committed write.
    `loser` is the seat holder the winner played against, kept even if that player leaves afterwards.
    `settled_winner` marks which winner has already been paid out for the current Finished state.
    """

    board: BoardString
    turn: str
    seat_white: Optional[PlayerId]
    seat_black: Optional[PlayerId]
    status: str
    winner: Optional[PlayerId] = None
    loser: Optional[PlayerId] = None
    settled_winner: Optional[PlayerId] = None
    version: int = 0


@dataclass
class WalletModel:
    """Ledger entry of a single player."""

    player_id: PlayerId
    balance: int
    version: int = 0


@dataclass
class ExchangeModel:
    """Append-only record of a withdrawal request."""

    player_id: PlayerId
    external_account_ref: str
    sm_units: int
    cost_deducted: int
    timestamp: datetime
    status: str
