"""Database tables / schema"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.models import utc_now


class Base(DeclarativeBase):
    pass


class DBSession(Base):
    """The shared game session. `version` is bumped by every conditional write."""

    __tablename__ = "game_sessions"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    board: Mapped[str] = mapped_column(String(64))
    turn: Mapped[str]
    seat_white: Mapped[Optional[str]]
    seat_black: Mapped[Optional[str]]
    status: Mapped[str]
    winner: Mapped[Optional[str]]
    loser: Mapped[Optional[str]]
    settled_winner: Mapped[Optional[str]]
    version: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )


class DBWallet(Base):
    __tablename__ = "wallets"
    player_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    balance: Mapped[int] = mapped_column(Integer, default=0)
    version: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )


class DBExchange(Base):
    """Append-only: rows are inserted, never updated or deleted."""

    __tablename__ = "exchange_requests"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    player_id: Mapped[str] = mapped_column(String(128), index=True)
    external_account_ref: Mapped[str]
    sm_units: Mapped[int]
    cost_deducted: Mapped[int]
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    status: Mapped[str]
