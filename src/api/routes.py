"""HTTP routes. Thin: parse the request, call the service, let the exception handlers translate errors."""

from typing import Generator

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from src.api.models import (
    ExchangeRequest,
    ExchangeResponse,
    JoinRequest,
    LeaveRequest,
    MoveRequest,
    MoveResponse,
    SessionResponse,
    WalletResponse,
)
from src.db.database import get_db
from src.services.chess_service import ChessService
from src.services.context import AppContext
from src.services.wallet_service import WalletService

router = APIRouter()


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_session(
    context: AppContext = Depends(get_context),
) -> Generator[Session, None, None]:
    yield from get_db(context.database)


def get_chess_service(
    context: AppContext = Depends(get_context), db: Session = Depends(get_session)
) -> ChessService:
    return context.chess_service(db)


def get_wallet_service(
    context: AppContext = Depends(get_context), db: Session = Depends(get_session)
) -> WalletService:
    return context.wallet_service(db)


@router.get("/session", response_model=SessionResponse)
def read_session(service: ChessService = Depends(get_chess_service)) -> SessionResponse:
    return service.get_session_state()


@router.post("/session/join", response_model=SessionResponse)
def join(
    request: JoinRequest, service: ChessService = Depends(get_chess_service)
) -> SessionResponse:
    return service.join_game(request)


@router.post("/session/leave", response_model=SessionResponse)
def leave(
    request: LeaveRequest, service: ChessService = Depends(get_chess_service)
) -> SessionResponse:
    return service.leave_game(request)


@router.post("/session/move", response_model=MoveResponse)
def move(
    request: MoveRequest, service: ChessService = Depends(get_chess_service)
) -> MoveResponse:
    return service.make_move(request)


@router.post("/session/reset", response_model=SessionResponse)
def reset(service: ChessService = Depends(get_chess_service)) -> SessionResponse:
    return service.reset_game()


@router.get("/wallets/{player_id}", response_model=WalletResponse)
def read_wallet(
    player_id: str, service: WalletService = Depends(get_wallet_service)
) -> WalletResponse:
    return service.get_balance(player_id)


@router.post("/wallets/exchange", response_model=ExchangeResponse)
def exchange(
    request: ExchangeRequest, service: WalletService = Depends(get_wallet_service)
) -> ExchangeResponse:
    return service.exchange(request)
