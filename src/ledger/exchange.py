"""Exchange of coins into the external currency (SM units) at a fixed rate."""

from src.core.exceptions import InvalidRequestError
from src.core.models import ExchangeModel, utc_now
from src.core.shared_types import ExchangeStatus
from src.ledger.wallet import Wallet


def exchange_cost(sm_units: int, coins_per_unit: int) -> int:
    if sm_units <= 0:
        raise InvalidRequestError(
            f"Amount to exchange must be a positive number of units, got {sm_units}."
        )
    return sm_units * coins_per_unit


def withdraw_for_exchange(
    wallet: Wallet, external_account_ref: str, sm_units: int, coins_per_unit: int
) -> ExchangeModel:
    """
    Deduct the cost from the wallet and return the record to append.
    Raises InsufficientFundsError before touching the wallet if the balance is too low.
    """
    if not external_account_ref.strip():
        raise InvalidRequestError("Please enter the external account to transfer to.")

    cost = exchange_cost(sm_units, coins_per_unit)
    wallet.withdraw(cost)
    return ExchangeModel(
        player_id=wallet.player_id,
        external_account_ref=external_account_ref.strip(),
        sm_units=sm_units,
        cost_deducted=cost,
        timestamp=utc_now(),
        status=ExchangeStatus.REQUESTED.value,
    )
