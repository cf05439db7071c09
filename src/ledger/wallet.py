"""
Per-player coin balance.

The balance is never negative: losses are clamped at zero, withdrawals beyond the balance are refused.
"""

from dataclasses import dataclass, field
from typing import Self

from src.core.exceptions import InsufficientFundsError
from src.core.models import WalletModel


@dataclass
class Wallet:
    player_id: str
    balance: int = 0
    version: int = field(default=0, compare=False)

    @classmethod
    def open(cls, player_id: str) -> Self:
        """Wallets are created lazily, with an empty balance."""
        return cls(player_id=player_id, balance=0)

    @classmethod
    def from_model(cls, model: WalletModel) -> Self:
        return cls(model.player_id, max(0, model.balance), model.version)

    def to_model(self) -> WalletModel:
        return WalletModel(
            player_id=self.player_id, balance=self.balance, version=self.version
        )

    def credit(self, amount: int) -> None:
        self.balance += amount

    def debit_clamped(self, amount: int) -> None:
        """Losing can take you down to zero, not below."""
        self.balance = max(0, self.balance - amount)

    def withdraw(self, amount: int) -> None:
        if self.balance < amount:
            raise InsufficientFundsError(
                f"You need {amount} coins for this exchange, your balance is {self.balance}."
            )
        self.balance -= amount


def settle_game(winner: Wallet, loser: Wallet, reward: int, penalty: int) -> None:
    """Apply the outcome of a finished game to both wallets."""
    winner.credit(reward)
    loser.debit_clamped(penalty)
