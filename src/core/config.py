"""
Configuration loaded from environment variables.

- Exposes a frozen Settings object; build it once with load_settings() and pass it to the components that need it.
"""

import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional


def _get(
    env: Mapping[str, str],
    name: str,
    default: Any,
    cast: Callable[[Any], Any] | None = None,
) -> Any:
    value = env.get(name)
    if value is None:
        return default
    return cast(value) if cast else value


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    # Persistence
    database_url: str = "sqlite:///./chess.db"
    db_echo: bool = False

    # Game flow
    reset_delay_s: float = 3.0

    # Ledger
    win_reward: int = 100
    loss_penalty: int = 100
    coins_per_sm_unit: int = 400

    log_level: str = "INFO"


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from the environment (or any mapping, convenient for tests)."""
    env = os.environ if env is None else env
    defaults = Settings()
    return Settings(
        database_url=_get(env, "CHESS_DATABASE_URL", defaults.database_url),
        db_echo=_get(env, "CHESS_DB_ECHO", defaults.db_echo, cast=_as_bool),
        reset_delay_s=_get(
            env, "CHESS_RESET_DELAY_S", defaults.reset_delay_s, cast=float
        ),
        win_reward=_get(env, "CHESS_WIN_REWARD", defaults.win_reward, cast=int),
        loss_penalty=_get(env, "CHESS_LOSS_PENALTY", defaults.loss_penalty, cast=int),
        coins_per_sm_unit=_get(
            env, "CHESS_COINS_PER_SM_UNIT", defaults.coins_per_sm_unit, cast=int
        ),
        log_level=_get(env, "CHESS_LOG_LEVEL", defaults.log_level).upper(),
    )
