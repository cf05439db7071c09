"""
Fan-out of committed changes to observers.

Observers receive the full committed value after every commit. They must treat it as a display snapshot only:
decisions that mutate state are always re-read inside a transaction by the service layer.
"""

import logging
import threading
from collections import defaultdict
from typing import Callable

from src.core.models import SessionModel, WalletModel

logger = logging.getLogger(__name__)

SessionObserver = Callable[[SessionModel], None]
WalletObserver = Callable[[WalletModel], None]
Unsubscribe = Callable[[], None]


class ChangeFeed:
    """In-process publish/subscribe for the session record and per-player wallet records."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._session_observers: list[SessionObserver] = []
        self._wallet_observers: dict[str, list[WalletObserver]] = defaultdict(list)

    def subscribe_session(self, observer: SessionObserver) -> Unsubscribe:
        with self._lock:
            self._session_observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._session_observers:
                    self._session_observers.remove(observer)

        return _unsubscribe

    def subscribe_wallet(self, player_id: str, observer: WalletObserver) -> Unsubscribe:
        with self._lock:
            self._wallet_observers[player_id].append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                observers = self._wallet_observers.get(player_id, [])
                if observer in observers:
                    observers.remove(observer)
                if not observers:
                    self._wallet_observers.pop(player_id, None)

        return _unsubscribe

    def publish_session(self, model: SessionModel) -> None:
        with self._lock:
            observers = list(self._session_observers)
        for observer in observers:
            self._notify(observer, model)

    def publish_wallet(self, model: WalletModel) -> None:
        with self._lock:
            observers = list(self._wallet_observers.get(model.player_id, []))
        for observer in observers:
            self._notify(observer, model)

    def _notify(self, observer: Callable, model: SessionModel | WalletModel) -> None:
        """A broken observer must not break the commit it is being told about."""
        try:
            observer(model)
        except Exception:
            logger.exception("Observer %r failed to process update", observer)
