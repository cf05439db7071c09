"""
Process-wide context: settings, database, change feed and scheduler.

Created once at startup (`AppContext.create`) and closed at shutdown (`close`).
Services are cheap and built per unit of work around their own database session.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from src.core.config import Settings
from src.db.database import Database
from src.db.sql_repository import SQLGameRepository
from src.services.chess_service import ChessService
from src.services.wallet_service import WalletService
from src.sync.change_feed import ChangeFeed
from src.sync.scheduler import ResetScheduler, TimerScheduler

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    database: Database
    feed: ChangeFeed = field(default_factory=ChangeFeed)
    scheduler: ResetScheduler = field(default_factory=TimerScheduler)

    @classmethod
    def create(
        cls, settings: Settings, scheduler: Optional[ResetScheduler] = None
    ) -> "AppContext":
        database = Database(settings.database_url, echo=settings.db_echo)
        database.create_tables()
        context = cls(settings=settings, database=database)
        if scheduler is not None:
            context.scheduler = scheduler
        logger.info("Context ready (database: %s)", settings.database_url)
        return context

    def chess_service(self, db: Session) -> ChessService:
        return ChessService(
            SQLGameRepository(db),
            self.feed,
            self.scheduler,
            self.settings,
            reset_action=self.scheduled_reset,
        )

    def wallet_service(self, db: Session) -> WalletService:
        return WalletService(SQLGameRepository(db), self.feed, self.settings)

    def scheduled_reset(self) -> None:
        """Runs on the timer thread, so it needs a database session of its own."""
        db = self.database.session()
        try:
            self.chess_service(db).reset_game()
        finally:
            db.close()

    def close(self) -> None:
        cancel_all = getattr(self.scheduler, "cancel_all", None)
        if cancel_all is not None:
            cancel_all()
        self.database.dispose()
        logger.info("Context closed")
