"""Logging setup. Modules only call logging.getLogger(__name__); the application entrypoint calls configure_logging once."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level)
    # avoid stacking handlers when the app factory runs more than once (tests)
    if any(getattr(h, "_chess_handler", False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._chess_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
