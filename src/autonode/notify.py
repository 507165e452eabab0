"""User-facing notification channel."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from rich.console import Console

LOGGER = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, message: str, duration: Optional[float] = None) -> None: ...


class NullNotifier:
    def notify(self, message: str, duration: Optional[float] = None) -> None:
        return None


class LoggingNotifier:
    def notify(self, message: str, duration: Optional[float] = None) -> None:
        LOGGER.info(message)


class ConsoleNotifier:
    """Prints notices on a rich console; output errors are only logged."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def notify(self, message: str, duration: Optional[float] = None) -> None:
        try:
            self.console.print(f"[cyan]auto-node[/cyan] {message}", highlight=False)
        except Exception as exc:  # pragma: no cover - console backend failure
            LOGGER.debug("Could not display notice %r: %s", message, exc)
