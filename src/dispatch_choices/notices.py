"""Recoverable notices emitted while editing workflow documents.

The mutation engine never logs directly.  Every decision point reports a
:class:`Notice` to an injected sink; callers decide whether those notices end
up in a log, on the console, or in a list for later inspection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Protocol, Tuple

__all__ = [
    "LoggingNoticeSink",
    "Notice",
    "NoticeLevel",
    "NoticeLog",
    "NoticeSink",
]


class NoticeLevel(str, Enum):
    """Severity of a notice."""

    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class Notice:
    """Single observation recorded while processing a document."""

    level: NoticeLevel
    message: str


class NoticeSink(Protocol):
    """Fire-and-forget receiver for notices."""

    def notify(self, level: NoticeLevel, message: str) -> None:
        ...


@dataclass(slots=True)
class NoticeLog:
    """Sink that records notices in the order they were emitted."""

    notices: List[Notice] = field(default_factory=list)

    def notify(self, level: NoticeLevel, message: str) -> None:
        self.notices.append(Notice(level=NoticeLevel(level), message=message))

    def messages(self, level: NoticeLevel | None = None) -> List[str]:
        """Return recorded messages, optionally restricted to ``level``."""

        return [notice.message for notice in self.notices if level is None or notice.level == level]

    def snapshot(self) -> Tuple[Notice, ...]:
        return tuple(self.notices)


class LoggingNoticeSink:
    """Forward notices to a standard library logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("dispatch_choices.notices")

    def notify(self, level: NoticeLevel, message: str) -> None:
        if level == NoticeLevel.WARNING:
            self._logger.warning(message)
        else:
            self._logger.info(message)
