"""
Structured run log.

Every entry is kept on the RunLog (so callers can inspect what went
wrong for which work item) and forwarded to the standard logger.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import List, Optional

from hummnet.common.records import ItemKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogEntry:
    """One message about the run, optionally tied to a work item."""

    level: int
    message: str
    key: Optional[ItemKey] = None

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)

    def __str__(self) -> str:
        where = "/".join(self.key) if self.key else "run"
        return f"{self.level_name} [{where}] {self.message}"


class RunLog:
    """Ordered collection of LogEntry objects for one batch run."""

    def __init__(self, run_id: str = ""):
        self.run_id = run_id
        self.entries: List[LogEntry] = []

    def record(
        self, level: int, message: str, key: Optional[ItemKey] = None
    ) -> LogEntry:
        entry = LogEntry(level=level, message=message, key=key)
        self.entries.append(entry)
        logger.log(level, "%s %s", self.run_id, entry)
        return entry

    def info(self, message: str, key: Optional[ItemKey] = None) -> LogEntry:
        return self.record(logging.INFO, message, key)

    def warning(self, message: str, key: Optional[ItemKey] = None) -> LogEntry:
        return self.record(logging.WARNING, message, key)

    def error(self, message: str, key: Optional[ItemKey] = None) -> LogEntry:
        return self.record(logging.ERROR, message, key)

    def for_item(self, key: ItemKey) -> List[LogEntry]:
        return [entry for entry in self.entries if entry.key == key]

    def at_level(self, level: int) -> List[LogEntry]:
        return [entry for entry in self.entries if entry.level == level]

    @property
    def warnings(self) -> List[LogEntry]:
        return self.at_level(logging.WARNING)

    @property
    def errors(self) -> List[LogEntry]:
        return self.at_level(logging.ERROR)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return (
            f"RunLog({self.run_id!r}, entries={len(self)}, "
            f"warnings={len(self.warnings)}, errors={len(self.errors)})"
        )
