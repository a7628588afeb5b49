"""Append-only journal of semantic events.

Product-level log of what the analyze and narrative stages reported, one JSON
object per line. Separate from technical/debug logs.
"""

import json
import logging
import time
from pathlib import Path
from typing import Iterable, List

from lumenta.events.schema import VideoEvent

logger = logging.getLogger(__name__)


class EventJournal:
    """Writes VideoEvents to a JSONL file, skipping ids already written."""

    def __init__(self, log_dir: str = "output/logs", log_file: str = "events.jsonl"):
        """
        Args:
            log_dir: Directory for log files
            log_file: Log file name (JSONL format)
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.log_dir / log_file
        self._written_ids = set()
        logger.info(f"EventJournal initialized: {self.log_file}")

    def record(self, feed_id: str, events: Iterable[VideoEvent]) -> int:
        """Append events not yet journaled. Returns number written."""
        lines = []
        for event in events:
            if event.id in self._written_ids:
                continue
            self._written_ids.add(event.id)
            entry = {"logged_at": time.time(), "feed_id": feed_id, **event.to_dict()}
            lines.append(json.dumps(entry, ensure_ascii=False, default=str))

        if not lines:
            return 0

        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write("\n".join(lines) + "\n")
        except OSError as e:
            logger.error(f"Failed to write event journal: {e}")
            return 0
        return len(lines)

    def read_recent(self, limit: int = 100) -> List[dict]:
        """Last `limit` journal entries, oldest first."""
        if not self.log_file.exists():
            return []
        with open(self.log_file, "r", encoding="utf-8") as f:
            lines = f.readlines()[-limit:]
        return [json.loads(line) for line in lines if line.strip()]
