"""Autoplay statistics persistence for fairplay.

Keeps a session's stats on disk so a restarted driver picks up where it
left off instead of discarding its history.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from fairplay.models.stats import AutoplayStats

# Storage directory for stats files
STATS_DIR = os.getenv("STATS_DIR", "autoplay_stats")

logger = logging.getLogger(__name__)


class StatsStore:
    """Service for saving and loading AutoplayStats."""

    def __init__(self, stats_dir: str = STATS_DIR, session_id: str = "default"):
        self.stats_dir = Path(stats_dir)
        self.stats_dir.mkdir(parents=True, exist_ok=True)
        self.session_id = session_id

    @property
    def path(self) -> Path:
        return self.stats_dir / f"{self.session_id}.json"

    def save(self, stats: AutoplayStats):
        """Write stats atomically (temp file then rename)."""
        tmp = self.path.with_suffix(".json.tmp")
        with open(tmp, 'w') as f:
            f.write(stats.to_json())
        tmp.replace(self.path)

    def load(self) -> Optional[AutoplayStats]:
        if not self.path.exists():
            return None
        with open(self.path, 'r') as f:
            return AutoplayStats.from_json(f.read())

    def clear(self):
        if self.path.exists():
            self.path.unlink()
            logger.info("Cleared stored stats for session %s", self.session_id)
