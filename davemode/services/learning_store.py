"""
DaveMode Learning Store

In-memory cache of learned patterns backed by the database. Loaded once at
startup and refreshed per kind after every write, so readers never see a
pattern older than the last update made through this store.
"""

import threading
from typing import Dict, Optional

from davemode.db.database import Database, PatternMutator
from davemode.logging import get_logger, log_extra
from davemode.models.domain import LearnedPattern, LearningKind

logger = get_logger(__name__)

KINDS = tuple(kind.value for kind in LearningKind)


class LearningStore:
    """
    Durable mapping of (pattern kind, project type) to learned statistics.

    Writes go straight to the database as a per-row transactional
    read-modify-write; the cache only serves reads.
    """

    def __init__(self, db: Database) -> None:
        self.db = db
        self._cache: Dict[str, Dict[str, LearnedPattern]] = {kind: {} for kind in KINDS}
        self._lock = threading.Lock()

    def load(self) -> "LearningStore":
        """Populate the cache from storage."""
        for kind in KINDS:
            self.refresh(kind)
        logger.info(
            "learning_patterns_loaded",
            extra=log_extra(counts={kind: len(self._cache[kind]) for kind in KINDS}),
        )
        return self

    def refresh(self, kind: str) -> None:
        patterns = {p.project_type: p for p in self.db.list_patterns(kind)}
        with self._lock:
            self._cache[kind] = patterns

    def get(self, kind: str, project_type: str) -> Optional[LearnedPattern]:
        with self._lock:
            return self._cache.get(kind, {}).get(project_type)

    def all(self) -> Dict[str, Dict[str, LearnedPattern]]:
        with self._lock:
            return {kind: dict(patterns) for kind, patterns in self._cache.items()}

    def update(self, kind: str, project_type: str, mutate: PatternMutator) -> LearnedPattern:
        """Apply ``mutate`` to the stored pattern and refresh the kind's cache."""
        pattern = self.db.update_pattern(kind, project_type, mutate)
        self.refresh(kind)
        return pattern
