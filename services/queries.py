"""Read path for recent readings and table-wide statistics."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from datastore.sql_store import (
    DEFAULT_RECENT_LIMIT,
    MAX_ROW_LIMIT,
    PersistenceError,
    ReadingStore,
)
from models.records import Reading, ReadingStats

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_limit(raw: Optional[str], maximum: Optional[int] = None) -> int:
    """Parse a ``limit`` query value.

    Leading digits are honoured ("25abc" -> 25). Anything unparseable or
    non-positive falls back to the default; ``maximum`` clamps when set.
    """
    limit = DEFAULT_RECENT_LIMIT
    if raw is not None:
        match = _LEADING_INT.match(raw)
        if match:
            parsed = int(match.group(1))
            if parsed > 0:
                limit = min(parsed, MAX_ROW_LIMIT)
    if maximum is not None and limit > maximum:
        limit = maximum
    return limit


class QueryService:
    def __init__(self, store: ReadingStore, max_limit: Optional[int] = None) -> None:
        self.store = store
        self.max_limit = max_limit

    async def recent(self, raw_limit: Optional[str] = None) -> List[Reading]:
        limit = parse_limit(raw_limit, self.max_limit)
        try:
            return await self.store.list_recent(limit)
        except PersistenceError as exc:
            logger.error("Error fetching data", extra={"limit": limit, "reason": str(exc)})
            raise

    async def stats(self) -> ReadingStats:
        try:
            return await self.store.stats()
        except PersistenceError as exc:
            logger.error("Error fetching stats", extra={"reason": str(exc)})
            raise
