"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class Reading:
    """A single persisted sensor sample."""

    id: int
    value: Any
    device_timestamp: Any
    client_timestamp: Any
    server_timestamp: datetime


@dataclass(frozen=True, slots=True)
class ReadingStats:
    """Whole-table snapshot; only values 0 and 1 have their own bucket."""

    total_records: int = 0
    count_ones: int = 0
    count_zeros: int = 0
    last_update: Optional[datetime] = None
