"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import Reading, ReadingStats


class ReadingIn(BaseModel):
    """Inbound write body.

    Fields are deliberately permissive: the table constraints are the only
    validation applied, so a missing ``value`` is rejected by the store.
    """

    model_config = ConfigDict(extra="ignore")

    value: Any = None
    timestamp: Any = Field(default=None, description="Device-side epoch milliseconds.")
    pc_timestamp: Any = Field(default=None, description="Relay-side timestamp text.")


class IngestResponse(BaseModel):
    success: bool = True
    id: int


class IngestErrorResponse(BaseModel):
    success: bool = False
    error: str


class ErrorResponse(BaseModel):
    error: str


class ReadingOut(BaseModel):
    """A reading as exposed over HTTP and the live channel."""

    id: int
    value: Any
    arduino_timestamp: Any = None
    pc_timestamp: Any = None
    server_timestamp: Optional[datetime] = None

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingOut":
        return cls(
            id=reading.id,
            value=reading.value,
            arduino_timestamp=reading.device_timestamp,
            pc_timestamp=reading.client_timestamp,
            server_timestamp=reading.server_timestamp,
        )


class StatsOut(BaseModel):
    total_records: int = Field(..., ge=0)
    count_ones: int = Field(..., ge=0)
    count_zeros: int = Field(..., ge=0)
    last_update: Optional[datetime] = None

    @classmethod
    def from_stats(cls, stats: ReadingStats) -> "StatsOut":
        return cls(
            total_records=stats.total_records,
            count_ones=stats.count_ones,
            count_zeros=stats.count_zeros,
            last_update=stats.last_update,
        )
