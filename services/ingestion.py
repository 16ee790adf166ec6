"""Write path: persist a reading, then announce it to live subscribers."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.schemas import ReadingIn, ReadingOut
from datastore.sql_store import PersistenceError, ReadingStore
from models.records import Reading
from services.broadcaster import Broadcaster

logger = logging.getLogger(__name__)

NEW_DATA_EVENT = "newData"


class IngestionService:
    """Coordinates the store insert and the broadcast that follows it."""

    def __init__(self, store: ReadingStore, broadcaster: Broadcaster) -> None:
        self.store = store
        self.broadcaster = broadcaster

    async def ingest(self, payload: ReadingIn) -> Reading:
        """Persist ``payload`` and publish it; nothing is published on failure."""
        try:
            reading_id = await self.store.insert(
                payload.value,
                device_timestamp=payload.timestamp,
                client_timestamp=payload.pc_timestamp,
            )
        except PersistenceError as exc:
            logger.error(
                "Error saving data",
                extra={"value": payload.value, "reason": str(exc)},
            )
            raise

        # Naive UTC like CURRENT_TIMESTAMP; taken here rather than re-read from the row.
        reading = Reading(
            id=reading_id,
            value=payload.value,
            device_timestamp=payload.timestamp,
            client_timestamp=payload.pc_timestamp,
            server_timestamp=datetime.now(timezone.utc).replace(tzinfo=None),
        )
        self.broadcaster.publish(
            NEW_DATA_EVENT, ReadingOut.from_reading(reading).model_dump(mode="json")
        )
        logger.info("Reading stored", extra={"reading_id": reading_id, "value": payload.value})
        return reading
