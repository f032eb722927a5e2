from __future__ import annotations

import logging
from datetime import timedelta

from streampromo.core.codes import CodeGenerator
from streampromo.db.base import utcnow
from streampromo.models import Stream
from streampromo.services.store import EntityStore

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MINUTES = 45


class StreamService:
    def __init__(self, store: EntityStore, codes: CodeGenerator, *, window_minutes: int = DEFAULT_WINDOW_MINUTES) -> None:
        self._store = store
        self._codes = codes
        self._window = timedelta(minutes=window_minutes)

    async def create_stream(self, *, name: str, status: str) -> Stream:
        # The window is always derived from the creation instant.
        now = utcnow()
        stream = Stream(
            id=self._codes.new_id(),
            name=name,
            status=status,
            start=now - self._window,
            finish=now + self._window,
            created_at=now,
            updated_at=now,
            discount_managers=[],
        )
        await self._store.insert(stream)
        logger.info("stream created", extra={"stream_id": stream.id})
        return stream

    async def update_stream_status(self, stream_id: str, status: str) -> Stream:
        await self._store.update(Stream, stream_id, {"status": status})
        return await self._store.find_one(Stream, id=stream_id, with_relation=True)

    async def list_streams(self) -> list[Stream]:
        return await self._store.find_all(Stream, with_relation=True)
