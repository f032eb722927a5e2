from __future__ import annotations

import logging
from decimal import Decimal

from streampromo.core import metrics
from streampromo.core.errors import CapacityExhaustedError
from streampromo.models import Gift
from streampromo.services.store import EntityStore

logger = logging.getLogger(__name__)


class RedemptionService:
    """Consumes gift capacity one unit per successful :meth:`redeem`."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    async def redeem(self, code: str) -> Decimal:
        """Redeem ``code`` once and return the gift amount to apply.

        The increment is a single guarded UPDATE (``used < capacity``). When it
        changes no row another redeemer got there first, so the gift is read
        again and capacity re-checked instead of reporting success or failure
        from stale data.
        """
        while True:
            gift = await self._store.find_one(Gift, code=code, with_relation=True)
            if gift.used >= gift.capacity:
                metrics.record_redemption_exhausted()
                logger.info(
                    "gift capacity exhausted",
                    extra={"gift_id": gift.id, "used": gift.used, "capacity": gift.capacity},
                )
                raise CapacityExhaustedError(code)

            if await self._store.increment_gift_usage(gift.id):
                metrics.record_redemption()
                logger.info("gift redeemed", extra={"gift_id": gift.id, "used": gift.used + 1})
                return gift.amount

            metrics.record_redemption_race_lost()
            logger.debug("gift redemption raced, re-checking", extra={"gift_id": gift.id})

    async def status(self, code: str) -> Gift:
        return await self._store.find_one(Gift, code=code, with_relation=True)

    async def list_gifts(self) -> list[Gift]:
        return await self._store.find_all(Gift, with_relation=True)
