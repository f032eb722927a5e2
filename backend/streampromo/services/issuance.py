from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal

from streampromo.core import metrics
from streampromo.core.codes import DEFAULT_CODE_LENGTH, CodeGenerator
from streampromo.core.errors import ConflictError
from streampromo.models import CodeKind, Discount, DiscountManager, Gift, Stream
from streampromo.services.store import EntityStore

logger = logging.getLogger(__name__)

DEFAULT_CODE_ATTEMPTS = 5


class IssuanceService:
    """Creates discounts and gifts together with the code that links them to a stream."""

    def __init__(
        self,
        store: EntityStore,
        codes: CodeGenerator,
        *,
        code_length: int = DEFAULT_CODE_LENGTH,
        max_attempts: int = DEFAULT_CODE_ATTEMPTS,
    ) -> None:
        self._store = store
        self._codes = codes
        self._code_length = code_length
        self._max_attempts = max(1, max_attempts)

    async def issue_discount(self, *, percent: int, amount: Decimal, percent_amount: bool, stream_id: str) -> str:
        def build() -> tuple[Discount, Callable[[str], DiscountManager]]:
            discount = Discount(id=self._codes.new_id(), percent=percent, amount=amount, percent_amount=percent_amount)
            return discount, lambda code: DiscountManager.for_discount(
                discount, stream_id=stream_id, code=code, id=self._codes.new_id()
            )

        return await self._issue(CodeKind.discount, stream_id, build)

    async def issue_gift(self, *, amount: Decimal, capacity: int, stream_id: str) -> str:
        def build() -> tuple[Gift, Callable[[str], DiscountManager]]:
            gift = Gift(id=self._codes.new_id(), amount=amount, used=0, capacity=capacity)
            return gift, lambda code: DiscountManager.for_gift(
                gift, stream_id=stream_id, code=code, id=self._codes.new_id()
            )

        return await self._issue(CodeKind.gift, stream_id, build)

    async def _issue(self, kind: CodeKind, stream_id: str, build) -> str:
        # Stream check, target row and manager row commit or roll back together.
        # A code collision aborts the whole unit, which is retried with a new code.
        for attempt in range(1, self._max_attempts + 1):
            code = self._codes.new_code(self._code_length)
            try:
                async with self._store.transaction() as session:
                    await self._store.find_one(Stream, id=stream_id, session=session)
                    target, link = build()
                    await self._store.insert(target, session=session)
                    await self._store.insert(link(code), session=session)
            except ConflictError:
                metrics.record_code_collision()
                logger.warning(
                    "code collision while issuing %s, retrying",
                    kind.value,
                    extra={"stream_id": stream_id, "attempt": attempt},
                )
                continue
            metrics.record_code_issued(kind.value)
            logger.info("%s issued", kind.value, extra={"stream_id": stream_id, "target_id": target.id})
            return code
        raise ConflictError(f"could not allocate a unique {kind.value} code after {self._max_attempts} attempts")

    async def list_discounts(self) -> list[Discount]:
        return await self._store.find_all(Discount, with_relation=True)
