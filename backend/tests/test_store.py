import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import select

from streampromo.core.codes import new_id
from streampromo.core.errors import ConflictError, NotFoundError, SchemaError, StoreError, StoreTimeoutError
from streampromo.db.base import Base, utcnow
from streampromo.models import CodeKind, Discount, DiscountManager, Gift, Stream
from streampromo.services.store import EntityStore

from conftest import make_store


def _stream(name: str = "Launch") -> Stream:
    now = utcnow()
    return Stream(id=new_id(), name=name, status="live", start=now, finish=now)


@pytest.mark.anyio
async def test_create_schema_is_idempotent(store: EntityStore) -> None:
    await store.create_schema()
    await store.create_schema()
    assert await store.find_all(Stream) == []


def test_create_schema_reports_failing_table(tmp_path) -> None:
    missing_dir = tmp_path / "missing" / "promo.db"
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    engine = create_async_engine(f"sqlite+aiosqlite:///{missing_dir}")
    broken = EntityStore(async_sessionmaker(engine, expire_on_commit=False))
    with pytest.raises(SchemaError) as exc:
        asyncio.run(broken.create_schema())
    assert exc.value.table in Base.metadata.tables
    assert exc.value.table in str(exc.value)
    asyncio.run(engine.dispose())


@pytest.mark.anyio
async def test_insert_and_find_one(store: EntityStore) -> None:
    stream = await store.insert(_stream("Morning show"))
    found = await store.find_one(Stream, id=stream.id)
    assert found.name == "Morning show"


@pytest.mark.anyio
async def test_insert_duplicate_id_is_conflict(store: EntityStore) -> None:
    stream = await store.insert(_stream())
    duplicate = _stream()
    duplicate.id = stream.id
    with pytest.raises(ConflictError):
        await store.insert(duplicate)


@pytest.mark.anyio
async def test_duplicate_code_is_conflict_and_rolls_back(store: EntityStore) -> None:
    stream = await store.insert(_stream())
    first = Gift(id=new_id(), amount=Decimal("5.00"), used=0, capacity=1)
    second = Gift(id=new_id(), amount=Decimal("5.00"), used=0, capacity=1)
    async with store.transaction() as session:
        await store.insert(first, session=session)
        await store.insert(DiscountManager.for_gift(first, stream_id=stream.id, code="SAME-CODE"), session=session)

    with pytest.raises(ConflictError):
        async with store.transaction() as session:
            await store.insert(second, session=session)
            await store.insert(DiscountManager.for_gift(second, stream_id=stream.id, code="SAME-CODE"), session=session)

    gifts = await store.find_all(Gift)
    assert [gift.id for gift in gifts] == [first.id]


@pytest.mark.anyio
async def test_find_one_missing_raises_not_found(store: EntityStore) -> None:
    with pytest.raises(NotFoundError) as exc:
        await store.find_one(Stream, id="nope")
    assert exc.value.kind == "Stream"
    assert exc.value.criteria == {"id": "nope"}


@pytest.mark.anyio
async def test_find_one_by_code_joins_manager(store: EntityStore) -> None:
    stream = await store.insert(_stream())
    gift = Gift(id=new_id(), amount=Decimal("12.50"), used=0, capacity=3)
    async with store.transaction() as session:
        await store.insert(gift, session=session)
        await store.insert(DiscountManager.for_gift(gift, stream_id=stream.id, code="abcD1234"), session=session)

    found = await store.find_one(Gift, code="abcD1234", with_relation=True)
    assert found.id == gift.id
    assert found.discount_manager.code == "abcD1234"
    assert found.discount_manager.discount_gift is True

    with pytest.raises(NotFoundError):
        await store.find_one(Discount, code="abcD1234")


@pytest.mark.anyio
async def test_find_all_with_relation_loads_links(store: EntityStore) -> None:
    stream = await store.insert(_stream())
    discount = Discount(id=new_id(), percent=15, amount=Decimal("0"), percent_amount=False)
    async with store.transaction() as session:
        await store.insert(discount, session=session)
        await store.insert(DiscountManager.for_discount(discount, stream_id=stream.id, code="disc0001"), session=session)

    discounts = await store.find_all(Discount, with_relation=True)
    assert discounts[0].discount_manager.kind == CodeKind.discount

    streams = await store.find_all(Stream, with_relation=True)
    assert [manager.code for manager in streams[0].discount_managers] == ["disc0001"]

    managers = await store.find_all(DiscountManager, with_relation=True)
    assert managers[0].stream.id == stream.id


@pytest.mark.anyio
async def test_find_all_with_dangling_link_is_store_error(store: EntityStore) -> None:
    await store.insert(Gift(id=new_id(), amount=Decimal("1.00"), used=0, capacity=1))
    assert len(await store.find_all(Gift)) == 1
    with pytest.raises(StoreError):
        await store.find_all(Gift, with_relation=True)


@pytest.mark.anyio
async def test_manager_must_reference_exactly_one_target(store: EntityStore) -> None:
    stream = await store.insert(_stream())
    discount = await store.insert(Discount(id=new_id(), percent=10, amount=Decimal("0"), percent_amount=False))
    gift = await store.insert(Gift(id=new_id(), amount=Decimal("1.00"), used=0, capacity=1))

    both = DiscountManager(
        id=new_id(), code="both0001", kind=CodeKind.gift, discount_id=discount.id, gift_id=gift.id, stream_id=stream.id
    )
    with pytest.raises(StoreError):
        await store.insert(both)

    mismatched = DiscountManager(id=new_id(), code="mism0001", kind=CodeKind.gift, discount_id=discount.id, stream_id=stream.id)
    with pytest.raises(StoreError):
        await store.insert(mismatched)

    assert await store.find_all(DiscountManager) == []


@pytest.mark.anyio
async def test_update_changes_fields_and_missing_row(store: EntityStore) -> None:
    stream = await store.insert(_stream())
    await store.update(Stream, stream.id, {"status": "finished"})
    assert (await store.find_one(Stream, id=stream.id)).status == "finished"

    with pytest.raises(NotFoundError):
        await store.update(Stream, "missing", {"status": "finished"})


@pytest.mark.anyio
async def test_increment_gift_usage_stops_at_capacity(store: EntityStore) -> None:
    gift = await store.insert(Gift(id=new_id(), amount=Decimal("3.00"), used=0, capacity=2))
    assert await store.increment_gift_usage(gift.id) is True
    assert await store.increment_gift_usage(gift.id) is True
    assert await store.increment_gift_usage(gift.id) is False
    assert (await store.find_one(Gift, id=gift.id)).used == 2


@pytest.mark.anyio
async def test_store_call_deadline_raises_timeout(store: EntityStore) -> None:
    stream = _stream("never committed")
    with pytest.raises(StoreTimeoutError):
        async with store.transaction() as session:
            await store.insert(stream, session=session)
            await store._call(asyncio.sleep(1), timeout=0.01)

    with pytest.raises(NotFoundError):
        await store.find_one(Stream, id=stream.id)


def test_store_error_hierarchy() -> None:
    assert issubclass(StoreTimeoutError, StoreError)
    assert not issubclass(ConflictError, StoreError)


def test_separate_stores_do_not_share_rows() -> None:
    first, first_engine = make_store()
    second, second_engine = make_store()

    async def scenario() -> tuple[int, int]:
        await first.insert(_stream())
        rows = await first.find_all(Stream)
        other = await second.find_all(Stream)
        return len(rows), len(other)

    assert asyncio.run(scenario()) == (1, 0)
    asyncio.run(first_engine.dispose())
    asyncio.run(second_engine.dispose())


@pytest.mark.anyio
async def test_ping(store: EntityStore) -> None:
    await store.ping()
    result = None
    async with store.transaction() as session:
        result = (await session.execute(select(Stream))).scalars().all()
    assert result == []
