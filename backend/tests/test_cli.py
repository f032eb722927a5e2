import asyncio
import json

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from streampromo import cli
from streampromo.services.store import EntityStore


@pytest.fixture
def file_store(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}", poolclass=NullPool)
    store = EntityStore(async_sessionmaker(engine, expire_on_commit=False), timeout=5.0)
    yield store
    asyncio.run(engine.dispose())


def _run(capsys, argv: list[str], store: EntityStore) -> tuple[int, dict | None, str]:
    code = cli.run(argv, store=store)
    captured = capsys.readouterr()
    payload = json.loads(captured.out) if captured.out.strip() else None
    return code, payload, captured.err


def test_cli_issue_and_redeem_flow(capsys, file_store: EntityStore) -> None:
    assert _run(capsys, ["create-schema"], file_store)[:2] == (0, {"schema": "ready"})

    code, stream, _ = _run(capsys, ["create-stream", "--name", "Launch", "--status", "live"], file_store)
    assert code == 0

    code, gift, _ = _run(
        capsys,
        ["issue-gift", "--stream-id", stream["stream_id"], "--amount", "12.5", "--capacity", "1"],
        file_store,
    )
    assert code == 0
    assert len(gift["gift_code"]) == 8

    code, redeemed, _ = _run(capsys, ["redeem", "--code", gift["gift_code"]], file_store)
    assert (code, redeemed) == (0, {"gift_amount": "12.50"})

    code, _, err = _run(capsys, ["redeem", "--code", gift["gift_code"]], file_store)
    assert code == 1
    assert "No more Capacity" in err

    code, status, _ = _run(capsys, ["gift-status", "--code", gift["gift_code"]], file_store)
    assert code == 0
    assert (status["used"], status["capacity"]) == (1, 1)


def test_cli_issue_discount_for_unknown_stream(capsys, file_store: EntityStore) -> None:
    _run(capsys, ["create-schema"], file_store)
    code, payload, err = _run(capsys, ["issue-discount", "--stream-id", "missing", "--percent", "10"], file_store)
    assert code == 1
    assert payload is None
    assert "Stream not found" in err


def test_cli_without_command_prints_help(capsys) -> None:
    assert cli.run([]) == 2
    assert "usage" in capsys.readouterr().out.lower()


def test_cli_rejects_negative_amount(capsys, file_store: EntityStore) -> None:
    with pytest.raises(SystemExit):
        cli.run(["issue-gift", "--stream-id", "x", "--amount", "-1", "--capacity", "1"], store=file_store)
