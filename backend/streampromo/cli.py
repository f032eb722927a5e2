import argparse
import asyncio
import json
import sys
from decimal import Decimal, InvalidOperation

import uvicorn

from streampromo.core.codes import CodeGenerator
from streampromo.core.config import settings
from streampromo.core.errors import PromoError
from streampromo.core.logging_config import configure_logging
from streampromo.db.session import SessionLocal
from streampromo.services.issuance import IssuanceService
from streampromo.services.redemption import RedemptionService
from streampromo.services.store import EntityStore
from streampromo.services.streams import StreamService


def _money(raw: str) -> Decimal:
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"invalid amount: {raw!r}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError("amount must not be negative")
    return value.quantize(Decimal("0.01"))


def _build_store() -> EntityStore:
    return EntityStore(SessionLocal, timeout=settings.store_timeout_seconds)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="StreamPromo management commands")
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")

    subparsers.add_parser("create-schema", help="Create missing tables")

    stream = subparsers.add_parser("create-stream", help="Create a stream with the default time window")
    stream.add_argument("--name", required=True)
    stream.add_argument("--status", default="")

    discount = subparsers.add_parser("issue-discount", help="Issue a discount code for a stream")
    discount.add_argument("--stream-id", required=True)
    discount.add_argument("--percent", type=int, default=0)
    discount.add_argument("--amount", type=_money, default=Decimal("0.00"))
    discount.add_argument("--use-amount", action="store_true", help="Apply the amount instead of the percent")

    gift = subparsers.add_parser("issue-gift", help="Issue a gift code for a stream")
    gift.add_argument("--stream-id", required=True)
    gift.add_argument("--amount", type=_money, required=True)
    gift.add_argument("--capacity", type=int, required=True)

    redeem = subparsers.add_parser("redeem", help="Redeem a gift code once")
    redeem.add_argument("--code", required=True)

    gift_status = subparsers.add_parser("gift-status", help="Show usage of a gift code")
    gift_status.add_argument("--code", required=True)
    return parser


async def _run(args: argparse.Namespace, store: EntityStore, codes: CodeGenerator) -> dict | None:
    if args.command == "create-schema":
        await store.create_schema()
        return {"schema": "ready"}

    if args.command == "create-stream":
        streams = StreamService(store, codes, window_minutes=settings.stream_window_minutes)
        stream = await streams.create_stream(name=args.name, status=args.status)
        return {"stream_id": stream.id, "start": stream.start.isoformat(), "finish": stream.finish.isoformat()}

    issuance = IssuanceService(
        store, codes, code_length=settings.code_length, max_attempts=settings.code_generation_attempts
    )
    if args.command == "issue-discount":
        code = await issuance.issue_discount(
            percent=args.percent, amount=args.amount, percent_amount=args.use_amount, stream_id=args.stream_id
        )
        return {"discount_code": code}

    if args.command == "issue-gift":
        code = await issuance.issue_gift(amount=args.amount, capacity=args.capacity, stream_id=args.stream_id)
        return {"gift_code": code}

    redemption = RedemptionService(store)
    if args.command == "redeem":
        amount = await redemption.redeem(args.code)
        return {"gift_amount": str(amount)}

    if args.command == "gift-status":
        gift = await redemption.status(args.code)
        return {"gift_id": gift.id, "used": gift.used, "capacity": gift.capacity, "amount": str(gift.amount)}

    return None


def run(argv: list[str] | None = None, *, store: EntityStore | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 2

    if args.command == "serve":
        uvicorn.run("streampromo.main:app", host=args.host, port=args.port, reload=args.reload, log_config=None)
        return 0

    try:
        result = asyncio.run(_run(args, store or _build_store(), CodeGenerator()))
    except PromoError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(result))
    return 0


def main() -> int:
    configure_logging(settings.log_json, settings.log_level)
    return run()


if __name__ == "__main__":
    sys.exit(main())
