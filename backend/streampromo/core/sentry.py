from __future__ import annotations

import logging
from typing import Any

from streampromo.core.config import settings
from streampromo.core.errors import CapacityExhaustedError, NotFoundError

# Client-facing outcomes, not faults.
_EXPECTED_ERRORS = (CapacityExhaustedError, NotFoundError)


def _drop_expected(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    exc_info = hint.get("exc_info")
    if exc_info and isinstance(exc_info[1], _EXPECTED_ERRORS):
        return None
    return event


def init_sentry() -> None:
    if not settings.sentry_dsn:
        return

    import sentry_sdk
    from sentry_sdk.integrations import Integration
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    integrations: list[Integration] = [FastApiIntegration(), SqlalchemyIntegration()]
    if settings.sentry_enable_logs:
        event_level = getattr(logging, str(settings.sentry_log_level or "error").strip().upper(), logging.ERROR)
        integrations.append(LoggingIntegration(level=logging.INFO, event_level=event_level))

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"{settings.app_name}@{settings.app_version}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        integrations=integrations,
        before_send=_drop_expected,
        send_default_pii=False,
    )
    sentry_sdk.set_tag("service", settings.app_name)
