from __future__ import annotations

from streampromo.core.config import settings


def _is_production() -> bool:
    env = (settings.environment or "").strip().lower()
    return env in {"prod", "production"}


def _looks_like_localhost(url: str | None) -> bool:
    value = (url or "").strip().lower()
    if not value:
        return False
    return "localhost" in value or "127.0.0.1" in value


def _append_if(problems: list[str], *, condition: bool, message: str) -> None:
    if condition:
        problems.append(message)


def validate_production_settings() -> None:
    """
    Fail fast on development defaults when running in production.

    Promo codes are shared publicly during a stream, so a misconfigured deployment
    (local database, open CORS, no error reporting) is refused outright.
    """
    if not _is_production():
        return

    problems: list[str] = []
    _append_if(
        problems,
        condition=_looks_like_localhost(settings.database_url) or settings.database_url.startswith("sqlite"),
        message="DATABASE_URL must point to the production database (not localhost or sqlite).",
    )
    _append_if(
        problems,
        condition="*" in settings.cors_origins,
        message="CORS_ORIGINS must not contain '*' in production.",
    )
    _append_if(
        problems,
        condition=not (settings.sentry_dsn or "").strip(),
        message="SENTRY_DSN must be configured in production.",
    )
    _append_if(
        problems,
        condition=settings.store_timeout_seconds <= 0,
        message="STORE_TIMEOUT_SECONDS must be positive.",
    )

    if problems:
        raise RuntimeError("Production configuration checks failed:\n- " + "\n- ".join(problems))
