from __future__ import annotations

from typing import Any


class PromoError(Exception):
    """Base class for failures raised by the store and the services."""


class NotFoundError(PromoError):
    def __init__(self, kind: str, criteria: dict[str, Any] | None = None) -> None:
        self.kind = kind
        self.criteria = dict(criteria or {})
        detail = ", ".join(f"{key}={value!r}" for key, value in self.criteria.items())
        super().__init__(f"{kind} not found" + (f" ({detail})" if detail else ""))


class ConflictError(PromoError):
    """A unique id or code is already taken."""


class CapacityExhaustedError(PromoError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__("No more Capacity to use. All used.")


class StoreError(PromoError):
    """Backend I/O or transaction failure."""


class StoreTimeoutError(StoreError):
    pass


class SchemaError(PromoError):
    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Error while creating {table} table")
