from typing import Any, Generic, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    status: int
    message: str
    data: DataT | None = None


class ErrorEnvelope(BaseModel):
    status: int
    message: str
    data: Any = None
