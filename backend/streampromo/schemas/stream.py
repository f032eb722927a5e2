from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from streampromo.schemas.promo import DiscountManagerRead


class StreamCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255, validation_alias=AliasChoices("name", "stream_name"))
    status: str = Field(default="", max_length=64)


class StreamStatusUpdate(BaseModel):
    status: str = Field(max_length=64)


class StreamRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    start: datetime
    finish: datetime
    status: str
    discount_managers: list[DiscountManagerRead] = []
    created_at: datetime
    updated_at: datetime
