from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from streampromo.models.promo import CodeKind


class DiscountManagerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    kind: CodeKind
    discount_gift: bool
    discount_id: str | None = None
    gift_id: str | None = None
    stream_id: str
    created_at: datetime
    updated_at: datetime


class DiscountCreate(BaseModel):
    amount: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    percent: int = Field(default=0, ge=0, le=100)
    percent_amount: bool = False
    stream_id: str = Field(min_length=1, max_length=36)


class DiscountRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    percent: int
    amount: Decimal
    percent_amount: bool
    discount_manager: DiscountManagerRead | None = None
    created_at: datetime
    updated_at: datetime


class DiscountIssued(BaseModel):
    discount_code: str


class GiftCreate(BaseModel):
    amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    capacity: int = Field(ge=1)
    stream_id: str = Field(min_length=1, max_length=36)


class GiftRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    amount: Decimal
    used: int
    capacity: int
    remaining: int
    discount_manager: DiscountManagerRead | None = None
    created_at: datetime
    updated_at: datetime


class GiftIssued(BaseModel):
    gift_code: str


class GiftRedeem(BaseModel):
    code: str = Field(min_length=1, max_length=32)

    @field_validator("code")
    @classmethod
    def strip_code(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("code must not be blank")
        return cleaned


class GiftRedeemed(BaseModel):
    gift_amount: Decimal
