import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from streampromo.core.codes import new_id
from streampromo.db.base import Base, utcnow
from streampromo.models.stream import Stream


class CodeKind(str, enum.Enum):
    discount = "discount"
    gift = "gift"


class Discount(Base):
    __tablename__ = "discounts"
    __table_args__ = (
        CheckConstraint("percent >= 0 AND percent <= 100", name="ck_discounts_percent_range"),
        CheckConstraint("amount >= 0", name="ck_discounts_amount_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    # False: `percent` applies, True: `amount` applies.
    percent_amount: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    discount_manager: Mapped["DiscountManager | None"] = relationship(
        "DiscountManager", back_populates="discount", uselist=False
    )


class Gift(Base):
    __tablename__ = "gifts"
    __table_args__ = (
        CheckConstraint("used >= 0 AND used <= capacity", name="ck_gifts_used_within_capacity"),
        CheckConstraint("amount >= 0", name="ck_gifts_amount_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    used: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    discount_manager: Mapped["DiscountManager | None"] = relationship(
        "DiscountManager", back_populates="gift", uselist=False
    )

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.used, 0)


class DiscountManager(Base):
    """Public code for exactly one Discount or Gift, scoped to a Stream.

    ``kind`` tags which target is set; the check constraint rejects rows where the
    tag and the foreign keys disagree. Build rows with :meth:`for_discount` and
    :meth:`for_gift`.
    """

    __tablename__ = "discount_managers"
    __table_args__ = (
        CheckConstraint(
            "(kind = 'discount' AND discount_id IS NOT NULL AND gift_id IS NULL)"
            " OR (kind = 'gift' AND gift_id IS NOT NULL AND discount_id IS NULL)",
            name="ck_discount_managers_single_target",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    kind: Mapped[CodeKind] = mapped_column(Enum(CodeKind, native_enum=False, length=16), nullable=False)
    discount_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("discounts.id"), unique=True, nullable=True
    )
    gift_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("gifts.id"), unique=True, nullable=True)
    stream_id: Mapped[str] = mapped_column(String(36), ForeignKey("streams.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    discount: Mapped[Discount | None] = relationship("Discount", back_populates="discount_manager")
    gift: Mapped[Gift | None] = relationship("Gift", back_populates="discount_manager")
    stream: Mapped[Stream] = relationship("Stream", back_populates="discount_managers")

    @classmethod
    def for_discount(cls, discount: Discount, *, stream_id: str, code: str, id: str | None = None) -> "DiscountManager":
        return cls(id=id or new_id(), code=code, kind=CodeKind.discount, discount_id=discount.id, stream_id=stream_id)

    @classmethod
    def for_gift(cls, gift: Gift, *, stream_id: str, code: str, id: str | None = None) -> "DiscountManager":
        return cls(id=id or new_id(), code=code, kind=CodeKind.gift, gift_id=gift.id, stream_id=stream_id)

    @property
    def discount_gift(self) -> bool:
        return self.kind == CodeKind.gift

    @property
    def target_id(self) -> str | None:
        return self.gift_id if self.kind == CodeKind.gift else self.discount_id
