from streampromo.db.base import Base  # noqa: F401
from streampromo.models.promo import CodeKind, Discount, DiscountManager, Gift  # noqa: F401
from streampromo.models.stream import Stream  # noqa: F401

__all__ = [
    "Base",
    "CodeKind",
    "Discount",
    "DiscountManager",
    "Gift",
    "Stream",
]
