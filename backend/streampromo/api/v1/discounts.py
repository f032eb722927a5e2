from fastapi import APIRouter, Depends, status

from streampromo.core.dependencies import get_issuance_service
from streampromo.schemas.envelope import Envelope
from streampromo.schemas.promo import DiscountCreate, DiscountIssued, DiscountRead
from streampromo.services.issuance import IssuanceService

router = APIRouter(prefix="/discounts", tags=["discounts"])


@router.get("", response_model=Envelope[list[DiscountRead]])
async def list_discounts(service: IssuanceService = Depends(get_issuance_service)) -> Envelope[list[DiscountRead]]:
    discounts = await service.list_discounts()
    return Envelope(
        status=status.HTTP_200_OK,
        message="All Discounts",
        data=[DiscountRead.model_validate(discount) for discount in discounts],
    )


@router.post("", response_model=Envelope[DiscountIssued], status_code=status.HTTP_201_CREATED)
async def create_discount(
    payload: DiscountCreate,
    service: IssuanceService = Depends(get_issuance_service),
) -> Envelope[DiscountIssued]:
    code = await service.issue_discount(
        percent=payload.percent,
        amount=payload.amount,
        percent_amount=payload.percent_amount,
        stream_id=payload.stream_id,
    )
    return Envelope(
        status=status.HTTP_201_CREATED,
        message="Discount created Successfully",
        data=DiscountIssued(discount_code=code),
    )
