from fastapi import APIRouter, Depends, status

from streampromo.core.dependencies import get_issuance_service, get_redemption_service
from streampromo.schemas.envelope import Envelope
from streampromo.schemas.promo import GiftCreate, GiftIssued, GiftRead, GiftRedeem, GiftRedeemed
from streampromo.services.issuance import IssuanceService
from streampromo.services.redemption import RedemptionService

router = APIRouter(prefix="/gifts", tags=["gifts"])


@router.get("", response_model=Envelope[list[GiftRead]])
async def list_gifts(service: RedemptionService = Depends(get_redemption_service)) -> Envelope[list[GiftRead]]:
    gifts = await service.list_gifts()
    return Envelope(
        status=status.HTTP_200_OK,
        message="All Gifts",
        data=[GiftRead.model_validate(gift) for gift in gifts],
    )


@router.post("", response_model=Envelope[GiftIssued], status_code=status.HTTP_201_CREATED)
async def create_gift(
    payload: GiftCreate,
    service: IssuanceService = Depends(get_issuance_service),
) -> Envelope[GiftIssued]:
    code = await service.issue_gift(amount=payload.amount, capacity=payload.capacity, stream_id=payload.stream_id)
    return Envelope(
        status=status.HTTP_201_CREATED,
        message="Gift created Successfully",
        data=GiftIssued(gift_code=code),
    )


@router.post("/redeem", response_model=Envelope[GiftRedeemed])
async def redeem_gift(
    payload: GiftRedeem,
    service: RedemptionService = Depends(get_redemption_service),
) -> Envelope[GiftRedeemed]:
    amount = await service.redeem(payload.code)
    return Envelope(
        status=status.HTTP_200_OK,
        message="Gift redeemed. Usage can be seen in the gifts listing.",
        data=GiftRedeemed(gift_amount=amount),
    )


@router.get("/{code}", response_model=Envelope[GiftRead])
async def get_gift(code: str, service: RedemptionService = Depends(get_redemption_service)) -> Envelope[GiftRead]:
    gift = await service.status(code)
    return Envelope(status=status.HTTP_200_OK, message="Gift", data=GiftRead.model_validate(gift))
