from fastapi import Depends, Request

from streampromo.core.codes import CodeGenerator
from streampromo.core.config import settings
from streampromo.services.issuance import IssuanceService
from streampromo.services.redemption import RedemptionService
from streampromo.services.store import EntityStore
from streampromo.services.streams import StreamService


def get_store(request: Request) -> EntityStore:
    return request.app.state.store


def get_code_generator(request: Request) -> CodeGenerator:
    return request.app.state.codes


def get_issuance_service(
    store: EntityStore = Depends(get_store),
    codes: CodeGenerator = Depends(get_code_generator),
) -> IssuanceService:
    return IssuanceService(
        store,
        codes,
        code_length=settings.code_length,
        max_attempts=settings.code_generation_attempts,
    )


def get_redemption_service(store: EntityStore = Depends(get_store)) -> RedemptionService:
    return RedemptionService(store)


def get_stream_service(
    store: EntityStore = Depends(get_store),
    codes: CodeGenerator = Depends(get_code_generator),
) -> StreamService:
    return StreamService(store, codes, window_minutes=settings.stream_window_minutes)
