from fastapi import APIRouter, Depends, status

from streampromo.core.dependencies import get_stream_service
from streampromo.schemas.envelope import Envelope
from streampromo.schemas.stream import StreamCreate, StreamRead, StreamStatusUpdate
from streampromo.services.streams import StreamService

router = APIRouter(prefix="/streams", tags=["streams"])


@router.get("", response_model=Envelope[list[StreamRead]])
async def list_streams(service: StreamService = Depends(get_stream_service)) -> Envelope[list[StreamRead]]:
    streams = await service.list_streams()
    return Envelope(
        status=status.HTTP_200_OK,
        message="All Streams",
        data=[StreamRead.model_validate(stream) for stream in streams],
    )


@router.post("", response_model=Envelope[StreamRead], status_code=status.HTTP_201_CREATED)
async def create_stream(payload: StreamCreate, service: StreamService = Depends(get_stream_service)) -> Envelope[StreamRead]:
    stream = await service.create_stream(name=payload.name, status=payload.status)
    return Envelope(
        status=status.HTTP_201_CREATED,
        message="Stream created Successfully",
        data=StreamRead.model_validate(stream),
    )


@router.patch("/{stream_id}", response_model=Envelope[StreamRead])
async def update_stream_status(
    stream_id: str,
    payload: StreamStatusUpdate,
    service: StreamService = Depends(get_stream_service),
) -> Envelope[StreamRead]:
    stream = await service.update_stream_status(stream_id, payload.status)
    return Envelope(status=status.HTTP_200_OK, message="Stream updated", data=StreamRead.model_validate(stream))
