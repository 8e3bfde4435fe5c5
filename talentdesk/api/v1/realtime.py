import json

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse

from talentdesk.core.dependencies import get_backend, get_current_identity
from talentdesk.core.roles import Identity
from talentdesk.services.backend import Backend

router = APIRouter(prefix="/realtime", tags=["realtime"])


@router.get("/comments")
async def comment_events(
    request: Request,
    _: Identity = Depends(get_current_identity),
    backend: Backend = Depends(get_backend),
):
    async def event_stream():
        async for message in backend.realtime.stream("comments"):
            if await request.is_disconnected():
                break
            data = jsonable_encoder(message["record"])
            yield f"event: insert\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
