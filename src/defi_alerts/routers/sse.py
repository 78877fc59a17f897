"""Server-Sent Events stream of alert notifications."""
from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from defi_alerts.deps import BusDep, OptionalUserId
from defi_alerts.services import DeliverySession
from defi_alerts.services.utils import SSE_HEADERS

router = APIRouter(tags=["sse"])


@router.get("/sse")
async def stream_notifications(bus: BusDep, user_id: OptionalUserId) -> StreamingResponse:
    """Live notification stream.

    Sends one ``connected`` frame, then a ``notification`` event for every
    new notification (only the caller's own when a bearer token is sent,
    all of them otherwise), with ``: heartbeat`` comments in between.

    Connect via EventSource in browser:
        const es = new EventSource('/sse');
        es.addEventListener('notification', (e) => console.log(JSON.parse(e.data)));
    """
    session = DeliverySession(bus, user_id=user_id)
    return StreamingResponse(
        session.frames(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
