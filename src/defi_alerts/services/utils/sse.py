"""Server-Sent Events framing."""
import json
from typing import Any

HEARTBEAT_FRAME = ": heartbeat\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(data: dict[str, Any], event: str | None = None) -> str:
    """One SSE frame: optional ``event:`` line, a JSON ``data:`` line, blank line."""
    frame = f"event: {event}\n" if event else ""
    return f"{frame}data: {json.dumps(data, default=str)}\n\n"
