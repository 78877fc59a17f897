"""Service-layer helpers."""
from defi_alerts.services.utils.sse import HEARTBEAT_FRAME, SSE_HEADERS, format_sse

__all__ = ["HEARTBEAT_FRAME", "SSE_HEADERS", "format_sse"]
