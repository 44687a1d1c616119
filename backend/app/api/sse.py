"""Server-sent-event framing for progress streams."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi.responses import StreamingResponse

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, default=str)}\n\n"


async def _frames(source: AsyncIterator[dict[str, Any]]) -> AsyncIterator[str]:
    try:
        async for payload in source:
            yield format_sse(payload)
    except Exception:
        logger.exception("Event stream aborted")
        yield format_sse({"type": "error", "message": "Streaming failed"})


def event_stream(source: AsyncIterator[dict[str, Any]]) -> StreamingResponse:
    return StreamingResponse(_frames(source), media_type="text/event-stream", headers=SSE_HEADERS)


def parse_sse(body: str) -> list[dict[str, Any]]:
    """Decode a buffered ``text/event-stream`` body back into payloads."""
    frames: list[dict[str, Any]] = []
    for chunk in body.split("\n\n"):
        chunk = chunk.strip()
        if chunk.startswith("data: "):
            frames.append(json.loads(chunk[len("data: ") :]))
    return frames


__all__ = ["event_stream", "format_sse", "parse_sse"]
