import json
import logging
from typing import AsyncIterator

import httpx

logger = logging.getLogger("realtime_console.sse")


def parse_sse_line(line: str):
    """Decode one ``data: {...}`` line. Returns None for anything else."""
    line = str(line or "").strip()
    if not line.startswith("data:"):
        return None
    data = line[len("data:"):].strip()
    if not data or data == "[DONE]":
        return None
    try:
        payload = json.loads(data)
    except json.JSONDecodeError:
        logger.warning("Skipping malformed SSE payload | size=%s", len(data))
        return None
    return payload if isinstance(payload, dict) else None


async def iter_sse_payloads(response: httpx.Response) -> AsyncIterator[dict]:
    async for line in response.aiter_lines():
        payload = parse_sse_line(line)
        if payload is not None:
            yield payload


def is_event_stream(response: httpx.Response) -> bool:
    return "text/event-stream" in str(response.headers.get("content-type") or "")
