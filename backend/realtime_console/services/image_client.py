from __future__ import annotations

import logging
from typing import Callable, Optional

import httpx

from core.config import CONSOLE_BASE_URL
from realtime_console.errors import StreamingError
from realtime_console.services.sse import is_event_stream, iter_sse_payloads

logger = logging.getLogger("realtime_console.image_client")

ChunkFn = Callable[[str], None]


class ImageAnalysisClient:
    """
    ``POST /api/analyze-image``. The relay answers either with JSON
    ``{analysis, usage, cost}`` or an SSE stream of ``{content}`` chunks
    closed by a payload carrying ``analysis`` and ``cost``.
    """

    def __init__(self, base_url: str = CONSOLE_BASE_URL, timeout_sec: float = 120.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = f"{str(base_url or '').rstrip('/')}/api/analyze-image"
        self.timeout_sec = float(timeout_sec)
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_sec, transport=self.transport)

    async def analyze(self, text: str, image: str, history: list[dict], on_chunk: Optional[ChunkFn] = None) -> dict:
        body = {"text": text, "image": image, "conversationHistory": history}
        streamed = ""
        try:
            async with self._client() as client:
                async with client.stream("POST", self.url, json=body) as response:
                    if response.status_code != 200:
                        raise StreamingError(f"HTTP error! status: {response.status_code}")

                    if not is_event_stream(response):
                        await response.aread()
                        return _normalize_result(response.json(), streamed)

                    async for payload in iter_sse_payloads(response):
                        if payload.get("error"):
                            raise StreamingError(str(payload["error"]), streamed)
                        if payload.get("content") and not payload.get("analysis"):
                            streamed += str(payload["content"])
                            if on_chunk is not None:
                                on_chunk(streamed)
                        if payload.get("analysis") or payload.get("type") == "complete" or payload.get("event") == "complete":
                            return _normalize_result(payload, streamed)
        except httpx.HTTPError as exc:
            raise StreamingError(f"fetch failed: {exc}", streamed) from exc

        if not streamed:
            raise StreamingError("stream ended without content")
        return {"analysis": streamed, "cost": None, "usage": None}

    async def analyze_once(self, text: str, image: str, history: list[dict]) -> dict:
        body = {"text": text, "image": image, "conversationHistory": history, "stream": False}
        try:
            async with self._client() as client:
                response = await client.post(self.url, json=body)
        except httpx.HTTPError as exc:
            raise StreamingError(f"fetch failed: {exc}") from exc
        if response.status_code != 200:
            raise StreamingError(f"HTTP error! status: {response.status_code}")
        return _normalize_result(response.json(), "")


def _normalize_result(data: dict, streamed: str) -> dict:
    data = data if isinstance(data, dict) else {}
    return {
        "analysis": str(data.get("analysis") or data.get("message") or streamed or "Analysis completed"),
        "cost": data.get("cost") if isinstance(data.get("cost"), dict) else None,
        "usage": data.get("usage") if isinstance(data.get("usage"), dict) else None,
    }
