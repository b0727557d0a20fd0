from __future__ import annotations

import logging
from typing import Callable, Optional

import httpx

from core.config import CONSOLE_BASE_URL
from realtime_console.errors import StreamingError
from realtime_console.services.sse import iter_sse_payloads

logger = logging.getLogger("realtime_console.chat_client")

ChunkFn = Callable[[str], None]


class ChatCompletionsClient:
    """
    Sessionless text path: ``POST /api/chat-completions`` on the relay,
    answered as an SSE stream of ``{type: chunk|done|error}`` payloads.
    """

    def __init__(self, base_url: str = CONSOLE_BASE_URL, timeout_sec: float = 60.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = f"{str(base_url or '').rstrip('/')}/api/chat-completions"
        self.timeout_sec = float(timeout_sec)
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_sec, transport=self.transport)

    async def stream(self, messages: list[dict], on_chunk: Optional[ChunkFn] = None) -> dict:
        content = ""
        try:
            async with self._client() as client:
                async with client.stream("POST", self.url, json={"messages": messages}) as response:
                    if response.status_code != 200:
                        raise StreamingError(f"Chat API error: {response.status_code}")
                    async for payload in iter_sse_payloads(response):
                        payload_type = payload.get("type")
                        if payload_type == "chunk" and payload.get("content"):
                            content += str(payload["content"])
                            if on_chunk is not None:
                                on_chunk(content)
                        elif payload_type == "done":
                            return {"content": content, "cost": payload.get("cost")}
                        elif payload_type == "error":
                            raise StreamingError(str(payload.get("error") or "stream error"), content)
        except httpx.HTTPError as exc:
            raise StreamingError(f"network error: {exc}", content) from exc

        if not content:
            raise StreamingError("stream ended without content")
        logger.warning("Chat stream ended without done marker | chars=%s", len(content))
        return {"content": content, "cost": None}

    async def complete(self, messages: list[dict]) -> dict:
        try:
            async with self._client() as client:
                response = await client.post(self.url, json={"messages": messages, "stream": False})
        except httpx.HTTPError as exc:
            raise StreamingError(f"network error: {exc}") from exc
        if response.status_code != 200:
            raise StreamingError(f"Chat API error: {response.status_code}")
        data = response.json()
        return {"content": str(data.get("content") or ""), "cost": data.get("cost")}
