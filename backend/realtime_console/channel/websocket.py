from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from core.config import REALTIME_MODEL
from realtime_console.errors import SessionSetupError
from realtime_console.session.collaborators import AudioHandle, CloseHandler, EventHandler

logger = logging.getLogger("realtime_console.channel")

REALTIME_WS_URL = "wss://api.openai.com/v1/realtime"


class WebSocketChannel:
    """
    Realtime event channel over one websocket. Outbound events are queued and
    written by a single writer task so they leave in the order they were sent.
    The close handler runs at most once, whether the socket closed or one of
    the tasks died.
    """

    def __init__(self, ws):
        self.ws = ws
        self._outbound: asyncio.Queue = asyncio.Queue()
        self._reader: Optional[asyncio.Task] = None
        self._on_close: Optional[CloseHandler] = None
        self._closing = False
        self._close_reported = False
        self._writer: Optional[asyncio.Task] = asyncio.get_running_loop().create_task(
            self._write_loop(), name="realtime_writer"
        )
        self._writer.add_done_callback(self._on_task_done)

    def send(self, event: dict) -> None:
        if self._closing:
            raise ConnectionError("channel is closing")
        self._outbound.put_nowait(json.dumps(event, ensure_ascii=False))

    def listen(self, on_event: EventHandler, on_close: CloseHandler) -> None:
        if self._reader is not None:
            return
        self._on_close = on_close
        self._reader = asyncio.get_running_loop().create_task(self._read_loop(on_event), name="realtime_reader")
        self._reader.add_done_callback(self._on_task_done)

    async def _write_loop(self) -> None:
        while True:
            message = await self._outbound.get()
            try:
                await self.ws.send(message)
            except ConnectionClosed as exc:
                logger.warning("Send on closed channel dropped | code=%s", getattr(exc, "code", None))
                return

    async def _read_loop(self, on_event: EventHandler) -> None:
        reason: Optional[Exception] = None
        try:
            async for message in self.ws:
                try:
                    event = json.loads(message)
                except (TypeError, json.JSONDecodeError):
                    logger.warning("Non-JSON realtime frame skipped")
                    continue
                if not isinstance(event, dict):
                    continue
                try:
                    on_event(event)
                except Exception:
                    logger.exception("Realtime event handler failed | type=%s", event.get("type"))
        except ConnectionClosed as exc:
            reason = exc
        self._report_close(reason)

    def _on_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        logger.error("Realtime channel task failed | task=%s err=%s", task.get_name(), exc, exc_info=exc)
        self._report_close(exc)

    def _report_close(self, reason: Optional[Exception]) -> None:
        if self._closing or self._close_reported or self._on_close is None:
            return
        self._close_reported = True
        self._on_close(reason)

    async def close(self) -> None:
        self._closing = True
        for task in (self._writer, self._reader):
            if task is not None and task is not asyncio.current_task():
                task.cancel()
        await self.ws.close()
        await asyncio.gather(
            *[task for task in (self._writer, self._reader) if task is not None],
            return_exceptions=True,
        )


class WebSocketNegotiator:
    """Opens the vendor realtime websocket with an ephemeral credential."""

    def __init__(self, model: str = REALTIME_MODEL, url: str = REALTIME_WS_URL, open_timeout: float = 20.0):
        self.model = model
        self.url = url
        self.open_timeout = float(open_timeout)

    async def open(self, credential: str, audio: AudioHandle) -> WebSocketChannel:
        # audio frames are not forwarded over this transport; the handle only backs pause/resume
        try:
            ws = await websockets.connect(
                f"{self.url}?model={self.model}",
                additional_headers={
                    "Authorization": f"Bearer {credential}",
                    "OpenAI-Beta": "realtime=v1",
                },
                open_timeout=self.open_timeout,
                max_size=None,
            )
        except (InvalidHandshake, InvalidURI, OSError, asyncio.TimeoutError) as exc:
            raise SessionSetupError("negotiation", f"Realtime connection failed: {exc}") from exc

        logger.info("Realtime channel established | model=%s", self.model)
        return WebSocketChannel(ws)
