from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Optional

from core.logger import log_event, log_wire_event
from core.state import SessionStatus
from realtime_console.errors import SessionSetupError, TransportError
from realtime_console.modes.controller import ModeController
from realtime_console.session.collaborators import (
    BASIC_AUDIO_CONSTRAINTS,
    OPTIMAL_AUDIO_CONSTRAINTS,
    AudioCapture,
    ChannelNegotiator,
    MediaCaptureError,
    TokenProvider,
    categorize_capture_error,
)
from realtime_console.session.models import EventLog, Session
from realtime_console.session.scheduler import DelayedScheduler
from realtime_console.settings import ConsoleSettings

logger = logging.getLogger("realtime_console.session")


class SessionLifecycleManager:
    """
    Owns the realtime connection: Idle -> Connecting -> Active -> Closed -> Idle.
    Only one session may be Active at a time.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        audio_capture: Optional[AudioCapture],
        negotiator: ChannelNegotiator,
        mode_controller: ModeController,
        scheduler: DelayedScheduler,
        settings: Optional[ConsoleSettings] = None,
        event_log: Optional[EventLog] = None,
    ):
        self.token_provider = token_provider
        self.audio_capture = audio_capture
        self.negotiator = negotiator
        self.mode_controller = mode_controller
        self.scheduler = scheduler
        self.settings = settings or ConsoleSettings()
        self.event_log = event_log if event_log is not None else EventLog(self.settings.event_log_limit)
        self.session = Session()

        self.on_event: Optional[Callable[[dict], None]] = None
        self.on_reset: Optional[Callable[[], None]] = None
        self.on_transport_error: Optional[Callable[[TransportError], None]] = None

        mode_controller.subscribe(self._on_mode_change)

    @property
    def status(self) -> SessionStatus:
        return self.session.status

    @property
    def is_active(self) -> bool:
        return self.session.is_active

    # -------------------------
    # START
    # -------------------------

    async def start(self) -> Session:
        if self.session.status in (SessionStatus.CONNECTING, SessionStatus.ACTIVE):
            logger.info("Start ignored, session already %s", self.session.status.value)
            return self.session

        self.session = Session(status=SessionStatus.CONNECTING)
        session_id = self.session.session_id
        log_event("session", "connecting", session_id)

        if self.on_reset is not None:
            self.on_reset()

        # stop() may run while any of these awaits is suspended; it replaces
        # self.session, so each resume checks the id before going further.
        audio = None
        try:
            credential = await self.token_provider.fetch()
            if self._superseded(session_id):
                return await self._abandon_start(session_id)

            audio = await self._acquire_audio()
            if self._superseded(session_id):
                return await self._abandon_start(session_id, audio=audio)
            self.session.audio = audio

            channel = await self.negotiator.open(credential, audio)
            if self._superseded(session_id):
                return await self._abandon_start(session_id, audio=audio, channel=channel)
        except SessionSetupError as exc:
            self._abort_start(exc, session_id, audio)
            raise
        except Exception as exc:
            error = SessionSetupError("negotiation", str(exc) or exc.__class__.__name__)
            self._abort_start(error, session_id, audio)
            raise error from exc

        self._on_channel_open(channel)
        return self.session

    def _superseded(self, session_id: str) -> bool:
        return self.session.session_id != session_id

    async def _abandon_start(self, session_id: str, audio=None, channel=None) -> Session:
        log_event("session", "start_abandoned", session_id)
        logger.info("Session stopped while connecting, discarding setup | session=%s", session_id)
        if channel is not None:
            try:
                await channel.close()
            except Exception as exc:
                logger.warning("Channel close failed | err=%s", exc)
        if audio is not None:
            audio.stop()
        return self.session

    async def _acquire_audio(self):
        if self.audio_capture is None:
            raise SessionSetupError(
                "unsupported",
                "Audio capture is not supported in this environment.",
            )

        try:
            return await self.audio_capture.acquire(dict(OPTIMAL_AUDIO_CONSTRAINTS))
        except MediaCaptureError as exc:
            logger.warning("Optimal audio settings failed, trying basic settings | err=%s", exc)

        try:
            return await self.audio_capture.acquire(dict(BASIC_AUDIO_CONSTRAINTS))
        except MediaCaptureError as exc:
            logger.error("Microphone access failed completely | name=%s err=%s", exc.name, exc)
            raise categorize_capture_error(exc) from exc

    def _on_channel_open(self, channel) -> None:
        self.session.channel = channel
        self.session.status = SessionStatus.ACTIVE
        self.session.started_at = time.time()
        log_event("session", "active", self.session.session_id, mode=self.mode_controller.mode.value)

        self.send_event(self._session_update())
        channel.listen(self._receive, self._on_channel_closed)

    def _abort_start(self, error: SessionSetupError, session_id: str, audio=None) -> None:
        log_event("session", "start_failed", session_id, category=error.category)
        logger.error("Error starting session | category=%s err=%s", error.category, error.detail)
        if audio is not None:
            audio.stop()
        if not self._superseded(session_id):
            self.session = Session(status=SessionStatus.IDLE)

    # -------------------------
    # STOP
    # -------------------------

    async def stop(self) -> None:
        if self.session.status == SessionStatus.IDLE:
            return

        cancelled = self.scheduler.cancel_all()
        session = self.session
        session.status = SessionStatus.CLOSED

        channel, session.channel = session.channel, None
        if channel is not None:
            try:
                await channel.close()
            except Exception as exc:
                logger.warning("Channel close failed | err=%s", exc)

        if session.audio is not None:
            session.audio.stop()
            session.audio = None

        if self.on_reset is not None:
            self.on_reset()

        log_event("session", "stopped", session.session_id, cancelled_callbacks=cancelled)
        self.session = Session(status=SessionStatus.IDLE)

    # -------------------------
    # SEND / RECEIVE
    # -------------------------

    def send_event(self, event: dict) -> bool:
        if not self.session.is_active or self.session.channel is None:
            logger.error(
                "Failed to send message - no data channel available | type=%s",
                (event or {}).get("type"),
            )
            return False

        event.setdefault("event_id", str(uuid.uuid4()))
        try:
            self.session.channel.send(event)
        except Exception as exc:
            self._transport_failure(TransportError(f"send failed: {exc}"))
            return False

        self.event_log.record("outbound", event)
        log_wire_event("outbound", event, self.session.session_id)
        return True

    def set_audio_enabled(self, enabled: bool) -> None:
        audio = self.session.audio
        if audio is not None:
            audio.set_enabled(enabled)
            logger.info("Audio track %s", "enabled" if enabled else "disabled")

    def _receive(self, event: dict) -> None:
        if not self.session.is_active:
            return
        self.event_log.record("inbound", event)
        log_wire_event("inbound", event, self.session.session_id)
        if self.on_event is not None:
            self.on_event(event)

    def _on_channel_closed(self, exc: Optional[Exception] = None) -> None:
        if self.session.status != SessionStatus.ACTIVE:
            return
        self._transport_failure(TransportError(f"channel closed unexpectedly: {exc or 'no reason'}"))
        self.scheduler.cancel_all()
        if self.session.audio is not None:
            self.session.audio.stop()
        if self.on_reset is not None:
            self.on_reset()
        self.session = Session(status=SessionStatus.IDLE)

    def _transport_failure(self, error: TransportError) -> None:
        logger.error("Transport error | session=%s err=%s", self.session.session_id, error)
        if self.on_transport_error is not None:
            self.on_transport_error(error)

    # -------------------------
    # MODE CHANGES
    # -------------------------

    def _session_update(self) -> dict:
        return self.mode_controller.session_update(
            transcription_model=self.settings.transcription_model,
            turn_detection=self.settings.turn_detection,
        )

    def _on_mode_change(self, previous, current) -> None:
        if not self.session.is_active:
            return
        self.send_event(self._session_update())
        logger.info("Session instructions updated | mode=%s", current.value)
