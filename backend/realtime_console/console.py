from __future__ import annotations

import logging
from typing import Callable, Optional

from core.state import CostKind, Mode, Role, SessionStatus
from realtime_console.conversation.models import ConversationEntry
from realtime_console.conversation.transcript import Transcript
from realtime_console.cost.calculator import aggregate_costs, format_cost
from realtime_console.cost.models import CostRecord, SessionCostState
from realtime_console.dispatcher.engine import EventDispatcher, response_request, user_message_item
from realtime_console.errors import SessionSetupError, StreamingError
from realtime_console.events import ClipboardText, ExternalEvent, ScreenshotCaptured, ShortcutPressed
from realtime_console.interview.analyzer import ConversationAnalyzer
from realtime_console.modes.controller import ModeController
from realtime_console.prompts import ADVICE_REQUEST_TEMPLATE, DEFAULT_IMAGE_TEXT, IMAGE_ANALYSIS_PROMPT
from realtime_console.services.chat_client import ChatCompletionsClient
from realtime_console.services.image_client import ImageAnalysisClient
from realtime_console.session.collaborators import AudioCapture, ChannelNegotiator, TokenProvider
from realtime_console.session.lifecycle import SessionLifecycleManager
from realtime_console.session.models import EventLog
from realtime_console.session.scheduler import DelayedScheduler
from realtime_console.settings import ConsoleSettings

logger = logging.getLogger("realtime_console.console")

NoticeFn = Callable[[str], None]


def describe_stream_failure(exc: Exception) -> str:
    message = str(exc)
    if "fetch" in message or "network" in message:
        return "Network error. Please check your internet connection and try again."
    if "timeout" in message.lower():
        return "Network timeout. The request took too long. Please try again."
    return f"Error: {message}"


class RealtimeConsole:
    """
    Wires the session, dispatcher, modes, analyzer and cost tracking together
    and exposes the user-facing entry points (text, advice, image, external
    clipboard/shortcut events).
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        negotiator: ChannelNegotiator,
        audio_capture: Optional[AudioCapture] = None,
        settings: Optional[ConsoleSettings] = None,
        chat_client: Optional[ChatCompletionsClient] = None,
        image_client: Optional[ImageAnalysisClient] = None,
        notify: Optional[NoticeFn] = None,
    ):
        self.settings = settings or ConsoleSettings.from_env()
        self.transcript = Transcript()
        self.modes = ModeController()
        self.analyzer = ConversationAnalyzer()
        self.cost_state = SessionCostState(self.settings.cost_limit, self.settings.max_responses)
        self.scheduler = DelayedScheduler()
        self.event_log = EventLog(self.settings.event_log_limit)
        self.chat_client = chat_client or ChatCompletionsClient()
        self.image_client = image_client or ImageAnalysisClient()
        self.notices: list[str] = []
        self._notify_fn = notify

        self.session = SessionLifecycleManager(
            token_provider=token_provider,
            audio_capture=audio_capture,
            negotiator=negotiator,
            mode_controller=self.modes,
            scheduler=self.scheduler,
            settings=self.settings,
            event_log=self.event_log,
        )
        self.dispatcher = EventDispatcher(
            transcript=self.transcript,
            mode_controller=self.modes,
            analyzer=self.analyzer,
            cost_state=self.cost_state,
            scheduler=self.scheduler,
            send_fn=self.session.send_event,
            settings=self.settings,
            audio_switch=self.session.set_audio_enabled,
            notify=self.notify,
        )
        self.session.on_event = self.dispatcher.handle
        self.session.on_reset = self.dispatcher.reset
        self.session.on_transport_error = self.dispatcher.on_transport_error

    # -------------------------
    # STATE
    # -------------------------

    @property
    def is_active(self) -> bool:
        return self.session.is_active

    @property
    def status(self) -> SessionStatus:
        return self.session.status

    @property
    def mode(self) -> Mode:
        return self.modes.mode

    def notify(self, message: str) -> None:
        self.notices.append(message)
        if self._notify_fn is not None:
            self._notify_fn(message)

    def cost_summary(self) -> dict:
        summary = aggregate_costs(self.cost_state.records)
        summary.update(self.cost_state.snapshot())
        return summary

    # -------------------------
    # SESSION
    # -------------------------

    async def start(self) -> None:
        self.transcript.clear()
        self.event_log.clear()
        try:
            await self.session.start()
        except SessionSetupError as exc:
            self.notify(exc.user_message)
            raise

    async def stop(self) -> None:
        await self.session.stop()

    async def toggle_session(self) -> None:
        if self.session.status in (SessionStatus.ACTIVE, SessionStatus.CONNECTING):
            await self.stop()
            return
        try:
            await self.start()
        except SessionSetupError:
            logger.info("Session toggle start failed, staying idle")

    def set_mode(self, mode: Mode) -> bool:
        return self.modes.set_mode(mode)

    def toggle_interview(self) -> Mode:
        return self.modes.toggle_interview()

    def toggle_advisor(self) -> Mode:
        return self.modes.toggle_advisor()

    def toggle_pause(self) -> bool:
        return self.dispatcher.toggle_pause()

    def unblock_responses(self) -> None:
        self.cost_state.unblock()

    # -------------------------
    # TEXT
    # -------------------------

    async def send_text_message(self, text: str, is_clipboard: bool = False) -> ConversationEntry:
        entry = self.transcript.append(Role.USER, text, is_clipboard=is_clipboard)

        if self.session.is_active:
            self.session.send_event(user_message_item(text))
            if self.dispatcher.generation.begin():
                if not self.session.send_event(response_request()):
                    self.dispatcher.generation.finish()
            return entry

        await self._chat_completion(text)
        return entry

    async def _chat_completion(self, text: str) -> ConversationEntry:
        messages = [{"role": "user", "content": text}]
        pending = self.transcript.append(Role.ASSISTANT, "Thinking...", is_loading=True)

        def _on_chunk(content: str) -> None:
            self.transcript.update(pending.id, content, is_loading=False, is_streaming=True)

        try:
            result = await self.chat_client.stream(messages, on_chunk=_on_chunk)
            self._record_cost(CostKind.CHAT_COMPLETION, result.get("cost"))
            return self.transcript.update(pending.id, result["content"], is_loading=False, is_streaming=False)
        except StreamingError as exc:
            logger.warning("Chat completion stream failed | err=%s partial=%s", exc, len(exc.partial_content))
            if exc.partial_content:
                return self.transcript.update(pending.id, exc.partial_content, is_loading=False, is_streaming=False)

        try:
            result = await self.chat_client.complete(messages)
            self._record_cost(CostKind.CHAT_COMPLETION, result.get("cost"))
            return self.transcript.update(pending.id, result["content"], is_loading=False, is_streaming=False)
        except StreamingError as exc:
            logger.error("Chat completion retry failed | err=%s", exc)
            message = f"Sorry, I encountered an error: {exc}. Try starting a session for realtime communication."
            return self.transcript.update(pending.id, message, is_loading=False, is_streaming=False, is_error=True)

    # -------------------------
    # ADVICE (advisor mode)
    # -------------------------

    async def send_advice_message(self, request: str) -> Optional[ConversationEntry]:
        request = str(request or "").strip()
        if not request:
            return None
        if not self.session.is_active:
            self.notify("Start a session before asking for advice")
            return None

        voice_entries = self.transcript.voice_user_entries(self.settings.advice_context_entries)
        conversation = "\n".join(f'"{entry.content}"' for entry in voice_entries)
        prompt = ADVICE_REQUEST_TEMPLATE.format(conversation=conversation, request=request)

        entry = self.transcript.append(Role.USER, request, is_advice_request=True)
        self.session.send_event(user_message_item(prompt))
        if self.dispatcher.generation.begin():
            if not self.session.send_event(response_request(self.settings.advice_max_tokens)):
                self.dispatcher.generation.finish()
        return entry

    # -------------------------
    # IMAGE
    # -------------------------

    async def send_image_message(
        self,
        data: str,
        media_type: str = "image/png",
        file_name: Optional[str] = None,
        text: Optional[str] = None,
    ) -> ConversationEntry:
        text = str(text or DEFAULT_IMAGE_TEXT)
        image = f"data:{media_type};base64,{data}"
        label = file_name or media_type
        history = self.transcript.text_history()

        self.transcript.append(
            Role.USER,
            f"{text} [Image uploaded: {label}]",
            image_data=image,
            image_name=label,
            has_image=True,
        )
        self.transcript.append(Role.SYSTEM, IMAGE_ANALYSIS_PROMPT, is_system_prompt=True)
        pending = self.transcript.append(
            Role.ASSISTANT,
            "Starting image analysis... Connecting to AI...",
            has_image=True,
            is_loading=True,
            is_streaming=True,
        )

        def _on_chunk(content: str) -> None:
            self.transcript.update(pending.id, content, is_loading=False)

        try:
            result = await self.image_client.analyze(text, image, history, on_chunk=_on_chunk)
        except StreamingError as exc:
            logger.warning("Image analysis stream failed | err=%s partial=%s", exc, len(exc.partial_content))
            if exc.partial_content:
                return self.transcript.update(pending.id, exc.partial_content, is_loading=False, is_streaming=False)
            try:
                result = await self.image_client.analyze_once(text, image, history)
            except StreamingError as retry_exc:
                logger.error("Image analysis retry failed | err=%s", retry_exc)
                return self.transcript.update(
                    pending.id,
                    describe_stream_failure(retry_exc),
                    is_loading=False,
                    is_streaming=False,
                    is_error=True,
                )

        self._record_cost(CostKind.IMAGE_ANALYSIS, result.get("cost"))
        return self.transcript.update(pending.id, result["analysis"], is_loading=False, is_streaming=False)

    def _record_cost(self, kind: CostKind, cost: Optional[dict]) -> None:
        if not isinstance(cost, dict):
            return
        total = cost.get("total_cost", cost.get("totalCost"))
        record = CostRecord.from_estimate(
            kind,
            {
                "total_cost": total,
                "model": cost.get("model"),
                "breakdown": cost.get("usage") or cost.get("breakdown") or {},
            },
        )
        self.cost_state.add_record(record)
        logger.info("%s cost | %s", kind.value, format_cost(record.total_cost))

    # -------------------------
    # EXTERNAL INPUT (clipboard, screenshot, shortcuts)
    # -------------------------

    async def handle_external(self, event: ExternalEvent) -> None:
        if isinstance(event, ClipboardText):
            await self._on_clipboard(event)
        elif isinstance(event, ScreenshotCaptured):
            await self.send_image_message(event.data, event.media_type, event.file_name, event.text)
        elif isinstance(event, ShortcutPressed):
            await self._on_shortcut(event)
        else:
            logger.warning("Unknown external event | kind=%s", type(event).__name__)

    async def _on_clipboard(self, event: ClipboardText) -> None:
        text = str(event.text or "")
        if not text.strip():
            self.notify("Clipboard is empty or contains no text")
            return
        if not self.modes.is_normal:
            logger.info("Clipboard content ignored outside normal mode | mode=%s", self.modes.mode.value)
            self.notify("Cannot send clipboard content - switch to normal mode first")
            return
        await self.send_text_message(text, is_clipboard=True)

    async def _on_shortcut(self, event: ShortcutPressed) -> None:
        if event.action == "session_toggle":
            await self.toggle_session()
        elif event.action == "pause_toggle":
            if self.session.is_active:
                self.toggle_pause()
        else:
            await self._on_clipboard(ClipboardText(event.text or ""))
