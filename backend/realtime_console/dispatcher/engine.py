from __future__ import annotations

import logging
from typing import Callable, Optional

from core.state import CostKind, Role
from realtime_console.conversation.transcript import Transcript
from realtime_console.cost.calculator import calculate_realtime_cost, estimate_stream_cost
from realtime_console.cost.models import CostRecord, SessionCostState
from realtime_console.errors import ProtocolError, TransportError
from realtime_console.interview.analyzer import ConversationAnalyzer
from realtime_console.interview.models import TranscriptAnalysis
from realtime_console.interview.prompts import build_interview_prompt
from realtime_console.modes.controller import ModeController
from realtime_console.session.models import ListeningState, ResponseGenerationState
from realtime_console.session.scheduler import DelayedScheduler
from realtime_console.settings import ConsoleSettings

logger = logging.getLogger("realtime_console.dispatcher")

SendFn = Callable[[dict], bool]
NoticeFn = Callable[[str], None]
AudioSwitchFn = Callable[[bool], None]

TRANSCRIPTION_COMPLETED = "conversation.item.input_audio_transcription.completed"
TRANSCRIPTION_PARTIAL = "conversation.item.input_audio_transcription.partial"
TRANSCRIPTION_FAILED = "conversation.item.input_audio_transcription.failed"

LOG_ONLY_EVENTS = {
    "session.created",
    "session.updated",
    "conversation.item.created",
    "response.output_item.added",
    "response.output_item.done",
    "response.content_part.added",
    "response.content_part.done",
    "input_audio_buffer.committed",
    "rate_limits.updated",
}


def response_request(max_output_tokens: Optional[int] = None) -> dict:
    response: dict = {"modalities": ["text"]}
    if max_output_tokens:
        response["max_output_tokens"] = int(max_output_tokens)
    return {"type": "response.create", "response": response}


def user_message_item(text: str) -> dict:
    return {
        "type": "conversation.item.create",
        "item": {
            "type": "message",
            "role": "user",
            "content": [{"type": "input_text", "text": str(text or "")}],
        },
    }


class EventDispatcher:
    """
    Consumes inbound realtime events strictly in arrival order and decides
    whether a new model response may be requested.

    Automatic responses are never requested while listening is paused, in
    advisor mode, once the session cost state is blocked, or while another
    response is in flight.
    """

    def __init__(
        self,
        transcript: Transcript,
        mode_controller: ModeController,
        analyzer: ConversationAnalyzer,
        cost_state: SessionCostState,
        scheduler: DelayedScheduler,
        send_fn: SendFn,
        settings: Optional[ConsoleSettings] = None,
        audio_switch: Optional[AudioSwitchFn] = None,
        notify: Optional[NoticeFn] = None,
    ):
        self.transcript = transcript
        self.mode_controller = mode_controller
        self.analyzer = analyzer
        self.cost_state = cost_state
        self.scheduler = scheduler
        self.send_fn = send_fn
        self.settings = settings or ConsoleSettings()
        self.audio_switch = audio_switch
        self.notify = notify

        self.listening = ListeningState()
        self.generation = ResponseGenerationState()
        self.is_listening = False
        self.last_analysis: Optional[TranscriptAnalysis] = None

        # transcript entry ids that already have a response path scheduled
        self._trigger_claims: set[str] = set()
        self._stream_absorbed = False

        self._handlers: dict[str, Callable[[dict], None]] = {
            "response.text.delta": self._on_stream_delta,
            "response.audio_transcript.delta": self._on_stream_delta,
            "response.text.done": self._on_stream_done,
            "response.audio_transcript.done": self._on_stream_done,
            "response.done": self._on_response_done,
            "response.created": self._on_response_created,
            TRANSCRIPTION_COMPLETED: self._on_transcription_completed,
            TRANSCRIPTION_PARTIAL: self._on_transcription_partial,
            TRANSCRIPTION_FAILED: self._on_transcription_failed,
            "input_audio_buffer.speech_started": self._on_speech_started,
            "input_audio_buffer.speech_stopped": self._on_speech_stopped,
            "error": self._on_error,
        }

        mode_controller.subscribe(self._on_mode_change)

    # -------------------------
    # ENTRY POINT
    # -------------------------

    def handle(self, event: dict) -> None:
        event_type = str((event or {}).get("type") or "")
        handler = self._handlers.get(event_type)
        if handler is None:
            if event_type in LOG_ONLY_EVENTS:
                logger.debug("Event received | type=%s", event_type)
            else:
                logger.info("Unhandled event | type=%s", event_type)
            return
        handler(event)

    def reset(self) -> None:
        """Per-session state back to initial values."""
        self.listening.reset()
        self.generation.reset()
        self.cost_state.reset()
        self.is_listening = False
        self.last_analysis = None
        self._trigger_claims.clear()
        self._stream_absorbed = False

    # -------------------------
    # ASSISTANT STREAM
    # -------------------------

    def _on_stream_delta(self, event: dict) -> None:
        delta = str(event.get("delta") or "")
        if not delta:
            return
        self.transcript.append_stream_delta(delta)
        self._stream_absorbed = True
        if event.get("type") == "response.text.delta":
            estimate = estimate_stream_cost(delta, "output_text")
            self.cost_state.add_record(CostRecord.from_estimate(CostKind.REALTIME_RESPONSE, estimate, provisional=True))

    def _on_stream_done(self, event: dict) -> None:
        self.transcript.finish_stream()

    def _on_response_created(self, event: dict) -> None:
        self.generation.in_flight = True
        self._stream_absorbed = False

    def _on_response_done(self, event: dict) -> None:
        self.generation.finish()

        if self.listening.auto_resume_pending:
            logger.info("Auto-resuming voice listening after response completion")
            self.scheduler.schedule(self.settings.auto_resume_delay, self._auto_resume, name="auto_resume")

        response = event.get("response") if isinstance(event.get("response"), dict) else {}
        usage = response.get("usage") or event.get("usage")
        if isinstance(usage, dict) and usage:
            record = CostRecord.from_estimate(CostKind.REALTIME_RESPONSE, calculate_realtime_cost(usage))
            self.cost_state.add_record(record)
            logger.info("Realtime response cost | cost=%.6f total=%.4f", record.total_cost, self.cost_state.running_total)
        else:
            logger.info("No usage data found in response.done event")

        final_text = self._final_text(response)
        # text already delivered through deltas is not appended twice
        if final_text is not None and (self.transcript.streaming_entry is not None or not self._stream_absorbed):
            self.transcript.complete_response(final_text)
        else:
            self.transcript.finish_stream()
        self._stream_absorbed = False

    @staticmethod
    def _final_text(response: dict) -> Optional[str]:
        parts = []
        for output in response.get("output") or []:
            if not isinstance(output, dict) or output.get("type") != "message":
                continue
            for content in output.get("content") or []:
                if isinstance(content, dict) and content.get("type") in ("text", "output_text") and content.get("text"):
                    parts.append(str(content["text"]))
        return "".join(parts) if parts else None

    def _auto_resume(self) -> None:
        if not self.listening.auto_resume():
            return
        if self.audio_switch is not None:
            self.audio_switch(True)
        logger.info("Voice listening automatically resumed after response completion")

    # -------------------------
    # USER TRANSCRIPTION
    # -------------------------

    def _on_transcription_partial(self, event: dict) -> None:
        if self.listening.paused:
            return
        text = str(event.get("transcript") or event.get("delta") or "")
        if text:
            self.transcript.update_partial(text)

    def _on_transcription_failed(self, event: dict) -> None:
        error = event.get("error")
        logger.warning("Voice transcription failed | error=%s", error.get("message") if isinstance(error, dict) else error)
        self.transcript.discard_partial()

    def _on_transcription_completed(self, event: dict) -> None:
        if self.listening.paused:
            logger.info("Voice listening is paused, skipping transcription processing")
            self.transcript.discard_partial()
            return

        text = str(event.get("transcript") or "").strip()
        if not text:
            return

        entry = self.transcript.finalize_voice(text)
        estimate = estimate_stream_cost(text, "input_audio")
        self.cost_state.add_record(CostRecord.from_estimate(CostKind.AUDIO_TRANSCRIPTION, estimate, provisional=True))

        if self.mode_controller.is_advisor:
            logger.info("Advisor mode - conversation stored, no auto-response")
            return

        if not self.cost_state.allows_auto_response():
            logger.info("Response blocked due to cost or response limits")
            return

        if self.mode_controller.is_interview:
            analysis = self.analyzer.analyze(text, entry.created_at)
            self.last_analysis = analysis
            if analysis.should_respond:
                self._maybe_schedule_interview_response(entry.id, analysis)
                return

        self._schedule_auto_response(entry.id)

    def _claim(self, entry_id: str) -> bool:
        if entry_id in self._trigger_claims:
            return False
        self._trigger_claims.add(entry_id)
        return True

    def _schedule_auto_response(self, entry_id: str) -> None:
        if self.generation.in_flight:
            logger.info("Response already being generated, skipping new response trigger")
            return
        if not self._claim(entry_id):
            return

        self.generation.begin()
        self.scheduler.schedule(
            self.settings.transcription_settle_delay,
            self._fire_auto_response,
            name="auto_response",
        )

    def _fire_auto_response(self) -> None:
        if self.listening.paused or self.mode_controller.is_advisor:
            logger.info("Auto response dropped at send time | paused=%s mode=%s", self.listening.paused, self.mode_controller.mode.value)
            self.generation.finish()
            self.listening.cancel_auto_resume()
            return
        if self.send_fn(response_request(self.settings.auto_response_max_tokens)):
            self.cost_state.count_response()
        else:
            self.generation.finish()

    def _maybe_schedule_interview_response(self, entry_id: str, analysis: TranscriptAnalysis) -> None:
        interview = self.settings.interview
        if not interview.auto_respond or analysis.confidence < interview.response_threshold:
            logger.info(
                "Interview question below auto-respond policy | confidence=%.2f threshold=%.2f auto=%s",
                analysis.confidence,
                interview.response_threshold,
                interview.auto_respond,
            )
            return
        if self.generation.in_flight:
            logger.info("Interview response skipped, response already in flight")
            return
        if analysis.response_context is None or not self._claim(entry_id):
            return

        prompt = build_interview_prompt(analysis.response_context, interview.interview_type)
        logger.info("Interview response scheduled | confidence=%.2f reason=%s", analysis.confidence, analysis.reason)
        self.scheduler.schedule(
            self.settings.interview_response_delay,
            lambda: self._fire_interview_response(prompt),
            name="interview_response",
        )

    def _fire_interview_response(self, prompt: str) -> None:
        if self.generation.in_flight or self.listening.paused or not self.mode_controller.is_interview:
            return
        if not self.cost_state.allows_auto_response():
            return

        self.generation.begin()
        self.transcript.append(Role.USER, prompt)
        if self.send_fn(user_message_item(prompt)) and self.send_fn(response_request()):
            self.cost_state.count_response()
        else:
            self.generation.finish()

    # -------------------------
    # VOICE ACTIVITY / PAUSE
    # -------------------------

    def _on_speech_started(self, event: dict) -> None:
        self.is_listening = True

    def _on_speech_stopped(self, event: dict) -> None:
        self.is_listening = False

    def toggle_pause(self) -> bool:
        paused = self.listening.toggle(generating=self.generation.in_flight)
        if paused and self.listening.paused_during_generation:
            logger.info("Paused during response generation - will auto-resume after response")
        logger.info("Voice listening %s", "paused" if paused else "resumed")
        if self.audio_switch is not None:
            self.audio_switch(not paused)
        return paused

    # -------------------------
    # ERRORS
    # -------------------------

    def _on_error(self, event: dict) -> None:
        self.generation.finish()
        error = ProtocolError.from_event(event)
        if error.is_benign:
            logger.info("Ignoring concurrent response conflict | %s", error.message)
            return
        logger.error("Error event | %s", error)
        if self.notify is not None:
            self.notify(error.user_message)

    def on_transport_error(self, error: TransportError) -> None:
        self.generation.finish()
        if self.notify is not None:
            self.notify(str(error))

    # -------------------------
    # MODES
    # -------------------------

    def _on_mode_change(self, previous, current) -> None:
        if self.mode_controller.is_interview:
            self.analyzer.reset()
