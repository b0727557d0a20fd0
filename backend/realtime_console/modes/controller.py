from __future__ import annotations

import logging
from typing import Callable, Optional

from core.config import TRANSCRIPTION_MODEL
from core.state import Mode
from realtime_console.prompts import ADVISOR_INSTRUCTIONS, BASE_INSTRUCTIONS, INTERVIEW_INSTRUCTIONS

logger = logging.getLogger("realtime_console.modes")

DEFAULT_TURN_DETECTION = {
    "type": "server_vad",
    "threshold": 0.5,
    "prefix_padding_ms": 300,
    "silence_duration_ms": 500,
}

_MODE_BLOCKS = {
    Mode.NORMAL: "",
    Mode.INTERVIEW: INTERVIEW_INSTRUCTIONS,
    Mode.ADVISOR: ADVISOR_INSTRUCTIONS,
}


def instructions_for(mode: Mode) -> str:
    block = _MODE_BLOCKS[Mode(mode)]
    if not block:
        return BASE_INSTRUCTIONS
    return f"{BASE_INSTRUCTIONS} \n{block}"


def build_session_update(
    mode: Mode,
    transcription_model: str = TRANSCRIPTION_MODEL,
    turn_detection: Optional[dict] = None,
) -> dict:
    return {
        "type": "session.update",
        "session": {
            "instructions": instructions_for(mode),
            "modalities": ["text", "audio"],
            "input_audio_transcription": {"model": transcription_model},
            # turn detection stays on for transcription, responses are gated client side
            "turn_detection": dict(turn_detection or DEFAULT_TURN_DETECTION),
        },
    }


class ModeController:
    """
    Exactly one of normal / interview / advisor is current. Switching to a
    specialized mode clears the other one; switching to normal clears both.
    """

    def __init__(self, mode: Mode = Mode.NORMAL):
        self.mode = Mode(mode)
        self._listeners: list[Callable[[Mode, Mode], None]] = []

    def subscribe(self, listener: Callable[[Mode, Mode], None]) -> None:
        self._listeners.append(listener)

    @property
    def is_interview(self) -> bool:
        return self.mode == Mode.INTERVIEW

    @property
    def is_advisor(self) -> bool:
        return self.mode == Mode.ADVISOR

    @property
    def is_normal(self) -> bool:
        return self.mode == Mode.NORMAL

    def set_mode(self, target: Mode) -> bool:
        target = Mode(target)
        if target == self.mode:
            return False

        previous = self.mode
        self.mode = target
        logger.info("Mode changed | %s -> %s", previous.value, target.value)

        for listener in list(self._listeners):
            listener(previous, target)
        return True

    def toggle_interview(self) -> Mode:
        self.set_mode(Mode.NORMAL if self.is_interview else Mode.INTERVIEW)
        return self.mode

    def toggle_advisor(self) -> Mode:
        self.set_mode(Mode.NORMAL if self.is_advisor else Mode.ADVISOR)
        return self.mode

    def instructions(self) -> str:
        return instructions_for(self.mode)

    def session_update(self, transcription_model: str = TRANSCRIPTION_MODEL, turn_detection: Optional[dict] = None) -> dict:
        return build_session_update(self.mode, transcription_model, turn_detection)
