from __future__ import annotations

from dataclasses import dataclass, field

from core import config
from realtime_console.interview.models import InterviewSettings
from realtime_console.modes.controller import DEFAULT_TURN_DETECTION


@dataclass
class ConsoleSettings:
    cost_limit: float = 5.0
    max_responses: int = 50

    # seconds
    transcription_settle_delay: float = 0.1
    auto_resume_delay: float = 0.5
    interview_response_delay: float = 1.0

    auto_response_max_tokens: int = 500
    advice_max_tokens: int = 300
    advice_context_entries: int = 10

    transcription_model: str = "whisper-1"
    turn_detection: dict = field(default_factory=lambda: dict(DEFAULT_TURN_DETECTION))
    interview: InterviewSettings = field(default_factory=InterviewSettings)

    event_log_limit: int = 500

    @classmethod
    def from_env(cls) -> "ConsoleSettings":
        return cls(
            cost_limit=config.COST_LIMIT_USD,
            max_responses=config.MAX_RESPONSES_PER_SESSION,
            transcription_model=config.TRANSCRIPTION_MODEL,
        )

    @classmethod
    def immediate(cls, **overrides) -> "ConsoleSettings":
        """All delays zeroed, used by tests and scripted runs."""
        values = {
            "transcription_settle_delay": 0.0,
            "auto_resume_delay": 0.0,
            "interview_response_delay": 0.0,
        }
        values.update(overrides)
        return cls(**values)
