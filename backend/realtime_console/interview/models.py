from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


INTERVIEW_TYPES = ("general", "technical", "behavioral", "panel")


@dataclass
class InterviewSettings:
    response_threshold: float = 0.7
    auto_respond: bool = True
    interview_type: str = "general"

    def __post_init__(self):
        selected = str(self.interview_type or "general").strip().lower()
        self.interview_type = selected if selected in INTERVIEW_TYPES else "general"
        self.response_threshold = max(0.0, min(float(self.response_threshold), 1.0))


@dataclass
class SignalMatch:
    """
    Result of running one pattern family over a transcript.
    """
    detected: bool
    confidence: float
    kind: str = ""
    pattern: Optional[str] = None


@dataclass
class ConversationFlow:
    recent_questions: int = 0
    speaker_changes: int = 0
    pace: str = "unknown"  # fast | normal | slow | unknown
    topic_shift: bool = False


@dataclass
class ResponseContext:
    question: str
    context: str
    question_type: str
    response_style: str
    interviewer_confidence: float


@dataclass
class TranscriptAnalysis:
    transcript: str
    timestamp: float
    question: SignalMatch = field(default_factory=lambda: SignalMatch(False, 0.0))
    interviewer: SignalMatch = field(default_factory=lambda: SignalMatch(False, 0.3))
    flow: ConversationFlow = field(default_factory=ConversationFlow)

    should_respond: bool = False
    confidence: float = 0.0
    reason: str = ""
    response_context: Optional[ResponseContext] = None

    @classmethod
    def empty(cls, timestamp: float) -> "TranscriptAnalysis":
        return cls(transcript="", timestamp=timestamp, reason="empty_transcript")
