from realtime_console.interview.analyzer import ConversationAnalyzer
from realtime_console.interview.models import (
    ConversationFlow,
    InterviewSettings,
    ResponseContext,
    SignalMatch,
    TranscriptAnalysis,
)
from realtime_console.interview.prompts import build_interview_prompt

__all__ = [
    "ConversationAnalyzer",
    "ConversationFlow",
    "InterviewSettings",
    "ResponseContext",
    "SignalMatch",
    "TranscriptAnalysis",
    "build_interview_prompt",
]
