from __future__ import annotations

import logging
import re
import time
from typing import Optional

from realtime_console.interview.models import (
    ConversationFlow,
    ResponseContext,
    SignalMatch,
    TranscriptAnalysis,
)

logger = logging.getLogger("realtime_console.interview")

HISTORY_LIMIT = 20
FLOW_WINDOW = 3
CONTEXT_WINDOW = 5

# -------------------------
# PATTERNS (order matters: first match wins)
# -------------------------

QUESTION_PATTERNS = [
    re.compile(r"\b(what|how|why|when|where|who|which|whose|whom)\b", re.I),
    re.compile(r"\b(can you|could you|would you|will you|do you|did you|have you|are you|is it|was it)\b", re.I),
    re.compile(r"\b(tell me about|describe|explain|walk me through|give me an example)\b", re.I),
    re.compile(r"\b(what's your|how do you|what would you|how would you)\b", re.I),
    re.compile(r"\b(could you clarify|what do you mean|can you elaborate)\b", re.I),
]

RISING_WORDS = ("right", "okay", "yes", "no", "correct", "true", "false")

INTERVIEWER_TRANSITIONS = [
    re.compile(r"\b(next question|moving on|let's talk about|another question)\b", re.I),
    re.compile(r"\b(thank you|thanks|okay|alright|good|great|excellent)\b.*\b(now|next|so)\b", re.I),
    re.compile(r"\b(final question|last question|one more thing)\b", re.I),
]

INTERVIEWER_FORMAL = [
    re.compile(r"\b(we're looking for|we need|the role requires|this position)\b", re.I),
    re.compile(r"\b(our company|our team|we offer|we provide)\b", re.I),
    re.compile(r"\b(interview|position|role|candidate|experience|qualifications)\b", re.I),
]

TOPIC_KEYWORDS = (
    "experience", "background", "technical", "project", "team", "challenge",
    "achievement", "goal", "skill", "technology", "role", "responsibility",
)

RESPONSE_STYLES = [
    ("experience_focused", ("experience", "background")),
    ("technical_explanation", ("technical", "how do you")),
    ("example_based", ("example", "tell me about")),
    ("motivation_focused", ("why", "what motivates")),
]


def detect_question(transcript: str) -> SignalMatch:
    text = str(transcript or "").lower().strip()

    if text.endswith("?"):
        return SignalMatch(True, 0.9, kind="punctuation")

    for pattern in QUESTION_PATTERNS:
        if pattern.search(text):
            return SignalMatch(True, 0.8, kind="pattern", pattern=pattern.pattern)

    if any(text.endswith(word) for word in RISING_WORDS):
        return SignalMatch(True, 0.6, kind="intonation")

    return SignalMatch(False, 0.0)


def detect_interviewer(transcript: str) -> SignalMatch:
    text = str(transcript or "").lower()

    for pattern in INTERVIEWER_TRANSITIONS:
        if pattern.search(text):
            return SignalMatch(True, 0.9, kind="transition", pattern=pattern.pattern)

    for pattern in INTERVIEWER_FORMAL:
        if pattern.search(text):
            return SignalMatch(True, 0.7, kind="formal", pattern=pattern.pattern)

    return SignalMatch(False, 0.3)


def determine_response_style(transcript: str) -> str:
    text = str(transcript or "").lower()
    for style, keywords in RESPONSE_STYLES:
        if any(keyword in text for keyword in keywords):
            return style
    return "general_professional"


def _topics(text: str) -> list[str]:
    lowered = str(text or "").lower()
    return [keyword for keyword in TOPIC_KEYWORDS if keyword in lowered]


class ConversationAnalyzer:
    """
    Decides, in interview mode, whether an inbound transcript is a question
    the assistant should answer. Keeps a bounded history per session.
    """

    def __init__(self, history_limit: int = HISTORY_LIMIT):
        self.history_limit = max(1, int(history_limit))
        self.history: list[TranscriptAnalysis] = []

    def analyze(self, transcript: str, timestamp: Optional[float] = None) -> TranscriptAnalysis:
        now = float(timestamp if timestamp is not None else time.time())
        clean = str(transcript or "").strip()
        if not clean:
            return TranscriptAnalysis.empty(now)

        analysis = TranscriptAnalysis(
            transcript=clean,
            timestamp=now,
            question=detect_question(clean),
            interviewer=detect_interviewer(clean),
            flow=self._analyze_flow(clean),
        )

        self._add_to_history(analysis)
        self._decide(analysis)

        logger.debug(
            "Transcript analyzed | respond=%s confidence=%.2f reason=%s",
            analysis.should_respond,
            analysis.confidence,
            analysis.reason,
        )
        return analysis

    def reset(self) -> None:
        self.history = []

    # -------------------------
    # DECISION
    # -------------------------

    def _decide(self, analysis: TranscriptAnalysis) -> None:
        question = analysis.question

        if not question.detected:
            analysis.reason = "no_question_detected"
            return

        if question.confidence > 0.8 and analysis.interviewer.detected:
            self._respond(analysis, 0.9, "clear_interviewer_question")
            return

        if question.confidence > 0.7 and analysis.flow.recent_questions > 0:
            self._respond(analysis, 0.7, "likely_question_in_interview_context")
            return

        if question.confidence > 0.5 and self.has_recent_interview_activity():
            self._respond(analysis, 0.5, "possible_question_in_interview")
            return

        analysis.reason = "insufficient_confidence"

    def _respond(self, analysis: TranscriptAnalysis, confidence: float, reason: str) -> None:
        analysis.should_respond = True
        analysis.confidence = confidence
        analysis.reason = reason
        analysis.response_context = self._build_response_context(analysis)

    def _build_response_context(self, analysis: TranscriptAnalysis) -> ResponseContext:
        recent = " ".join(entry.transcript for entry in self.history[-CONTEXT_WINDOW:])
        return ResponseContext(
            question=analysis.transcript,
            context=recent,
            question_type=analysis.question.kind,
            response_style=determine_response_style(analysis.transcript),
            interviewer_confidence=analysis.interviewer.confidence,
        )

    # -------------------------
    # FLOW SIGNALS
    # -------------------------

    def _analyze_flow(self, transcript: str) -> ConversationFlow:
        recent = self.history[-FLOW_WINDOW:]
        return ConversationFlow(
            recent_questions=sum(1 for entry in recent if entry.question.detected),
            speaker_changes=self._speaker_changes(recent),
            pace=self._pace(recent),
            topic_shift=self._topic_shift(transcript, recent),
        )

    @staticmethod
    def _speaker_changes(recent: list[TranscriptAnalysis]) -> int:
        changes = 0
        for previous, current in zip(recent, recent[1:]):
            if previous.interviewer.detected != current.interviewer.detected:
                changes += 1
        return changes

    @staticmethod
    def _pace(recent: list[TranscriptAnalysis]) -> str:
        if len(recent) < 2:
            return "unknown"
        span = recent[-1].timestamp - recent[0].timestamp
        if span <= 0:
            return "fast"
        entries_per_minute = (len(recent) / span) * 60.0
        if entries_per_minute > 10:
            return "fast"
        if entries_per_minute > 5:
            return "normal"
        return "slow"

    @staticmethod
    def _topic_shift(transcript: str, recent: list[TranscriptAnalysis]) -> bool:
        if not recent:
            return False
        current_topics = _topics(transcript)
        recent_topics = {topic for entry in recent[-2:] for topic in _topics(entry.transcript)}
        common = [topic for topic in current_topics if topic in recent_topics]
        return len(common) < len(current_topics) * 0.5

    def has_recent_interview_activity(self) -> bool:
        return any(
            entry.question.detected or entry.interviewer.detected
            for entry in self.history[-CONTEXT_WINDOW:]
        )

    def _add_to_history(self, analysis: TranscriptAnalysis) -> None:
        self.history.append(analysis)
        if len(self.history) > self.history_limit:
            self.history = self.history[-self.history_limit:]

    # -------------------------
    # SUMMARY
    # -------------------------

    def summary(self) -> dict:
        questions = [entry for entry in self.history if entry.question.detected]
        interviewer = [entry for entry in self.history if entry.interviewer.detected]
        average = (
            sum(entry.question.confidence for entry in questions) / len(questions)
            if questions
            else 0.0
        )
        duration = self.history[-1].timestamp - self.history[0].timestamp if self.history else 0.0
        return {
            "total_entries": len(self.history),
            "total_questions": len(questions),
            "interviewer_statements": len(interviewer),
            "average_question_confidence": average,
            "conversation_duration": duration,
        }
