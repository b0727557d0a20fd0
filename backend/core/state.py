# backend/core/state.py

from enum import Enum


class SessionStatus(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    ACTIVE = "active"
    CLOSED = "closed"


class Mode(str, Enum):
    NORMAL = "normal"
    INTERVIEW = "interview"
    ADVISOR = "advisor"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class CostKind(str, Enum):
    REALTIME_RESPONSE = "realtime_response"
    IMAGE_ANALYSIS = "image_analysis"
    AUDIO_TRANSCRIPTION = "audio_transcription"
    CHAT_COMPLETION = "chat_completion"
