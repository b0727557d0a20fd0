from realtime_console.session.collaborators import (
    AudioCapture,
    AudioHandle,
    Channel,
    ChannelNegotiator,
    HttpTokenProvider,
    MediaCaptureError,
    NullAudioCapture,
    TokenProvider,
)
from realtime_console.session.lifecycle import SessionLifecycleManager
from realtime_console.session.models import EventLog, ListeningState, ResponseGenerationState, Session
from realtime_console.session.scheduler import DelayedScheduler

__all__ = [
    "AudioCapture",
    "AudioHandle",
    "Channel",
    "ChannelNegotiator",
    "DelayedScheduler",
    "EventLog",
    "HttpTokenProvider",
    "ListeningState",
    "MediaCaptureError",
    "NullAudioCapture",
    "ResponseGenerationState",
    "Session",
    "SessionLifecycleManager",
    "TokenProvider",
]
