from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

import httpx

from core.config import CONSOLE_BASE_URL
from realtime_console.errors import SessionSetupError

logger = logging.getLogger("realtime_console.collaborators")

OPTIMAL_AUDIO_CONSTRAINTS = {
    "sample_rate": 24000,
    "channel_count": 1,
    "echo_cancellation": True,
    "noise_suppression": True,
    "auto_gain_control": True,
}
BASIC_AUDIO_CONSTRAINTS: dict = {}

# capture failure names -> setup categories
_CAPTURE_CATEGORIES = {
    "NotAllowedError": "permission_denied",
    "NotFoundError": "device_not_found",
    "NotSupportedError": "unsupported",
    "SecurityError": "security",
}

_CAPTURE_MESSAGES = {
    "permission_denied": (
        "Please allow microphone access when prompted. On Android: Check browser "
        "permissions in Settings > Apps > Chrome > Permissions > Microphone."
    ),
    "device_not_found": "No microphone found on this device.",
    "unsupported": "Microphone access not supported on this device/browser.",
    "security": "Microphone access blocked. Try refreshing the page and allowing permissions.",
}


class MediaCaptureError(Exception):
    def __init__(self, name: str, message: str = ""):
        self.name = str(name or "Error")
        super().__init__(message or self.name)


def categorize_capture_error(exc: MediaCaptureError) -> SessionSetupError:
    category = _CAPTURE_CATEGORIES.get(exc.name, "unknown")
    detail = _CAPTURE_MESSAGES.get(category) or f"Error: {exc}"
    return SessionSetupError(category, f"Could not access microphone. {detail}")


# -------------------------
# PROTOCOLS
# -------------------------

EventHandler = Callable[[dict], None]
CloseHandler = Callable[[Optional[Exception]], None]


class TokenProvider(Protocol):
    async def fetch(self) -> str: ...


class AudioHandle(Protocol):
    def set_enabled(self, enabled: bool) -> None: ...

    def stop(self) -> None: ...


class AudioCapture(Protocol):
    async def acquire(self, constraints: dict) -> AudioHandle: ...


class Channel(Protocol):
    def send(self, event: dict) -> None: ...

    def listen(self, on_event: EventHandler, on_close: CloseHandler) -> None: ...

    async def close(self) -> None: ...


class ChannelNegotiator(Protocol):
    async def open(self, credential: str, audio: AudioHandle) -> Channel: ...


# -------------------------
# CONCRETE COLLABORATORS
# -------------------------

class HttpTokenProvider:
    """Fetches the ephemeral realtime credential from the relay's ``GET /token``."""

    def __init__(self, base_url: str = CONSOLE_BASE_URL, timeout_sec: float = 10.0):
        self.url = f"{str(base_url or '').rstrip('/')}/token"
        self.timeout_sec = float(timeout_sec)

    async def fetch(self) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_sec) as client:
                response = await client.get(self.url)
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SessionSetupError("credential", f"Failed to get ephemeral token: {exc}") from exc

        return extract_client_secret(data)


def extract_client_secret(data: dict) -> str:
    secret = (data or {}).get("client_secret") if isinstance(data, dict) else None
    value = secret.get("value") if isinstance(secret, dict) else None
    if not str(value or "").strip():
        raise SessionSetupError("credential", "Failed to get ephemeral token")
    return str(value).strip()


class NullAudioHandle:
    def __init__(self, constraints: dict):
        self.constraints = dict(constraints or {})
        self.enabled = True
        self.stopped = False

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = bool(enabled)

    def stop(self) -> None:
        self.stopped = True
        self.enabled = False


class NullAudioCapture:
    """
    Capture stand-in for headless runs where audio arrives through another
    path (or not at all) and only text is exchanged over the channel.
    """

    async def acquire(self, constraints: dict) -> NullAudioHandle:
        return NullAudioHandle(constraints)

