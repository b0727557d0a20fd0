from __future__ import annotations


MOBILE_MICROPHONE_HINT = (
    "\n\nFor Android/Mobile devices over HTTP:\n"
    "- Make sure you're using Chrome or Firefox\n"
    "- Allow microphone permissions when prompted\n"
    "- Check Android Settings > Apps > Chrome > Permissions > Microphone\n"
    "- Try refreshing the page and allowing permissions again\n"
    "- Make sure no other apps are using the microphone"
)

SETUP_CATEGORIES = {
    "credential",
    "permission_denied",
    "device_not_found",
    "unsupported",
    "security",
    "negotiation",
    "unknown",
}

_MICROPHONE_CATEGORIES = {"permission_denied", "device_not_found", "unsupported", "security"}


class ConsoleError(Exception):
    """Base class for every error raised by the realtime console."""


class SessionSetupError(ConsoleError):
    """
    Fatal to a start attempt. The session is back in Idle when this is raised
    and the user has to retry manually.
    """

    def __init__(self, category: str, message: str):
        normalized = str(category or "unknown").strip().lower()
        self.category = normalized if normalized in SETUP_CATEGORIES else "unknown"
        self.detail = str(message or "").strip()
        super().__init__(self.detail or self.category)

    @property
    def is_microphone_failure(self) -> bool:
        return self.category in _MICROPHONE_CATEGORIES

    @property
    def user_message(self) -> str:
        text = f"Failed to start session: {self.detail or self.category}"
        if self.is_microphone_failure:
            text += MOBILE_MICROPHONE_HINT
        return text


class TransportError(ConsoleError):
    """Channel closed unexpectedly or a send was attempted while not Active."""


class ProtocolError(ConsoleError):
    def __init__(self, error_type: str, message: str):
        self.error_type = str(error_type or "unknown")
        self.message = str(message or "")
        super().__init__(f"{self.error_type}: {self.message}")

    @classmethod
    def from_event(cls, event: dict) -> "ProtocolError":
        error = (event or {}).get("error") or {}
        if not isinstance(error, dict):
            error = {"message": str(error)}
        return cls(error.get("type") or "Unknown", error.get("message") or "No message")

    @property
    def is_benign(self) -> bool:
        # concurrent response.create calls collide on the vendor side
        return self.error_type == "invalid_request_error" and "active response" in self.message

    @property
    def user_message(self) -> str:
        return f"API Error: {self.error_type} - {self.message}"


class StreamingError(ConsoleError):
    """A chat-completion or image-analysis stream broke off mid-response."""

    def __init__(self, message: str, partial_content: str = ""):
        self.partial_content = str(partial_content or "")
        super().__init__(message)
