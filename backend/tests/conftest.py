import os
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("OPENAI_API_KEY", "test-key")

from realtime_console.console import RealtimeConsole  # noqa: E402
from realtime_console.errors import SessionSetupError  # noqa: E402
from realtime_console.session.collaborators import MediaCaptureError  # noqa: E402
from realtime_console.settings import ConsoleSettings  # noqa: E402


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")


# -------------------------
# FAKE COLLABORATORS
# -------------------------

class FakeChannel:
    def __init__(self):
        self.sent = []
        self.on_event = None
        self.on_close = None
        self.closed = False

    def send(self, event: dict):
        self.sent.append(event)

    def listen(self, on_event, on_close):
        self.on_event = on_event
        self.on_close = on_close

    async def close(self):
        self.closed = True

    def emit(self, event: dict):
        self.on_event(event)

    def drop(self, reason=None):
        self.on_close(reason)

    def types(self) -> list[str]:
        return [event["type"] for event in self.sent]

    def of_type(self, event_type: str) -> list[dict]:
        return [event for event in self.sent if event["type"] == event_type]


class FakeTokenProvider:
    def __init__(self, error: Exception = None):
        self.error = error
        self.calls = 0

    async def fetch(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return "ek_test"


class FakeAudioHandle:
    def __init__(self, constraints: dict):
        self.constraints = constraints
        self.enabled = True
        self.stopped = False

    def set_enabled(self, enabled: bool):
        self.enabled = enabled

    def stop(self):
        self.stopped = True


class FakeAudioCapture:
    def __init__(self, failures: list = None):
        self.failures = list(failures or [])
        self.requests = []
        self.handle = None

    async def acquire(self, constraints: dict):
        self.requests.append(constraints)
        if self.failures:
            raise MediaCaptureError(self.failures.pop(0), "capture failed")
        self.handle = FakeAudioHandle(constraints)
        return self.handle


class FakeNegotiator:
    def __init__(self, error: Exception = None):
        self.error = error
        self.channel = FakeChannel()
        self.credentials = []

    async def open(self, credential: str, audio):
        self.credentials.append(credential)
        if self.error is not None:
            raise self.error
        return self.channel


class FakeChatClient:
    def __init__(self, stream_result=None, stream_error=None, complete_result=None, complete_error=None):
        self.stream_result = stream_result
        self.stream_error = stream_error
        self.complete_result = complete_result
        self.complete_error = complete_error
        self.calls = []

    async def stream(self, messages, on_chunk=None):
        self.calls.append(("stream", messages))
        if self.stream_error is not None:
            raise self.stream_error
        if on_chunk is not None:
            on_chunk(self.stream_result["content"][:1])
        return self.stream_result

    async def complete(self, messages):
        self.calls.append(("complete", messages))
        if self.complete_error is not None:
            raise self.complete_error
        return self.complete_result


class FakeImageClient:
    def __init__(self, result=None, error=None, once_result=None, once_error=None):
        self.result = result
        self.error = error
        self.once_result = once_result
        self.once_error = once_error
        self.calls = []

    async def analyze(self, text, image, history, on_chunk=None):
        self.calls.append(("analyze", text, image, history))
        if self.error is not None:
            raise self.error
        return self.result

    async def analyze_once(self, text, image, history):
        self.calls.append(("analyze_once", text, image, history))
        if self.once_error is not None:
            raise self.once_error
        return self.once_result


@pytest.fixture
def make_console():
    def _make(
        token_error: Exception = None,
        audio_failures: list = None,
        negotiation_error: Exception = None,
        chat_client=None,
        image_client=None,
        **overrides,
    ):
        token_provider = FakeTokenProvider(token_error)
        audio = FakeAudioCapture(audio_failures)
        negotiator = FakeNegotiator(negotiation_error)
        console = RealtimeConsole(
            token_provider=token_provider,
            negotiator=negotiator,
            audio_capture=audio,
            settings=ConsoleSettings.immediate(**overrides),
            chat_client=chat_client or FakeChatClient(),
            image_client=image_client or FakeImageClient(),
        )
        console.fakes = {
            "token_provider": token_provider,
            "audio": audio,
            "negotiator": negotiator,
            "channel": negotiator.channel,
        }
        return console

    return _make


@pytest.fixture
def credential_error() -> SessionSetupError:
    return SessionSetupError("credential", "Failed to get ephemeral token")
