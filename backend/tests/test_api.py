import json
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient

from realtime_console.api import routes
from realtime_console.api.main import app
from realtime_console.prompts import IMAGE_ANALYSIS_PROMPT


class _FakeStream:
    def __init__(self, chunks):
        self.chunks = chunks

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            yield chunk


def _chunk(content=None, usage=None):
    choices = [SimpleNamespace(delta=SimpleNamespace(content=content))] if content is not None else []
    return SimpleNamespace(choices=choices, usage=usage)


def _completion(content: str, usage: dict):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))], usage=usage)


def _payloads(text: str) -> list[dict]:
    return [json.loads(line[len("data: "):]) for line in text.splitlines() if line.startswith("data: ")]


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def fake_openai(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def _install(result=None, error=None):
        async def _fake_create(*args, **kwargs):
            calls.append(kwargs)
            if error is not None:
                raise error
            return result(kwargs) if callable(result) else result

        monkeypatch.setattr(routes.client.chat.completions, "create", _fake_create)
        return calls

    return _install


# ----------- Token -----------

def _patch_http(monkeypatch: pytest.MonkeyPatch, handler):
    real_client = httpx.AsyncClient

    def _client(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(routes.httpx, "AsyncClient", _client)


def test_token_relays_vendor_session(client, monkeypatch: pytest.MonkeyPatch):
    seen = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        assert request.url.path.endswith("/realtime/sessions")
        assert request.headers["Authorization"].startswith("Bearer ")
        return httpx.Response(200, json={"client_secret": {"value": "ek_123"}})

    _patch_http(monkeypatch, _handler)
    response = client.get("/token")

    assert response.status_code == 200
    assert response.json()["client_secret"]["value"] == "ek_123"
    assert seen[0]["input_audio_transcription"] == {"model": "whisper-1"}
    assert seen[0]["turn_detection"]["type"] == "server_vad"
    assert seen[0]["max_response_output_tokens"] == 4096


def test_token_failure_returns_500(client, monkeypatch: pytest.MonkeyPatch):
    def _refuse(request: httpx.Request):
        raise httpx.ConnectError("refused", request=request)

    _patch_http(monkeypatch, _refuse)
    response = client.get("/token")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate token"}


# ----------- Chat Completions -----------

def test_chat_completions_streams_chunks_then_cost(client, fake_openai):
    calls = fake_openai(_FakeStream([
        _chunk("Hel"),
        _chunk("lo"),
        _chunk(usage={"prompt_tokens": 1000, "completion_tokens": 1000}),
    ]))

    response = client.post("/api/chat-completions", json={"messages": [{"role": "user", "content": "hi"}]})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    payloads = _payloads(response.text)
    assert [p["type"] for p in payloads] == ["chunk", "chunk", "done"]
    assert payloads[-1]["cost"]["total_cost"] == pytest.approx(0.015)
    assert calls[0]["stream"] is True
    assert calls[0]["stream_options"] == {"include_usage": True}


def test_chat_completions_stream_error_payload(client, fake_openai):
    fake_openai(error=RuntimeError("upstream down"))

    response = client.post("/api/chat-completions", json={"messages": [{"role": "user", "content": "hi"}]})

    assert _payloads(response.text) == [{"type": "error", "error": "upstream down"}]


def test_chat_completions_non_streaming(client, fake_openai):
    fake_openai(_completion("Paris", {"prompt_tokens": 10, "completion_tokens": 5}))

    response = client.post(
        "/api/chat-completions",
        json={"messages": [{"role": "user", "content": "capital?"}], "stream": False},
    )

    body = response.json()
    assert body["content"] == "Paris"
    assert body["cost"]["breakdown"]["prompt_tokens"] == 10


# ----------- Image Analysis -----------

def test_analyze_image_requires_text_and_image(client):
    response = client.post("/api/analyze-image", json={"text": "what is this"})
    assert response.status_code == 400


def test_analyze_image_builds_vision_messages(client, fake_openai):
    calls = fake_openai(_completion("A chart", {"prompt_tokens": 100, "completion_tokens": 20}))

    response = client.post(
        "/api/analyze-image",
        json={
            "text": "what is this",
            "image": "data:image/png;base64,AA",
            "conversationHistory": [
                {"type": "user", "content": "earlier"},
                {"type": "assistant", "content": "reply"},
                {"type": "user", "content": "  "},
            ],
            "stream": False,
        },
    )

    assert response.status_code == 200
    assert response.json()["analysis"] == "A chart"

    messages = calls[0]["messages"]
    assert messages[0] == {"role": "system", "content": IMAGE_ANALYSIS_PROMPT}
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert messages[-1]["content"][1] == {"type": "image_url", "image_url": {"url": "data:image/png;base64,AA"}}


def test_analyze_image_streams_content_then_complete(client, fake_openai):
    fake_openai(_FakeStream([_chunk("A "), _chunk("dog"), _chunk(usage={"prompt_tokens": 50})]))

    response = client.post(
        "/api/analyze-image",
        json={"text": "what", "image": "data:image/png;base64,AA"},
    )

    payloads = _payloads(response.text)
    assert payloads[0] == {"content": "A "}
    assert payloads[-1]["type"] == "complete"
    assert payloads[-1]["analysis"] == "A dog"
    assert payloads[-1]["cost"]["total_cost"] == pytest.approx(50 * 0.003 / 1000)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
