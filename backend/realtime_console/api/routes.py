import json
import logging
import time
import uuid

import httpx
from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse
from openai import AsyncOpenAI

from core.config import CHAT_MODEL, IMAGE_MODEL, OPENAI_API_KEY, OPENAI_BASE_URL, REALTIME_MODEL, TRANSCRIPTION_MODEL
from core.logger import log_event
from realtime_console.api.schemas import ChatCompletionRequest, ImageAnalysisRequest
from realtime_console.cost.calculator import calculate_chat_completions_cost
from realtime_console.modes.controller import DEFAULT_TURN_DETECTION
from realtime_console.prompts import IMAGE_ANALYSIS_PROMPT, TOKEN_SESSION_INSTRUCTIONS

logger = logging.getLogger("realtime_console.api")

router = APIRouter()
client = AsyncOpenAI(api_key=OPENAI_API_KEY)

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def _usage_dict(usage) -> dict:
    if usage is None:
        return {}
    if isinstance(usage, dict):
        data = dict(usage)
    else:
        data = usage.model_dump()
    details = data.get("completion_tokens_details") or {}
    if isinstance(details, dict) and details.get("reasoning_tokens") and not data.get("reasoning_tokens"):
        data["reasoning_tokens"] = details["reasoning_tokens"]
    return data


def token_session_payload() -> dict:
    return {
        "model": REALTIME_MODEL,
        "voice": "alloy",
        "instructions": TOKEN_SESSION_INSTRUCTIONS,
        "input_audio_format": "pcm16",
        "output_audio_format": "pcm16",
        "input_audio_transcription": {"model": TRANSCRIPTION_MODEL},
        "turn_detection": dict(DEFAULT_TURN_DETECTION),
        "tools": [],
        "tool_choice": "auto",
        "temperature": 0.8,
        "max_response_output_tokens": 4096,
    }


# ----------- Token -----------

@router.get("/token")
async def issue_token():
    try:
        async with httpx.AsyncClient(timeout=15.0) as http_client:
            response = await http_client.post(
                f"{OPENAI_BASE_URL}/realtime/sessions",
                headers={
                    "Authorization": f"Bearer {OPENAI_API_KEY}",
                    "Content-Type": "application/json",
                },
                json=token_session_payload(),
            )
        data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Token generation error | err=%s", exc)
        return JSONResponse(status_code=500, content={"error": "Failed to generate token"})
    return data


# ----------- Chat Completions -----------

@router.post("/api/chat-completions")
async def chat_completions(req: ChatCompletionRequest):
    messages = [message.model_dump() for message in req.messages]
    request_id = f"req_{uuid.uuid4().hex[:12]}"
    log_event("api", "chat_completion", request_id, messages=len(messages), stream=req.stream)

    if not req.stream:
        try:
            response = await client.chat.completions.create(model=CHAT_MODEL, messages=messages)
        except Exception as exc:
            logger.error("Chat completion failed | request=%s err=%s", request_id, exc)
            return JSONResponse(status_code=502, content={"error": str(exc)})
        usage = _usage_dict(response.usage)
        return {
            "content": response.choices[0].message.content or "",
            "usage": usage,
            "cost": calculate_chat_completions_cost(usage) if usage else None,
        }

    async def _events():
        try:
            stream = await client.chat.completions.create(
                model=CHAT_MODEL,
                messages=messages,
                stream=True,
                stream_options={"include_usage": True},
            )
            usage = {}
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield _sse({"type": "chunk", "content": chunk.choices[0].delta.content})
                if getattr(chunk, "usage", None) is not None:
                    usage = _usage_dict(chunk.usage)
            yield _sse({"type": "done", "cost": calculate_chat_completions_cost(usage) if usage else None})
        except Exception as exc:
            logger.error("Chat completion stream failed | request=%s err=%s", request_id, exc)
            yield _sse({"type": "error", "error": str(exc)})

    return StreamingResponse(_events(), media_type="text/event-stream", headers=SSE_HEADERS)


# ----------- Image Analysis -----------

def build_image_messages(req: ImageAnalysisRequest) -> list[dict]:
    messages: list[dict] = [{"role": "system", "content": IMAGE_ANALYSIS_PROMPT}]
    for item in req.conversation_history:
        content = str(item.content or "").strip()
        if not content:
            continue
        role = "assistant" if item.type == "assistant" else "user"
        messages.append({"role": role, "content": content})
    messages.append({
        "role": "user",
        "content": [
            {"type": "text", "text": req.text},
            {"type": "image_url", "image_url": {"url": req.image}},
        ],
    })
    return messages


@router.post("/api/analyze-image")
async def analyze_image(req: ImageAnalysisRequest):
    request_id = f"req_{uuid.uuid4().hex[:12]}"
    started = time.monotonic()

    if not req.text or not req.image:
        logger.info("Missing required data | request=%s text=%s image=%s", request_id, bool(req.text), bool(req.image))
        return JSONResponse(status_code=400, content={"error": "Missing text or image data"})

    messages = build_image_messages(req)
    log_event("api", "analyze_image", request_id, history=len(req.conversation_history), image_chars=len(req.image), stream=req.stream)

    if not req.stream:
        try:
            response = await client.chat.completions.create(model=IMAGE_MODEL, messages=messages)
        except Exception as exc:
            logger.error("Image analysis failed | request=%s err=%s", request_id, exc)
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "requestId": request_id, "duration": time.monotonic() - started},
            )
        if not response.choices:
            return JSONResponse(status_code=500, content={"error": "No analysis result received"})
        usage = _usage_dict(response.usage)
        return {
            "analysis": response.choices[0].message.content or "",
            "usage": usage,
            "cost": calculate_chat_completions_cost(usage),
        }

    async def _events():
        analysis = ""
        usage = {}
        try:
            stream = await client.chat.completions.create(
                model=IMAGE_MODEL,
                messages=messages,
                stream=True,
                stream_options={"include_usage": True},
            )
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    analysis += chunk.choices[0].delta.content
                    yield _sse({"content": chunk.choices[0].delta.content})
                if getattr(chunk, "usage", None) is not None:
                    usage = _usage_dict(chunk.usage)
        except Exception as exc:
            logger.error("Image analysis stream failed | request=%s err=%s", request_id, exc)
            yield _sse({"error": str(exc)})
            return

        logger.info("Image analysis completed | request=%s chars=%s elapsed=%.2fs", request_id, len(analysis), time.monotonic() - started)
        yield _sse({
            "type": "complete",
            "analysis": analysis or "Analysis completed",
            "usage": usage,
            "cost": calculate_chat_completions_cost(usage),
        })

    return StreamingResponse(_events(), media_type="text/event-stream", headers=SSE_HEADERS)
