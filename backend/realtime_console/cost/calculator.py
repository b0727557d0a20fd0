from __future__ import annotations

import math

from core.config import USD_TO_INR_RATE
from core.state import CostKind


REALTIME_MODEL = "gpt-4o-realtime-preview"
CHAT_MODEL = "o1-mini"
WHISPER_MODEL = "whisper-1"

# USD per 1000 tokens, whisper per minute
PRICING = {
    REALTIME_MODEL: {
        "input_text": 0.005,
        "output_text": 0.02,
        "input_audio": 0.10,
        "output_audio": 0.20,
    },
    CHAT_MODEL: {
        "input": 0.003,
        "output": 0.012,
        "reasoning": 0.003,
    },
    WHISPER_MODEL: {
        "per_minute": 0.006,
    },
}

CHARS_PER_TOKEN = 4
AUDIO_TOKENS_PER_MINUTE = 1500


def _count(usage: dict, key: str) -> int:
    try:
        return max(0, int((usage or {}).get(key) or 0))
    except (TypeError, ValueError):
        return 0


def _realtime_counts(usage: dict) -> dict:
    """
    Accepts both the flat shape and the vendor's nested
    ``input_token_details`` / ``output_token_details`` shape.
    """
    usage = usage or {}
    counts = {
        "input_text_tokens": _count(usage, "input_text_tokens"),
        "output_text_tokens": _count(usage, "output_text_tokens"),
        "input_audio_tokens": _count(usage, "input_audio_tokens"),
        "output_audio_tokens": _count(usage, "output_audio_tokens"),
    }
    input_details = usage.get("input_token_details")
    if isinstance(input_details, dict):
        counts["input_text_tokens"] = counts["input_text_tokens"] or _count(input_details, "text_tokens")
        counts["input_audio_tokens"] = counts["input_audio_tokens"] or _count(input_details, "audio_tokens")
    output_details = usage.get("output_token_details")
    if isinstance(output_details, dict):
        counts["output_text_tokens"] = counts["output_text_tokens"] or _count(output_details, "text_tokens")
        counts["output_audio_tokens"] = counts["output_audio_tokens"] or _count(output_details, "audio_tokens")
    return counts


def calculate_realtime_cost(usage: dict) -> dict:
    pricing = PRICING[REALTIME_MODEL]
    counts = _realtime_counts(usage)

    input_text_cost = counts["input_text_tokens"] * pricing["input_text"] / 1000
    output_text_cost = counts["output_text_tokens"] * pricing["output_text"] / 1000
    input_audio_cost = counts["input_audio_tokens"] * pricing["input_audio"] / 1000
    output_audio_cost = counts["output_audio_tokens"] * pricing["output_audio"] / 1000

    return {
        "model": REALTIME_MODEL,
        "input_text_cost": input_text_cost,
        "output_text_cost": output_text_cost,
        "input_audio_cost": input_audio_cost,
        "output_audio_cost": output_audio_cost,
        "total_cost": input_text_cost + output_text_cost + input_audio_cost + output_audio_cost,
        "breakdown": counts,
    }


def calculate_chat_completions_cost(usage: dict) -> dict:
    pricing = PRICING[CHAT_MODEL]
    usage = usage or {}
    reasoning_tokens = _count(usage, "reasoning_tokens")
    details = usage.get("completion_tokens_details")
    if not reasoning_tokens and isinstance(details, dict):
        reasoning_tokens = _count(details, "reasoning_tokens")

    input_cost = _count(usage, "prompt_tokens") * pricing["input"] / 1000
    output_cost = _count(usage, "completion_tokens") * pricing["output"] / 1000
    reasoning_cost = reasoning_tokens * pricing["reasoning"] / 1000

    return {
        "model": CHAT_MODEL,
        "input_cost": input_cost,
        "output_cost": output_cost,
        "reasoning_cost": reasoning_cost,
        "total_cost": input_cost + output_cost + reasoning_cost,
        "breakdown": {
            "prompt_tokens": _count(usage, "prompt_tokens"),
            "completion_tokens": _count(usage, "completion_tokens"),
            "reasoning_tokens": reasoning_tokens,
            "total_tokens": _count(usage, "total_tokens"),
        },
    }


def calculate_whisper_cost(duration_minutes: float) -> dict:
    rate = PRICING[WHISPER_MODEL]["per_minute"]
    minutes = max(0.0, float(duration_minutes or 0.0))
    return {
        "model": WHISPER_MODEL,
        "total_cost": minutes * rate,
        "breakdown": {
            "duration_minutes": minutes,
            "rate_per_minute": rate,
        },
    }


def estimate_tokens(text: str) -> int:
    return int(math.ceil(len(str(text or "")) / CHARS_PER_TOKEN))


def estimate_stream_cost(text: str, category: str = "output_text") -> dict:
    """
    Provisional cost for text whose authoritative usage is not known yet.
    Token count is approximated from character length.
    """
    rate = PRICING[REALTIME_MODEL].get(category)
    if rate is None:
        raise ValueError(f"unknown realtime token category: {category}")
    tokens = estimate_tokens(text)
    return {
        "model": REALTIME_MODEL,
        "total_cost": tokens * rate / 1000,
        "breakdown": {f"{category}_tokens": tokens},
    }


def estimate_audio_duration(audio_tokens: int) -> float:
    return max(0, int(audio_tokens or 0)) / AUDIO_TOKENS_PER_MINUTE


def convert_to_inr(usd_amount: float) -> float:
    return float(usd_amount or 0.0) * USD_TO_INR_RATE


def format_cost(cost: float) -> str:
    inr_cost = convert_to_inr(cost)
    if inr_cost < 0.01:
        return f"₹{inr_cost:.4f}"
    return f"₹{inr_cost:.2f}"


def aggregate_costs(records: list) -> dict:
    total_cost = sum(float(record.total_cost) for record in records)
    breakdown = {kind.value: [] for kind in CostKind}
    for record in records:
        breakdown[CostKind(record.kind).value].append(record)

    return {
        "total_cost": total_cost,
        "formatted_cost": format_cost(total_cost),
        "totals_by_kind": {
            kind: sum(float(item.total_cost) for item in items)
            for kind, items in breakdown.items()
        },
        "breakdown": breakdown,
        "request_count": len(records),
    }
