from realtime_console.cost.calculator import (
    aggregate_costs,
    calculate_chat_completions_cost,
    calculate_realtime_cost,
    calculate_whisper_cost,
    convert_to_inr,
    estimate_audio_duration,
    estimate_stream_cost,
    estimate_tokens,
    format_cost,
)
from realtime_console.cost.models import CostRecord, SessionCostState

__all__ = [
    "CostRecord",
    "SessionCostState",
    "aggregate_costs",
    "calculate_chat_completions_cost",
    "calculate_realtime_cost",
    "calculate_whisper_cost",
    "convert_to_inr",
    "estimate_audio_duration",
    "estimate_stream_cost",
    "estimate_tokens",
    "format_cost",
]
