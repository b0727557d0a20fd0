import json
import logging
from typing import Any, Optional

logger = logging.getLogger("realtime_console.events")

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

# fields that carry spoken or typed conversation text
CONVERSATION_FIELDS = frozenset({"text", "transcript", "delta", "content", "prompt", "instructions", "analysis"})


def redact(value: Any, field: str = "") -> Any:
	"""
	Replace conversation text with its length, walking nested dicts and lists.
	Realtime events nest text a few levels down (item.content[].text), so the
	field name travels with list items.
	"""
	if str(field or "").lower() in CONVERSATION_FIELDS:
		return {"redacted": True, "length": len(str(value or ""))}
	if isinstance(value, dict):
		return {str(key): redact(item, key) for key, item in value.items()}
	if isinstance(value, (list, tuple, set)):
		return [redact(item, field) for item in value]
	if value is None or isinstance(value, (str, int, float, bool)):
		return value
	return str(value)


def log_event(component: str, event: str, session_id: Optional[str], level: int = logging.INFO, **fields) -> None:
	if not logger.isEnabledFor(level):
		return
	payload = {
		"component": str(component or "console"),
		"event": str(event or "unknown"),
		"session_id": str(session_id or ""),
	}
	payload.update(redact(fields))
	logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


def log_wire_event(direction: str, event: dict, session_id: Optional[str]) -> None:
	"""Realtime protocol traffic, one DEBUG line per event."""
	body = dict(event or {})
	log_event(
		"channel",
		str(body.pop("type", None) or "unknown"),
		session_id,
		level=logging.DEBUG,
		direction=direction,
		event_id=body.pop("event_id", None),
		body=body,
	)


def configure_logging(level: int = logging.INFO) -> None:
	logging.basicConfig(format=LOG_FORMAT, level=level)
