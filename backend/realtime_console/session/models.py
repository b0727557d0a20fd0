from __future__ import annotations

import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional

from core.state import SessionStatus


@dataclass
class Session:
    status: SessionStatus = SessionStatus.IDLE
    channel: Any = None
    audio: Any = None
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: Optional[float] = None

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE


@dataclass
class ListeningState:
    """
    Voice pause state. ``paused_during_generation`` is the auto-resume flag:
    set when pausing while a response is being generated, cleared on manual
    resume, when the auto-resume fires, or when the pending response is
    dropped before it was sent.
    """
    paused: bool = False
    paused_during_generation: bool = False

    def pause(self, generating: bool) -> None:
        self.paused = True
        if generating:
            self.paused_during_generation = True

    def resume(self) -> None:
        self.paused = False
        self.paused_during_generation = False

    def toggle(self, generating: bool) -> bool:
        if self.paused:
            self.resume()
        else:
            self.pause(generating)
        return self.paused

    @property
    def auto_resume_pending(self) -> bool:
        return self.paused and self.paused_during_generation

    def cancel_auto_resume(self) -> None:
        self.paused_during_generation = False

    def auto_resume(self) -> bool:
        if not self.auto_resume_pending:
            return False
        self.resume()
        return True

    def reset(self) -> None:
        self.paused = False
        self.paused_during_generation = False


@dataclass
class ResponseGenerationState:
    in_flight: bool = False

    def begin(self) -> bool:
        if self.in_flight:
            return False
        self.in_flight = True
        return True

    def finish(self) -> None:
        self.in_flight = False

    def reset(self) -> None:
        self.in_flight = False


class EventLog:
    """Newest-first record of inbound and outbound protocol events."""

    def __init__(self, limit: int = 500):
        self._items: deque = deque(maxlen=max(1, int(limit)))

    def record(self, direction: str, event: dict) -> None:
        self._items.appendleft({
            "direction": direction,
            "type": str((event or {}).get("type") or "unknown"),
            "event": event,
            "ts": time.time(),
        })

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def items(self) -> list[dict]:
        return list(self._items)
