from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field

from core.state import CostKind

logger = logging.getLogger("realtime_console.cost")

WARNING_RATIO = 0.8


@dataclass(frozen=True)
class CostRecord:
    kind: CostKind
    total_cost: float
    token_breakdown: dict = field(default_factory=dict)
    model: str = ""
    provisional: bool = False
    timestamp: float = field(default_factory=time.time)
    record_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_estimate(cls, kind: CostKind, estimate: dict, provisional: bool = False) -> "CostRecord":
        return cls(
            kind=CostKind(kind),
            total_cost=float((estimate or {}).get("total_cost") or 0.0),
            token_breakdown=dict((estimate or {}).get("breakdown") or {}),
            model=str((estimate or {}).get("model") or ""),
            provisional=bool(provisional),
        )

    def to_dict(self) -> dict:
        return {
            "record_id": self.record_id,
            "kind": self.kind.value,
            "model": self.model,
            "total_cost": self.total_cost,
            "token_breakdown": dict(self.token_breakdown),
            "provisional": self.provisional,
            "timestamp": self.timestamp,
        }


class SessionCostState:
    """
    Running spend and response counters for ONE session.

    ``running_total`` is only ever changed by ``add_record`` so it always
    equals the sum of ``records``. ``blocked`` latches once a threshold is
    crossed and stays set until ``unblock()`` or ``reset()``.
    """

    def __init__(self, limit: float, max_responses: int):
        self.limit = float(limit)
        self.max_responses = int(max_responses)
        self.records: list[CostRecord] = []
        self.running_total: float = 0.0
        self.response_count: int = 0
        self.blocked: bool = False

    # -------------------------
    # MUTATION
    # -------------------------

    def add_record(self, record: CostRecord) -> CostRecord:
        self.records.append(record)
        self.running_total += float(record.total_cost)
        self._check_thresholds()
        return record

    def count_response(self) -> int:
        self.response_count += 1
        self._check_thresholds()
        return self.response_count

    def unblock(self) -> None:
        if self.blocked:
            logger.info("Response block cleared manually | total=%.4f responses=%s", self.running_total, self.response_count)
        self.blocked = False

    def reset(self) -> None:
        self.records = []
        self.running_total = 0.0
        self.response_count = 0
        self.blocked = False

    # -------------------------
    # POLICY
    # -------------------------

    @property
    def limit_reached(self) -> bool:
        return self.running_total >= self.limit or self.response_count >= self.max_responses

    def allows_auto_response(self) -> bool:
        if self.blocked or self.limit_reached:
            self.blocked = True
            return False
        return True

    @property
    def provisional_total(self) -> float:
        return sum(record.total_cost for record in self.records if record.provisional)

    def _check_thresholds(self) -> None:
        if self.limit_reached:
            if not self.blocked:
                logger.warning(
                    "Session limit reached, blocking automatic responses | total=%.4f limit=%.2f responses=%s/%s",
                    self.running_total,
                    self.limit,
                    self.response_count,
                    self.max_responses,
                )
            self.blocked = True
        elif self.running_total >= self.limit * WARNING_RATIO:
            logger.info("Approaching cost limit | total=%.4f limit=%.2f", self.running_total, self.limit)

    def snapshot(self) -> dict:
        return {
            "running_total": self.running_total,
            "provisional_total": self.provisional_total,
            "limit": self.limit,
            "response_count": self.response_count,
            "max_responses": self.max_responses,
            "blocked": self.blocked,
            "record_count": len(self.records),
        }
