"""
Delivery attempt tracking.

One DeliveryAttempt follows one order from publish to a terminal outcome:

    PENDING -> SENT -> ACKNOWLEDGED
                    -> PROCESSING_FAILED
    PENDING -> DELIVERY_EXHAUSTED

Terminal states accept no further transitions. Retries inside the publisher
belong to the same attempt; there is no automatic retry across attempts.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from uuid import uuid4


class DeliveryStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    PROCESSING_FAILED = "PROCESSING_FAILED"
    DELIVERY_EXHAUSTED = "DELIVERY_EXHAUSTED"


_TRANSITIONS: dict[DeliveryStatus, set[DeliveryStatus]] = {
    DeliveryStatus.PENDING: {DeliveryStatus.SENT, DeliveryStatus.DELIVERY_EXHAUSTED},
    DeliveryStatus.SENT: {DeliveryStatus.ACKNOWLEDGED, DeliveryStatus.PROCESSING_FAILED},
    DeliveryStatus.ACKNOWLEDGED: set(),
    DeliveryStatus.PROCESSING_FAILED: set(),
    DeliveryStatus.DELIVERY_EXHAUSTED: set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in _TRANSITIONS.items() if not targets)


@dataclass
class DeliveryAttempt:
    """State of one order's trip to the processing queue."""
    order_id: Optional[int]
    queue_name: str
    payload: str
    message_id: str = field(default_factory=lambda: str(uuid4()))
    attempts: int = 0
    status: DeliveryStatus = DeliveryStatus.PENDING
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _move_to(self, target: DeliveryStatus, error: Optional[str] = None) -> None:
        if target not in _TRANSITIONS[self.status]:
            raise ValueError(f"Invalid delivery transition {self.status.value} -> {target.value}")
        self.status = target
        if error is not None:
            self.error = error

    def mark_sent(self) -> None:
        self._move_to(DeliveryStatus.SENT)

    def mark_acknowledged(self) -> None:
        self._move_to(DeliveryStatus.ACKNOWLEDGED)

    def mark_processing_failed(self, error: str) -> None:
        self._move_to(DeliveryStatus.PROCESSING_FAILED, error)

    def mark_exhausted(self, error: str) -> None:
        self._move_to(DeliveryStatus.DELIVERY_EXHAUSTED, error)

    def __str__(self) -> str:
        return (
            f"DeliveryAttempt(order={self.order_id}, queue={self.queue_name}, "
            f"status={self.status.value}, attempts={self.attempts})"
        )
