from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from storefront.core.errors import InvalidStatus, InvalidTransition


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, Enum):
    ORDER_CONFIRMED = "Order Confirmed"
    PAYMENT_PROCESSING = "Payment Processing"
    ORDER_PROCESSING = "Order Processing"
    ORDER_SHIPPED = "Order Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Any) -> "OrderStatus":
        """Map a wire value (exact, case-sensitive) to a member. Raises InvalidStatus."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidStatus(value) from None

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

_PIPELINE = [
    OrderStatus.ORDER_CONFIRMED,
    OrderStatus.PAYMENT_PROCESSING,
    OrderStatus.ORDER_PROCESSING,
    OrderStatus.ORDER_SHIPPED,
    OrderStatus.DELIVERED,
]

# forward moves along the pipeline (skips allowed) plus cancellation from any non-terminal state.
# Only enforced when a StateMachine is built with it; the engine does so in strict mode.
RECOMMENDED_TRANSITIONS: Dict[OrderStatus, List[OrderStatus]] = {
    status: _PIPELINE[i + 1:] + [OrderStatus.CANCELLED] for i, status in enumerate(_PIPELINE[:-1])
}
RECOMMENDED_TRANSITIONS[OrderStatus.DELIVERED] = []
RECOMMENDED_TRANSITIONS[OrderStatus.CANCELLED] = []


@dataclass
class StatusEntry:
    status: OrderStatus
    timestamp: datetime
    note: str = ""
    updated_by: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StatusEntry":
        raw_ts = d.get("timestamp") or d.get("date")
        if isinstance(raw_ts, datetime):
            ts = raw_ts
        else:
            ts = datetime.fromisoformat(str(raw_ts))
        return cls(
            status=OrderStatus.parse(d.get("status")),
            timestamp=ts,
            note=d.get("note") or "",
            updated_by=d.get("updated_by") or d.get("updatedBy") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "note": self.note,
            "updated_by": self.updated_by,
        }


class StateMachine:
    """
    Holds an order's current status together with its append-only history:
      - membership check against the closed OrderStatus set
      - optional adjacency map (None: any status may follow any other)
      - history recording (timestamp / note / actor)

    Usage:
      sm = StateMachine(order.status, history=order.status_history)
      sm.apply(OrderStatus.DELIVERED, note="Signed for at reception", actor=admin_id)
      order.status = sm.state
      order.status_history = sm.history
    """

    def __init__(self, state: Any, history: Optional[List[StatusEntry]] = None,
                 allowed_transitions: Optional[Dict[OrderStatus, List[OrderStatus]]] = None):
        self.state = OrderStatus.parse(state)
        self.history: List[StatusEntry] = list(history or [])
        self.allowed_transitions = allowed_transitions

    def can_transition(self, to_state: OrderStatus) -> bool:
        if self.allowed_transitions is None:
            return True
        return to_state in self.allowed_transitions.get(self.state, [])

    def record(self, status: OrderStatus, note: str, actor: Optional[str] = None,
               at: Optional[datetime] = None) -> StatusEntry:
        """Append a history entry without touching the current state."""
        entry = StatusEntry(status=status, timestamp=at or utcnow(), note=note, updated_by=actor)
        self.history.append(entry)
        return entry

    def apply(self, to_state: Any, note: Optional[str] = None, actor: Optional[str] = None,
              at: Optional[datetime] = None) -> StatusEntry:
        """
        Move to `to_state` and record it. Raises InvalidStatus for values outside
        OrderStatus, InvalidTransition when an adjacency map is set and forbids the move.
        Re-applying the current state is accepted and recorded.
        """
        target = OrderStatus.parse(to_state)
        if not self.can_transition(target):
            raise InvalidTransition(self.state.value, target.value)
        self.state = target
        return self.record(target, note or f"Status updated to {target.value}", actor=actor, at=at)
