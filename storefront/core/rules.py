"""
Side effects that ride along with order operations.

Each rule is a named object whose trigger can be evaluated against an order
and the operation's inputs without touching storage, so the engine stays a
sequence of load, mutate, apply rules, save.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

from storefront.core.state_machine import OrderStatus, utcnow

if TYPE_CHECKING:
    from storefront.models.order import Order


@dataclass(frozen=True)
class TransitionRule:
    name: str
    target: OrderStatus
    trigger: Callable[..., bool]

    def evaluate(self, order: "Order", **context: Any) -> Optional[OrderStatus]:
        """Return the status the order should move to, or None when the rule does not fire."""
        if self.trigger(order, **context):
            return self.target
        return None


@dataclass(frozen=True)
class EffectRule:
    """A named trigger paired with an in-place change to the order."""
    name: str
    trigger: Callable[..., bool]
    effect: Callable[..., None]

    def apply(self, order: "Order", **context: Any) -> bool:
        """Run the effect when the trigger holds. Returns True when it fired."""
        if not self.trigger(order, **context):
            return False
        self.effect(order, **context)
        return True


def _paid_while_confirmed(order: "Order", is_paid: bool = False, **_: Any) -> bool:
    return bool(is_paid) and order.status == OrderStatus.ORDER_CONFIRMED


def _tracking_before_shipment(order: "Order", carrier: Optional[str] = None,
                              tracking_number: Optional[str] = None, **_: Any) -> bool:
    if not carrier or not tracking_number:
        return False
    return order.status not in (OrderStatus.DELIVERED, OrderStatus.ORDER_SHIPPED)


ADVANCE_ON_PAYMENT = TransitionRule(
    name="advance-on-payment",
    target=OrderStatus.PAYMENT_PROCESSING,
    trigger=_paid_while_confirmed,
)

ADVANCE_ON_TRACKING = TransitionRule(
    name="advance-on-tracking",
    target=OrderStatus.ORDER_SHIPPED,
    trigger=_tracking_before_shipment,
)


def _is_delivered(order: "Order", **_: Any) -> bool:
    return order.status == OrderStatus.DELIVERED


def _set_delivery_flags(order: "Order", at: Optional[datetime] = None, **_: Any) -> None:
    order.is_delivered = True
    order.delivered_at = at or utcnow()


MARK_DELIVERED = EffectRule(
    name="mark-delivered",
    trigger=_is_delivered,
    effect=_set_delivery_flags,
)


def can_cancel(order: "Order") -> bool:
    # delivered orders stay delivered; nothing else blocks cancellation
    return not order.is_delivered
