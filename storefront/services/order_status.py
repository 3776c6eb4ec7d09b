from typing import Any, Dict, Optional

from storefront.core.errors import InvalidOperation
from storefront.core.rules import ADVANCE_ON_PAYMENT, ADVANCE_ON_TRACKING, MARK_DELIVERED, can_cancel
from storefront.core.state_machine import RECOMMENDED_TRANSITIONS, OrderStatus, StateMachine, utcnow
from storefront.models.order import Order, Tracking
from storefront.services.order_store import OrderStore

PAYMENT_CONFIRMED_NOTE = "Payment confirmed"
PAYMENT_PENDING_NOTE = "Payment marked as pending"
DEFAULT_CANCEL_NOTE = "Order cancelled by admin"


class OrderStatusEngine:
    """
    Administrator-driven mutations of an order: status, payment flag, tracking,
    cancellation and notes. Each operation loads the order once, mutates it,
    applies the matching transition rules and saves it once. Nothing is saved
    when an operation raises.

    With `strict_transitions` off (the default) set_status accepts any known
    status from any current status. With it on, every status change, including
    the automatic ones and cancellation, must follow RECOMMENDED_TRANSITIONS;
    an automatic move the map forbids is skipped.
    """

    def __init__(self, store: OrderStore, strict_transitions: bool = False):
        self.store = store
        self.allowed_transitions = RECOMMENDED_TRANSITIONS if strict_transitions else None

    def _allows(self, order: Order, target: OrderStatus) -> bool:
        return StateMachine(order.status, allowed_transitions=self.allowed_transitions).can_transition(target)

    def set_status(self, order_id: str, new_status: Any, note: Optional[str] = None,
                   actor: Optional[str] = None) -> Order:
        order = self.store.get(order_id)
        now = utcnow()
        order.transition_to(new_status, note=note, actor=actor, at=now,
                            allowed_transitions=self.allowed_transitions)
        MARK_DELIVERED.apply(order, at=now)
        return self.store.save(order)

    def set_payment_status(self, order_id: str, is_paid: bool, payment_reference: Optional[str] = None,
                           payment_metadata: Optional[Dict[str, Any]] = None,
                           actor: Optional[str] = None) -> Order:
        order = self.store.get(order_id)
        now = utcnow()
        is_paid = bool(is_paid)

        order.is_paid = is_paid
        order.paid_at = now if is_paid else None
        if payment_reference:
            order.payment_reference = payment_reference
        if payment_metadata:
            order.payment_metadata = dict(payment_metadata)

        # the entry and the rule both look at the status as it was before this call
        advance_to = ADVANCE_ON_PAYMENT.evaluate(order, is_paid=is_paid)
        if is_paid:
            order.record(OrderStatus.PAYMENT_PROCESSING, PAYMENT_CONFIRMED_NOTE, actor=actor, at=now)
        else:
            order.record(order.status, PAYMENT_PENDING_NOTE, actor=actor, at=now)
        if advance_to is not None and self._allows(order, advance_to):
            order.status = advance_to
        return self.store.save(order)

    def set_tracking(self, order_id: str, carrier: Optional[str], tracking_number: Optional[str],
                     tracking_url: Optional[str] = None, actor: Optional[str] = None) -> Order:
        order = self.store.get(order_id)
        now = utcnow()
        order.tracking = Tracking(
            carrier=carrier or None,
            tracking_number=tracking_number or None,
            tracking_url=tracking_url or None,
            updated_at=now,
        )
        advance_to = ADVANCE_ON_TRACKING.evaluate(order, carrier=carrier, tracking_number=tracking_number)
        if advance_to is not None and self._allows(order, advance_to):
            order.transition_to(
                advance_to,
                note=f"Order shipped via {carrier} with tracking number {tracking_number}",
                actor=actor,
                at=now,
                allowed_transitions=self.allowed_transitions,
            )
        return self.store.save(order)

    def cancel(self, order_id: str, reason: Optional[str] = None, actor: Optional[str] = None) -> Order:
        order = self.store.get(order_id)
        if not can_cancel(order):
            raise InvalidOperation("Cannot cancel delivered order")
        order.transition_to(OrderStatus.CANCELLED, note=reason or DEFAULT_CANCEL_NOTE, actor=actor, at=utcnow(),
                            allowed_transitions=self.allowed_transitions)
        return self.store.save(order)

    def set_admin_notes(self, order_id: str, notes: Optional[str]) -> Order:
        order = self.store.get(order_id)
        order.admin_notes = notes or ""
        return self.store.save(order)
