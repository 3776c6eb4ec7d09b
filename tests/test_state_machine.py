import pytest

from storefront.core.errors import InvalidStatus, InvalidTransition
from storefront.core.state_machine import (
    RECOMMENDED_TRANSITIONS,
    TERMINAL_STATUSES,
    OrderStatus,
    StateMachine,
)


def test_wire_values_are_exact():
    assert [s.value for s in OrderStatus] == [
        "Order Confirmed",
        "Payment Processing",
        "Order Processing",
        "Order Shipped",
        "Delivered",
        "Cancelled",
    ]
    assert str(OrderStatus.ORDER_SHIPPED) == "Order Shipped"


@pytest.mark.parametrize("value", ["delivered", "Shipped", "", None, "DELIVERED"])
def test_parse_rejects_unknown_values(value):
    with pytest.raises(InvalidStatus):
        OrderStatus.parse(value)


def test_terminal_states():
    assert TERMINAL_STATUSES == {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
    assert OrderStatus.CANCELLED.is_terminal
    assert not OrderStatus.ORDER_SHIPPED.is_terminal


def test_recommended_transitions_cover_every_status():
    assert set(RECOMMENDED_TRANSITIONS) == set(OrderStatus)
    for status in TERMINAL_STATUSES:
        assert RECOMMENDED_TRANSITIONS[status] == []
    for status in set(OrderStatus) - TERMINAL_STATUSES:
        assert OrderStatus.CANCELLED in RECOMMENDED_TRANSITIONS[status]


def test_permissive_machine_accepts_any_known_status():
    sm = StateMachine(OrderStatus.DELIVERED)
    entry = sm.apply("Order Confirmed", actor="admin-1")
    assert sm.state is OrderStatus.ORDER_CONFIRMED
    assert entry.note == "Status updated to Order Confirmed"
    assert entry.updated_by == "admin-1"
    assert sm.history == [entry]


def test_strict_machine_rejects_moves_outside_the_map():
    sm = StateMachine(OrderStatus.DELIVERED, allowed_transitions=RECOMMENDED_TRANSITIONS)
    with pytest.raises(InvalidTransition):
        sm.apply(OrderStatus.ORDER_CONFIRMED)
    assert sm.state is OrderStatus.DELIVERED
    assert sm.history == []


def test_reapplying_current_status_is_recorded():
    sm = StateMachine("Order Processing")
    sm.apply("Order Processing", note="Still packing")
    assert len(sm.history) == 1
    assert sm.history[0].note == "Still packing"


def test_record_keeps_state():
    sm = StateMachine(OrderStatus.ORDER_PROCESSING)
    sm.record(OrderStatus.PAYMENT_PROCESSING, "Payment confirmed")
    assert sm.state is OrderStatus.ORDER_PROCESSING
    assert sm.history[-1].status is OrderStatus.PAYMENT_PROCESSING
