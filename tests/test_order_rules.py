from datetime import datetime, timezone

import pytest

from storefront.core.rules import ADVANCE_ON_PAYMENT, ADVANCE_ON_TRACKING, MARK_DELIVERED, can_cancel
from storefront.core.state_machine import OrderStatus
from storefront.models.order import Order


def _order(status=OrderStatus.ORDER_CONFIRMED, **kw):
    return Order(owner_id="u1", status=status, **kw)


def test_payment_advances_confirmed_order():
    assert ADVANCE_ON_PAYMENT.evaluate(_order(), is_paid=True) is OrderStatus.PAYMENT_PROCESSING


@pytest.mark.parametrize("status", [s for s in OrderStatus if s is not OrderStatus.ORDER_CONFIRMED])
def test_payment_leaves_later_statuses_alone(status):
    assert ADVANCE_ON_PAYMENT.evaluate(_order(status), is_paid=True) is None


def test_unpaid_never_advances():
    assert ADVANCE_ON_PAYMENT.evaluate(_order(), is_paid=False) is None


def test_tracking_advances_unshipped_order():
    order = _order(OrderStatus.ORDER_PROCESSING)
    assert ADVANCE_ON_TRACKING.evaluate(order, carrier="DHL", tracking_number="XYZ123") is OrderStatus.ORDER_SHIPPED


@pytest.mark.parametrize("carrier,number", [("DHL", ""), ("", "XYZ123"), (None, None)])
def test_tracking_needs_carrier_and_number(carrier, number):
    assert ADVANCE_ON_TRACKING.evaluate(_order(), carrier=carrier, tracking_number=number) is None


@pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.ORDER_SHIPPED])
def test_tracking_does_not_move_shipped_or_delivered(status):
    assert ADVANCE_ON_TRACKING.evaluate(_order(status), carrier="DHL", tracking_number="XYZ123") is None


def test_tracking_rule_fires_for_cancelled_orders():
    # only Delivered and Order Shipped are exempt
    order = _order(OrderStatus.CANCELLED)
    assert ADVANCE_ON_TRACKING.evaluate(order, carrier="TCS", tracking_number="1") is OrderStatus.ORDER_SHIPPED


def test_rule_names():
    assert ADVANCE_ON_PAYMENT.name == "advance-on-payment"
    assert ADVANCE_ON_TRACKING.name == "advance-on-tracking"
    assert MARK_DELIVERED.name == "mark-delivered"


def test_mark_delivered_sets_flags_only_for_delivered():
    now = datetime(2024, 5, 1, tzinfo=timezone.utc)
    shipped = _order(OrderStatus.ORDER_SHIPPED)
    assert MARK_DELIVERED.trigger(shipped) is False
    assert MARK_DELIVERED.apply(shipped, at=now) is False
    assert shipped.is_delivered is False and shipped.delivered_at is None

    delivered = _order(OrderStatus.DELIVERED)
    assert MARK_DELIVERED.trigger(delivered) is True
    assert MARK_DELIVERED.apply(delivered, at=now) is True
    assert delivered.is_delivered is True
    assert delivered.delivered_at == now


def test_can_cancel_depends_on_delivery_flag_only():
    assert can_cancel(_order(OrderStatus.ORDER_SHIPPED))
    assert can_cancel(_order(OrderStatus.CANCELLED))
    assert not can_cancel(_order(OrderStatus.ORDER_PROCESSING, is_delivered=True))
