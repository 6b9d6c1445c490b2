import itertools

import pytest
from common.choices import OrderStatus
from common.errors import InvalidStatusTransition
from orders.models import OrderStatusLog
from orders.services import transition_order
from orders.tests.factories import OrderFactory
from orders.transitions import INITIAL_STATUS, can_cancel, can_transition, is_terminal

ALLOWED = {
    ("pending", "confirmed"),
    ("pending", "cancelled"),
    ("confirmed", "processing"),
    ("confirmed", "cancelled"),
    ("processing", "shipped"),
    ("processing", "cancelled"),
    ("shipped", "delivered"),
}

ALL_PAIRS = list(itertools.product(OrderStatus.values, repeat=2))


@pytest.mark.parametrize("from_status,to_status", ALL_PAIRS)
def test_transition_table(from_status, to_status):
    assert can_transition(from_status, to_status) == ((from_status, to_status) in ALLOWED)


def test_terminal_states():
    assert is_terminal("delivered")
    assert is_terminal("cancelled")
    assert not any(is_terminal(s) for s in ("pending", "confirmed", "processing", "shipped"))


def test_only_pending_and_confirmed_can_be_cancelled():
    assert [s for s in OrderStatus.values if can_cancel(s)] == ["pending", "confirmed"]


def test_checkout_starts_confirmed():
    assert INITIAL_STATUS == "confirmed"


@pytest.mark.django_db
@pytest.mark.parametrize("from_status,to_status", ALL_PAIRS)
def test_transition_order_writes_one_log_row_or_nothing(from_status, to_status):
    order = OrderFactory(status=from_status)

    if (from_status, to_status) in ALLOWED:
        moved = transition_order(order=order, to_status=to_status, note="by staff")
        assert moved.status == to_status
        (log,) = OrderStatusLog.objects.filter(order=order)
        assert (log.from_status, log.to_status, log.note) == (from_status, to_status, "by staff")
    else:
        with pytest.raises(InvalidStatusTransition):
            transition_order(order=order, to_status=to_status)
        order.refresh_from_db()
        assert order.status == from_status
        assert not OrderStatusLog.objects.filter(order=order).exists()
