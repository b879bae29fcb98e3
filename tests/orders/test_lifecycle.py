"""Tests for the order status state machine."""

from datetime import datetime, timezone

import pytest

from cex.errors import InvalidTransitionError, OrderAlreadyTerminalError
from cex.models import DoneReason, Order, OrderStatus, OrderType, Side
from cex.orders import TRANSITIONS, can_transition, fill, filter_orders, transition

AT = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


def make_order(**overrides) -> Order:
    fields = dict(id="o-1", type=OrderType.LIMIT, side=Side.SELL, price=150.0, quantity=2.0)
    fields.update(overrides)
    return Order(**fields)


class TestTransitions:
    @pytest.mark.parametrize(
        "src,dst",
        [
            (OrderStatus.RECEIVED, OrderStatus.OPEN),
            (OrderStatus.RECEIVED, OrderStatus.ACTIVE),
            (OrderStatus.RECEIVED, OrderStatus.REJECTED),
            (OrderStatus.RECEIVED, OrderStatus.DONE),
            (OrderStatus.OPEN, OrderStatus.DONE),
            (OrderStatus.OPEN, OrderStatus.PENDING),
            (OrderStatus.OPEN, OrderStatus.REJECTED),
            (OrderStatus.ACTIVE, OrderStatus.OPEN),
            (OrderStatus.ACTIVE, OrderStatus.DONE),
            (OrderStatus.PENDING, OrderStatus.DONE),
        ],
    )
    def test_allowed(self, src, dst):
        assert can_transition(src, dst)

    @pytest.mark.parametrize(
        "src,dst",
        [
            (OrderStatus.OPEN, OrderStatus.RECEIVED),
            (OrderStatus.OPEN, OrderStatus.ACTIVE),
            (OrderStatus.PENDING, OrderStatus.OPEN),
            (OrderStatus.DONE, OrderStatus.OPEN),
            (OrderStatus.REJECTED, OrderStatus.DONE),
            (OrderStatus.OPEN, OrderStatus.ALL),
        ],
    )
    def test_forbidden(self, src, dst):
        assert not can_transition(src, dst)

    def test_every_non_terminal_status_may_be_rejected(self):
        for status, targets in TRANSITIONS.items():
            if not status.is_terminal:
                assert OrderStatus.REJECTED in targets

    def test_terminal_statuses_have_no_exits(self):
        assert TRANSITIONS[OrderStatus.DONE] == frozenset()
        assert TRANSITIONS[OrderStatus.REJECTED] == frozenset()

    def test_transition_returns_new_snapshot(self):
        order = make_order()
        opened = transition(order, OrderStatus.OPEN)
        assert opened.status == OrderStatus.OPEN
        assert order.status == OrderStatus.RECEIVED
        assert opened.done_at is None

    def test_terminal_transition_stamps_done_at(self):
        order = transition(make_order(), OrderStatus.OPEN)
        done = transition(order, OrderStatus.DONE, at=AT, done_reason=DoneReason.CANCELED)
        assert done.done_at == AT
        assert done.done_reason == DoneReason.CANCELED

    def test_rejection_carries_reason(self):
        rejected = transition(make_order(), OrderStatus.REJECTED, reject_reason="bad price")
        assert rejected.reject_reason == "bad price"
        assert rejected.done_at is not None

    def test_illegal_transition_raises(self):
        done = transition(make_order(), OrderStatus.DONE, at=AT)
        with pytest.raises(InvalidTransitionError):
            transition(done, OrderStatus.OPEN)


class TestFill:
    def test_fill_accumulates(self):
        order = transition(make_order(), OrderStatus.OPEN)
        order = fill(order, 0.5, fee=0.1)
        order = fill(order, 1.0, fee=0.2)
        assert order.filled_quantity == pytest.approx(1.5)
        assert order.fill_fees == pytest.approx(0.3)
        assert order.remaining_quantity == pytest.approx(0.5)

    def test_overfill_rejected(self):
        order = transition(make_order(), OrderStatus.OPEN)
        with pytest.raises(ValueError):
            fill(order, 2.5)

    def test_non_positive_fill_rejected(self):
        with pytest.raises(ValueError):
            fill(make_order(), 0)

    def test_terminal_order_cannot_fill(self):
        done = transition(make_order(), OrderStatus.DONE, at=AT)
        with pytest.raises(OrderAlreadyTerminalError):
            fill(done, 1.0)

    def test_funds_order_fill(self):
        order = Order(id="o-2", type=OrderType.MARKET, side=Side.BUY, funds=500.0)
        order = fill(order, 5.0)
        assert order.filled_quantity == 5.0


class TestFilterOrders:
    def test_all_keeps_everything(self):
        orders = [
            make_order(id="a"),
            transition(make_order(id="b"), OrderStatus.OPEN),
        ]
        assert filter_orders(orders) == orders
        assert filter_orders(orders, OrderStatus.ALL) == orders

    def test_filters_by_status(self):
        received = make_order(id="a")
        opened = transition(make_order(id="b"), OrderStatus.OPEN)
        assert filter_orders([received, opened], OrderStatus.OPEN) == [opened]
        assert filter_orders([received, opened], OrderStatus.DONE) == []
