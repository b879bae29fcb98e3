"""Tests for the account ledger."""

from datetime import datetime, timezone

import pytest

from cex.errors import InsufficientFundsError, InsufficientHoldingsError
from cex.execution import AccountLedger
from cex.models import Side

AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestAccountLedger:
    def test_initial_state(self):
        ledger = AccountLedger(balance=1000.0, product_quantity=2.0, fee_pct=0.5)
        assert ledger.balance == 1000.0
        assert ledger.available == 1000.0
        assert ledger.holdings == 2.0
        assert ledger.available_quantity == 2.0
        assert ledger.trades == []

    def test_invalid_fee_rejected(self):
        with pytest.raises(ValueError):
            AccountLedger(balance=1000.0, fee_pct=150)

    def test_buy_deducts_cost_and_fee(self):
        ledger = AccountLedger(balance=10000.0, fee_pct=0.1)
        trade = ledger.buy("o-1", quantity=0.1, price=50000.0, at=AT)

        # cost = 5000, fee = 5
        assert ledger.balance == pytest.approx(10000.0 - 5000.0 - 5.0)
        assert ledger.holdings == pytest.approx(0.1)
        assert trade.side == Side.BUY
        assert trade.fee == pytest.approx(5.0)
        assert trade.balance_after_trade == pytest.approx(4995.0)
        assert trade.holdings_after_trade == pytest.approx(0.1)

    def test_buy_insufficient_balance_rejected(self):
        ledger = AccountLedger(balance=1000.0, fee_pct=0.1)
        with pytest.raises(InsufficientFundsError):
            ledger.buy("o-1", quantity=0.1, price=50000.0, at=AT)
        assert ledger.balance == 1000.0
        assert ledger.trades == []

    def test_buy_with_funds_spends_exactly_funds(self):
        ledger = AccountLedger(balance=1000.0, fee_pct=1.0)
        trade = ledger.buy_with_funds("o-1", funds=500.0, price=100.0, at=AT)

        assert ledger.balance == pytest.approx(500.0)
        # 500 / (100 * 1.01)
        assert trade.quantity == pytest.approx(4.950495, rel=1e-6)
        assert trade.fee == pytest.approx(500.0 - trade.quantity * 100.0)

    def test_sell_adds_proceeds_minus_fee(self):
        ledger = AccountLedger(balance=0.0, product_quantity=1.0, fee_pct=0.1)
        ledger.sell("o-1", quantity=1.0, price=55000.0, at=AT)

        assert ledger.balance == pytest.approx(55000.0 - 55.0)
        assert ledger.holdings == pytest.approx(0.0)

    def test_sell_insufficient_holdings_rejected(self):
        ledger = AccountLedger(balance=0.0, product_quantity=1.0)
        with pytest.raises(InsufficientHoldingsError):
            ledger.sell("o-1", quantity=2.0, price=100.0, at=AT)
        assert ledger.holdings == 1.0

    def test_fund_holds_reduce_available(self):
        ledger = AccountLedger(balance=1000.0)
        ledger.hold_funds("o-1", 300.0)

        assert ledger.available == pytest.approx(700.0)
        assert ledger.balance == 1000.0
        with pytest.raises(InsufficientFundsError):
            ledger.hold_funds("o-2", 800.0)

        ledger.release("o-1")
        assert ledger.available == pytest.approx(1000.0)

    def test_quantity_holds_reduce_available_quantity(self):
        ledger = AccountLedger(balance=0.0, product_quantity=2.0)
        ledger.hold_quantity("o-1", 1.5)

        assert ledger.available_quantity == pytest.approx(0.5)
        with pytest.raises(InsufficientHoldingsError):
            ledger.hold_quantity("o-2", 1.0)

    def test_buy_draws_on_own_hold(self):
        ledger = AccountLedger(balance=1000.0)
        ledger.hold_funds("o-1", 1000.0)
        assert ledger.available == 0.0

        ledger.buy("o-1", quantity=4.0, price=100.0, at=AT)
        assert ledger.balance == pytest.approx(600.0)
        assert ledger.held_funds("o-1") == pytest.approx(600.0)
        assert ledger.available == pytest.approx(0.0)

    def test_large_balance_tolerates_rounding(self):
        balance = 7225076395.399146
        ledger = AccountLedger(balance=balance)
        ledger.hold_funds("o-1", balance * (1 + 1e-15))
        ledger.buy("o-1", quantity=balance / 0.6954, price=0.6954, at=AT)
        assert ledger.balance == pytest.approx(0.0, abs=1e-3)

    def test_large_balance_still_rejects_real_shortfall(self):
        ledger = AccountLedger(balance=1e9)
        with pytest.raises(InsufficientFundsError):
            ledger.hold_funds("o-1", 1e9 + 1.0)

    def test_other_orders_cannot_spend_a_hold(self):
        ledger = AccountLedger(balance=1000.0)
        ledger.hold_funds("o-1", 1000.0)
        with pytest.raises(InsufficientFundsError):
            ledger.buy("o-2", quantity=1.0, price=100.0, at=AT)

    def test_snapshot(self):
        ledger = AccountLedger(balance=1000.0, product_quantity=3.0, fee_pct=0.25)
        ledger.hold_funds("o-1", 100.0)
        account = ledger.snapshot("acc-1", currency="EUR")

        assert account.id == "acc-1"
        assert account.balance == 1000.0
        assert account.available == pytest.approx(900.0)
        assert account.currency == "EUR"
        assert account.product_quantity == 3.0
        assert account.fee == 0.25

    def test_trades_are_copied(self):
        ledger = AccountLedger(balance=1000.0)
        ledger.buy("o-1", quantity=1.0, price=100.0, at=AT)
        trades = ledger.trades
        trades.clear()
        assert len(ledger.trades) == 1
