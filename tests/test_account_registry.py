'''
Tests for folio.infrastructure.account_registry.AccountRegistry.
'''

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from folio.core.domain import (
    AccountSeeded,
    AssetClass,
    AveragingPolicy,
    CostBasisPolicy,
    ExecutionError,
    InsufficientHoldings,
    LedgerEvent,
    OrderRequest,
    OrderSide,
    Position,
    RiskTier,
    Transaction,
    TransactionExecuted,
    TransactionStatus,
)
from folio.core.valuation_engine import valuate
from folio.infrastructure.account_registry import AccountRegistry
from folio.infrastructure.price_feed import RandomWalkPriceFeed
from folio.infrastructure.settings import Settings

_USER = 'ayse@example.com'
_TS = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _feed() -> RandomWalkPriceFeed:

    return RandomWalkPriceFeed(
        {
            'AAPL': Decimal('170.50'),
            'BTC': Decimal('28300.00'),
            'EUR/USD': Decimal('1.12'),
        },
        step=Decimal(0),
    )


def _order(asset: str, side: OrderSide, qty: str, asset_class: AssetClass = AssetClass.STOCK) -> OrderRequest:

    return OrderRequest(asset, asset_class, side, Decimal(qty))


class _SlowOracle:

    '''Oracle that yields inside lookup to widen race windows.'''

    def __init__(self, price: Decimal) -> None:

        self.price = price

    def lookup(self, asset: str) -> Decimal | None:

        time.sleep(0.005)
        return self.price


# --- scenarios ---


def test_scenario_buy_add_and_close_aapl() -> None:

    feed = _feed()
    registry = AccountRegistry(feed)

    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '100'))
    snap = registry.get_snapshot(_USER)
    assert snap.valuation.total_portfolio_value == Decimal('17050.00')
    assert snap.positions[0].total_revenue == Decimal('0.00')

    feed.set_price('AAPL', Decimal('180.00'))
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '50'))
    pos = registry.account(_USER).book.get('AAPL')
    assert pos is not None
    assert pos.quantity == Decimal('150')
    assert pos.open_price == Decimal('170.50')
    assert len(registry.get_transaction_history(_USER)) == 2

    registry.execute_order(_USER, _order('AAPL', OrderSide.SELL, '150'))
    assert 'AAPL' not in registry.account(_USER).book
    assert len(registry.get_transaction_history(_USER)) == 3


def test_scenario_crypto_heavy_is_very_high_risk() -> None:

    feed = RandomWalkPriceFeed({'BTC': Decimal('70'), 'AAPL': Decimal('30')}, step=Decimal(0))
    registry = AccountRegistry(feed)
    registry.execute_order(_USER, _order('BTC', OrderSide.BUY, '1', AssetClass.CRYPTO))
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '1'))

    snap = registry.get_snapshot(_USER)
    assert snap.valuation.ratio(AssetClass.CRYPTO) == Decimal('0.7')
    assert snap.risk_tier is RiskTier.VERY_HIGH_RISK


def test_scenario_sell_never_bought() -> None:

    registry = AccountRegistry(_feed())
    with pytest.raises(InsufficientHoldings):
        registry.execute_order(_USER, _order('AAPL', OrderSide.SELL, '10'))

    assert registry.get_transaction_history(_USER) == ()
    assert registry.get_snapshot(_USER).positions == ()


def test_scenario_empty_book_snapshot() -> None:

    snap = AccountRegistry(_feed()).get_snapshot(_USER)
    assert snap.valuation.total_portfolio_value == Decimal(0)
    assert snap.valuation.distribution == {}
    assert snap.risk_tier is RiskTier.NO_INVESTMENTS
    assert snap.user_id == _USER


# --- accounts ---


def test_users_are_isolated() -> None:

    registry = AccountRegistry(_feed())
    registry.execute_order('a', _order('AAPL', OrderSide.BUY, '1'))
    assert len(registry.get_transaction_history('a')) == 1
    assert registry.get_transaction_history('b') == ()
    assert set(registry.users()) == {'a', 'b'}


def test_account_lookup_without_create() -> None:

    registry = AccountRegistry(_feed())
    with pytest.raises(KeyError):
        registry.account('ghost', create=False)


def test_empty_user_id_rejected() -> None:

    with pytest.raises(ValueError, match='user_id'):
        AccountRegistry(_feed()).account('')


def test_history_is_a_copy() -> None:

    registry = AccountRegistry(_feed())
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '1'))
    history = registry.get_transaction_history(_USER)
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '1'))
    assert len(history) == 1


def test_snapshot_positions_are_detached() -> None:

    registry = AccountRegistry(_feed())
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '1'))
    snap = registry.get_snapshot(_USER)
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '4'))
    assert snap.positions[0].quantity == Decimal('1')


def test_missing_price_reuses_last_valuation_price() -> None:

    feed = _feed()
    registry = AccountRegistry(feed)
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '10'))

    feed.set_price('AAPL', Decimal('200'))
    assert registry.get_snapshot(_USER).valuation.total_portfolio_value == Decimal('2000')
    assert registry.account(_USER).book.get('AAPL').last_price == Decimal('200')

    feed.remove('AAPL')
    snap = registry.get_snapshot(_USER)
    assert snap.valuation.total_portfolio_value == Decimal('2000')
    assert snap.positions[0].stale
    assert snap.positions[0].last_price == Decimal('200')


def test_metrics_refresh_last_price() -> None:

    feed = _feed()
    registry = AccountRegistry(feed)
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '2'))

    feed.set_price('AAPL', Decimal('180'))
    registry.performance_metrics(_USER)
    feed.remove('AAPL')

    assert registry.performance_metrics(_USER).total_value == Decimal('360')


def test_refresh_skips_positions_traded_after_copy() -> None:

    feed = _feed()
    registry = AccountRegistry(feed)
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '1'))
    account = registry.account(_USER)
    copied = account.positions()
    revision = account.revision

    feed.set_price('AAPL', Decimal('190'))
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '1'))
    feed.set_price('AAPL', Decimal('150'))
    valuation = valuate(copied, feed)

    assert account.refresh_prices(valuation.positions, revision) == 0
    assert account.book.get('AAPL').last_price == Decimal('190')
    assert account.refresh_prices(valuation.positions, account.revision) == 1
    assert account.book.get('AAPL').last_price == Decimal('150')


def test_subscriber_returning_awaitable_is_logged(caplog: pytest.LogCaptureFixture) -> None:

    registry = AccountRegistry(_feed())

    async def _write(event: LedgerEvent) -> None:
        return None

    registry.subscribe(lambda event: _write(event))
    with caplog.at_level(logging.ERROR, logger='folio.infrastructure.account_registry'):
        registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '1'))

    assert 'returned an awaitable' in caplog.text
    assert len(registry.get_transaction_history(_USER)) == 1


def test_performance_metrics() -> None:

    registry = AccountRegistry(_feed())
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '2'))
    registry.execute_order(_USER, _order('BTC', OrderSide.BUY, '1', AssetClass.CRYPTO))
    registry.execute_order(_USER, _order('AAPL', OrderSide.SELL, '1'))

    metrics = registry.performance_metrics(_USER)
    assert metrics.asset_count == 2
    assert metrics.transaction_count == 3
    assert metrics.total_value == Decimal('170.50') + Decimal('28300.00')


def test_from_settings_applies_policies() -> None:

    settings = Settings(
        cost_basis=CostBasisPolicy.WEIGHTED_AVERAGE,
        averaging=AveragingPolicy.VALUE_WEIGHTED,
    )
    registry = AccountRegistry.from_settings(settings, _feed())
    assert registry.executor.cost_basis is CostBasisPolicy.WEIGHTED_AVERAGE
    assert registry.averaging is AveragingPolicy.VALUE_WEIGHTED


# --- seeding and notifications ---


def test_seed_installs_positions_and_history() -> None:

    registry = AccountRegistry(_feed())
    events: list[LedgerEvent] = []
    registry.subscribe(events.append)

    position = Position(
        asset='AAPL', asset_class=AssetClass.STOCK,
        quantity=Decimal('100'), open_price=Decimal('170.50'), last_price=Decimal('170.50'),
        opened_at=_TS, updated_at=_TS,
    )
    transaction = Transaction(
        id='seed-1', user_id=_USER, asset='AAPL', asset_class=AssetClass.STOCK,
        direction=OrderSide.BUY, quantity=Decimal('100'), price=Decimal('170.50'),
        timestamp=_TS,
    )
    pending = Transaction(
        id='seed-2', user_id=_USER, asset='BTC', asset_class=AssetClass.CRYPTO,
        direction=OrderSide.BUY, quantity=Decimal('1'), price=Decimal('28300'),
        timestamp=_TS, status=TransactionStatus.PENDING,
    )
    registry.seed(_USER, [position], [transaction, pending])

    assert len(registry.get_transaction_history(_USER)) == 2
    assert registry.get_snapshot(_USER).valuation.total_portfolio_value == Decimal('17050.00')
    assert events == [AccountSeeded(
        user_id=_USER, timestamp=events[0].timestamp,
        position_count=1, transaction_count=2,
    )]


def test_seed_twice_rejected() -> None:

    registry = AccountRegistry(_feed())
    registry.seed(_USER)
    with pytest.raises(ValueError, match='already loaded'):
        registry.seed(_USER)


def test_subscribers_receive_executions() -> None:

    registry = AccountRegistry(_feed())
    events: list[LedgerEvent] = []
    registry.subscribe(events.append)

    tx = registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '3'))
    assert len(events) == 1
    assert isinstance(events[0], TransactionExecuted)
    assert events[0].transaction == tx


def test_failing_subscriber_is_isolated() -> None:

    registry = AccountRegistry(_feed())
    received: list[LedgerEvent] = []

    def _boom(event: LedgerEvent) -> None:
        raise RuntimeError('disk full')

    registry.subscribe(_boom)
    registry.subscribe(received.append)
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '1'))

    assert len(received) == 1
    assert len(registry.get_transaction_history(_USER)) == 1


# --- concurrency ---


def _race(registry: AccountRegistry, orders: list[OrderRequest]) -> list[object]:

    barrier = threading.Barrier(len(orders))
    results: list[object] = [None] * len(orders)

    def _run(i: int, order: OrderRequest) -> None:
        barrier.wait()
        try:
            results[i] = registry.execute_order(_USER, order)
        except ExecutionError as exc:
            results[i] = exc

    threads = [threading.Thread(target=_run, args=(i, o)) for i, o in enumerate(orders)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def test_concurrent_full_sells_exactly_one_wins() -> None:

    registry = AccountRegistry(_SlowOracle(Decimal('100')))
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '10'))

    results = _race(registry, [_order('AAPL', OrderSide.SELL, '10')] * 2)

    wins = [r for r in results if isinstance(r, Transaction)]
    losses = [r for r in results if isinstance(r, InsufficientHoldings)]
    assert len(wins) == 1
    assert len(losses) == 1
    assert 'AAPL' not in registry.account(_USER).book
    assert len(registry.get_transaction_history(_USER)) == 2


def test_concurrent_small_sells_never_oversell() -> None:

    registry = AccountRegistry(_SlowOracle(Decimal('100')))
    registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '5'))

    results = _race(registry, [_order('AAPL', OrderSide.SELL, '1')] * 8)

    wins = [r for r in results if isinstance(r, Transaction)]
    losses = [r for r in results if not isinstance(r, Transaction)]
    assert len(wins) == 5
    assert len(losses) == 3
    assert all(isinstance(r, InsufficientHoldings) for r in losses)
    assert len(registry.account(_USER).book) == 0


def test_snapshot_during_trading_is_consistent() -> None:

    registry = AccountRegistry(_SlowOracle(Decimal('10')))
    stop = threading.Event()
    observed: list[Decimal] = []

    def _trade() -> None:
        for _ in range(20):
            registry.execute_order(_USER, _order('AAPL', OrderSide.BUY, '1'))
            registry.execute_order(_USER, _order('AAPL', OrderSide.SELL, '1'))
        stop.set()

    trader = threading.Thread(target=_trade)
    trader.start()
    while not stop.is_set():
        observed.append(registry.get_snapshot(_USER).valuation.total_portfolio_value)
    trader.join()

    assert set(observed) <= {Decimal(0), Decimal(10)}
