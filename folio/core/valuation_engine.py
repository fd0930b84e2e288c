'''
Compute portfolio value, profit/loss and asset-class distribution.

Valuation is a pure function of a position snapshot and a price oracle.
Everything is recomputed on each call; nothing is cached or mutated.
A missing oracle price reuses the position's last known price, the one
written back by UserAccount.refresh_prices after earlier valuations or
set by the latest trade, so one unknown asset never aborts the aggregate.
'''

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from folio.core.domain.enums import AssetClass, AveragingPolicy
from folio.core.domain.position import Position
from folio.core.domain.valuation import PortfolioValuation, PositionValuation
from folio.core.price_oracle import PriceOracle

__all__ = ['valuate', 'valuate_position']

_log = logging.getLogger(__name__)

_ZERO = Decimal(0)
_HUNDRED = Decimal(100)


def valuate_position(position: Position, oracle: PriceOracle) -> PositionValuation:

    '''
    Price one position against the oracle.

    Args:
        position (Position): Position to value, not mutated.
        oracle (PriceOracle): Source of current prices.

    Returns:
        PositionValuation: Figures at the refreshed price.
    '''

    price = oracle.lookup(position.asset)
    stale = price is None or price <= _ZERO
    if stale:
        _log.warning(
            'no current price for asset=%s, reusing last known %s',
            position.asset,
            position.last_price,
        )
        price = position.last_price

    return PositionValuation(
        asset=position.asset,
        asset_class=position.asset_class,
        quantity=position.quantity,
        open_price=position.open_price,
        last_price=price,
        total_value=position.quantity * price,
        total_revenue=position.quantity * (price - position.open_price),
        profit_loss_percent=(price - position.open_price) / position.open_price * _HUNDRED,
        stale=stale,
    )


def _average_pl_percent(
    positions: tuple[PositionValuation, ...],
    total_value: Decimal,
    averaging: AveragingPolicy,
) -> Decimal:

    if not positions:
        return _ZERO

    if averaging == AveragingPolicy.VALUE_WEIGHTED:
        if total_value == _ZERO:
            return _ZERO
        weighted = sum((p.profit_loss_percent * p.total_value for p in positions), _ZERO)
        return weighted / total_value

    return sum((p.profit_loss_percent for p in positions), _ZERO) / len(positions)


def _distribution(
    positions: tuple[PositionValuation, ...],
    total_value: Decimal,
) -> dict[AssetClass, Decimal]:

    '''Return each present class's share of total value.'''

    if total_value == _ZERO:
        return {}

    by_class: dict[AssetClass, Decimal] = {}
    for p in positions:
        by_class[p.asset_class] = by_class.get(p.asset_class, _ZERO) + p.total_value

    return {asset_class: value / total_value for asset_class, value in by_class.items()}


def valuate(
    positions: Iterable[Position],
    oracle: PriceOracle,
    averaging: AveragingPolicy = AveragingPolicy.UNWEIGHTED,
) -> PortfolioValuation:

    '''
    Compute aggregate figures for a set of positions.

    Args:
        positions (Iterable[Position]): Book snapshot, in display order.
        oracle (PriceOracle): Source of current prices.
        averaging (AveragingPolicy): How to average per-position P/L percent.

    Returns:
        PortfolioValuation: Totals, average P/L percent and distribution.
    '''

    valued = tuple(valuate_position(p, oracle) for p in positions)
    if not valued:
        return PortfolioValuation()

    total_value = sum((p.total_value for p in valued), _ZERO)
    total_revenue = sum((p.total_revenue for p in valued), _ZERO)
    total_cost = sum((p.quantity * p.open_price for p in valued), _ZERO)

    return PortfolioValuation(
        positions=valued,
        total_portfolio_value=total_value,
        total_unrealized_pl=total_revenue,
        total_cost=total_cost,
        average_profit_loss_percent=_average_pl_percent(valued, total_value, averaging),
        distribution=_distribution(valued, total_value),
    )
