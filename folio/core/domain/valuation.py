'''
Valuation result dataclasses produced by the valuation engine.

All types are frozen point-in-time views computed on demand from a
position book and a price oracle. Nothing here is stored.
'''

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from folio.core.domain.enums import AssetClass, RiskTier

__all__ = ['PortfolioSnapshot', 'PortfolioValuation', 'PositionValuation']

_ZERO = Decimal(0)


@dataclass(frozen=True)
class PositionValuation:

    '''
    Represent one position priced at valuation time.

    Args:
        asset (str): Asset symbol.
        asset_class (AssetClass): Class of the asset.
        quantity (Decimal): Units held.
        open_price (Decimal): Cost basis per unit.
        last_price (Decimal): Price used for this valuation.
        total_value (Decimal): quantity * last_price.
        total_revenue (Decimal): quantity * (last_price - open_price).
        profit_loss_percent (Decimal): Price change since open, in percent.
        stale (bool): True when the oracle had no price and the last known price was reused.
    '''

    asset: str
    asset_class: AssetClass
    quantity: Decimal
    open_price: Decimal
    last_price: Decimal
    total_value: Decimal
    total_revenue: Decimal
    profit_loss_percent: Decimal
    stale: bool = False


@dataclass(frozen=True)
class PortfolioValuation:

    '''
    Represent aggregate figures for a whole position book.

    Args:
        positions (tuple[PositionValuation, ...]): Per-position figures in book order.
        total_portfolio_value (Decimal): Sum of position values.
        total_unrealized_pl (Decimal): Sum of position revenues.
        total_cost (Decimal): Sum of quantity * open_price.
        average_profit_loss_percent (Decimal): Mean of position P/L percentages.
        distribution (dict[AssetClass, Decimal]): Share of total value per asset class.
    '''

    positions: tuple[PositionValuation, ...] = ()
    total_portfolio_value: Decimal = _ZERO
    total_unrealized_pl: Decimal = _ZERO
    total_cost: Decimal = _ZERO
    average_profit_loss_percent: Decimal = _ZERO
    distribution: dict[AssetClass, Decimal] = field(default_factory=dict)

    @property
    def position_count(self) -> int:

        return len(self.positions)

    @property
    def stale_assets(self) -> tuple[str, ...]:

        '''Return symbols valued at a reused last known price.'''

        return tuple(p.asset for p in self.positions if p.stale)

    def ratio(self, asset_class: AssetClass) -> Decimal:

        '''Return the distribution share for a class, zero when absent.'''

        return self.distribution.get(asset_class, _ZERO)


@dataclass(frozen=True)
class PortfolioSnapshot:

    '''
    Represent everything the display layer needs for one user.

    Args:
        user_id (str): Owner of the portfolio.
        valuation (PortfolioValuation): Computed figures.
        risk_tier (RiskTier): Classification of the distribution.
        taken_at (datetime): Time the snapshot was taken.
    '''

    user_id: str
    valuation: PortfolioValuation
    risk_tier: RiskTier
    taken_at: datetime

    @property
    def positions(self) -> tuple[PositionValuation, ...]:

        return self.valuation.positions
