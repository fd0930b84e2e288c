'''
Position dataclass representing one user's holding in one asset.

Positions are mutable: quantity, open_price and last_price change as
orders execute. Mutation logic belongs in the executor, not here.
'''

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from folio.core.domain._require import _require_aware, _require_positive, _require_str
from folio.core.domain.enums import AssetClass


__all__ = ['Position']

_HUNDRED = Decimal(100)


@dataclass
class Position:

    '''
    An open holding tracked per asset per user.

    Args:
        asset (str): Asset symbol, unique within a PositionBook.
        asset_class (AssetClass): Stock, Crypto or Forex.
        quantity (Decimal): Units held, must be positive.
        open_price (Decimal): Cost basis per unit, must be positive.
        last_price (Decimal): Most recently observed price, must be positive.
        opened_at (datetime): Time the position was opened, must be timezone-aware.
        updated_at (datetime): Time of the last change, must be timezone-aware.
    '''

    asset: str
    asset_class: AssetClass
    quantity: Decimal
    open_price: Decimal
    last_price: Decimal
    opened_at: datetime
    updated_at: datetime

    def __post_init__(self) -> None:

        '''Validate invariants at construction time.'''

        _require_str('Position', 'asset', self.asset)

        if not isinstance(self.asset_class, AssetClass):
            msg = 'Position.asset_class must be an AssetClass'
            raise TypeError(msg)

        for field in ('quantity', 'open_price', 'last_price'):
            _require_positive('Position', field, getattr(self, field))

        for field in ('opened_at', 'updated_at'):
            _require_aware('Position', field, getattr(self, field))

    @property
    def total_value(self) -> Decimal:

        '''Return quantity times last price.'''

        return self.quantity * self.last_price

    @property
    def total_revenue(self) -> Decimal:

        '''Return unrealized profit or loss against open price.'''

        return self.quantity * (self.last_price - self.open_price)

    @property
    def total_cost(self) -> Decimal:

        '''Return quantity times open price.'''

        return self.quantity * self.open_price

    @property
    def profit_loss_percent(self) -> Decimal:

        '''Return price change since open as a percentage of open price.'''

        return (self.last_price - self.open_price) / self.open_price * _HUNDRED

    def copy(self) -> Position:

        '''Return a detached copy safe to hand outside the owning book.'''

        return replace(self)
