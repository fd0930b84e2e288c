'''
OrderRequest dataclass representing a buy or sell submitted by a user.

The request is deliberately loose: quantity and asset class are checked
by the executor so that failures surface as ExecutionError kinds rather
than construction errors.
'''

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from folio.core.domain._require import _require_str
from folio.core.domain.enums import AssetClass, OrderSide


__all__ = ['OrderRequest']


@dataclass(frozen=True)
class OrderRequest:

    '''
    An order to apply against one user's position book.

    Args:
        asset (str): Asset symbol to trade.
        asset_class (AssetClass | str): Asset class, parsed by the executor.
        direction (OrderSide): BUY or SELL.
        quantity (Decimal): Requested quantity, validated by the executor.
        notes (str): Free-form note copied onto the transaction.
    '''

    asset: str
    asset_class: AssetClass | str
    direction: OrderSide
    quantity: Decimal
    notes: str = ''

    def __post_init__(self) -> None:

        _require_str('OrderRequest', 'asset', self.asset)

        if not isinstance(self.direction, OrderSide):
            msg = 'OrderRequest.direction must be an OrderSide'
            raise TypeError(msg)
