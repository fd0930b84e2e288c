'''
Price oracle protocol consumed by the executor and valuation engine.

The core only reads prices. How they are produced (a static table or
a periodically updated feed) belongs to the implementation.
'''

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, runtime_checkable

__all__ = ['PriceOracle']


@runtime_checkable
class PriceOracle(Protocol):

    '''Provide the latest known price for an asset symbol.'''

    def lookup(self, asset: str) -> Decimal | None:

        '''
        Return the latest price for an asset.

        Args:
            asset (str): Asset symbol.

        Returns:
            Decimal | None: Positive price, or None when the asset is unknown.
        '''
        ...
