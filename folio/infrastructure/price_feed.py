'''
Price oracle implementations and the mock market catalogue.

StaticPriceOracle serves a fixed table. RandomWalkPriceFeed starts from
a table and moves every price by a bounded random fraction on each
tick(), the way the dashboard's periodic mock ticker does. Both return
None for unknown symbols and never block on I/O.
'''

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Mapping
from decimal import Decimal

from folio.core.domain.enums import AssetClass

__all__ = [
    'ASSET_CLASSES',
    'DEFAULT_PRICES',
    'RandomWalkPriceFeed',
    'StaticPriceOracle',
    'asset_class_of',
]

_log = logging.getLogger(__name__)

_ZERO = Decimal(0)
_PRICE_QUANTUM = Decimal('0.0001')

DEFAULT_PRICES: Mapping[str, Decimal] = {
    'ASELS': Decimal('28.40'),
    'THYAO': Decimal('14.90'),
    'KRDMD': Decimal('9.80'),
    'SISE': Decimal('7.15'),
    'EKGYO': Decimal('1.45'),
    'AKBNK': Decimal('8.30'),
    'ISCTR': Decimal('6.50'),
    'GARAN': Decimal('9.60'),
    'BIMAS': Decimal('122.75'),
    'SAHOL': Decimal('6.75'),
    'AAPL': Decimal('170.50'),
    'MSFT': Decimal('310.00'),
    'AMZN': Decimal('140.20'),
    'GOOGL': Decimal('130.75'),
    'META': Decimal('320.10'),
    'TSLA': Decimal('195.25'),
    'NVDA': Decimal('280.50'),
    'BRK.B': Decimal('310.75'),
    'JPM': Decimal('140.50'),
    'V': Decimal('235.60'),
    'BTC': Decimal('28300.00'),
    'ETH': Decimal('1860.50'),
    'USDT': Decimal('1.00'),
    'BNB': Decimal('310.25'),
    'SOL': Decimal('23.45'),
    'EUR/USD': Decimal('1.12'),
    'USD/TRY': Decimal('27.45'),
    'GBP/USD': Decimal('1.31'),
    'USD/JPY': Decimal('134.50'),
    'AUD/USD': Decimal('0.66'),
}

_CRYPTO = frozenset({'BTC', 'ETH', 'USDT', 'BNB', 'SOL'})
_FOREX = frozenset({'EUR/USD', 'USD/TRY', 'GBP/USD', 'USD/JPY', 'AUD/USD'})

ASSET_CLASSES: Mapping[str, AssetClass] = {
    symbol: (
        AssetClass.CRYPTO if symbol in _CRYPTO
        else AssetClass.FOREX if symbol in _FOREX
        else AssetClass.STOCK
    )
    for symbol in DEFAULT_PRICES
}


def asset_class_of(symbol: str) -> AssetClass | None:

    '''
    Return the catalogue asset class for a symbol.

    Args:
        symbol (str): Asset symbol.

    Returns:
        AssetClass | None: Known class, or None for symbols outside the catalogue.
    '''

    return ASSET_CLASSES.get(symbol)


def _checked(prices: Mapping[str, Decimal]) -> dict[str, Decimal]:

    table: dict[str, Decimal] = {}
    for symbol, price in prices.items():
        if not isinstance(price, Decimal) or price <= _ZERO:
            msg = f'price for {symbol} must be a positive Decimal, got {price!r}'
            raise ValueError(msg)
        table[symbol] = price
    return table


class StaticPriceOracle:

    '''
    Serve prices from a fixed table.

    Args:
        prices (Mapping[str, Decimal]): Symbol to positive price.
    '''

    def __init__(self, prices: Mapping[str, Decimal] = DEFAULT_PRICES) -> None:

        self._prices = _checked(prices)

    def lookup(self, asset: str) -> Decimal | None:

        return self._prices.get(asset)

    def symbols(self) -> tuple[str, ...]:

        return tuple(self._prices)


class RandomWalkPriceFeed:

    '''
    Serve prices that drift by a bounded random fraction per tick.

    Every read and write of the table happens under one lock, so each
    lookup observes a whole price, never a partial update.

    Args:
        prices (Mapping[str, Decimal]): Starting symbol to price table.
        step (Decimal): Maximum fractional move per tick, e.g. 0.01 for +/-1%.
        rng (random.Random | None): Random source, seeded for reproducible runs.
    '''

    def __init__(
        self,
        prices: Mapping[str, Decimal] = DEFAULT_PRICES,
        step: Decimal = Decimal('0.01'),
        rng: random.Random | None = None,
    ) -> None:

        if step < _ZERO or step >= Decimal(1):
            msg = f'RandomWalkPriceFeed.step must be in [0, 1), got {step}'
            raise ValueError(msg)
        self._prices = _checked(prices)
        self._step = step
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    def lookup(self, asset: str) -> Decimal | None:

        with self._lock:
            return self._prices.get(asset)

    def set_price(self, asset: str, price: Decimal) -> None:

        '''
        Overwrite or add one price, e.g. from an external feed.

        Args:
            asset (str): Asset symbol.
            price (Decimal): New positive price.
        '''

        if price <= _ZERO:
            msg = f'price for {asset} must be positive, got {price}'
            raise ValueError(msg)
        with self._lock:
            self._prices[asset] = price

    def remove(self, asset: str) -> None:

        '''Stop quoting an asset; later lookups return None.'''

        with self._lock:
            self._prices.pop(asset, None)

    def tick(self) -> dict[str, Decimal]:

        '''
        Move every price by a uniform random fraction within +/- step.

        Returns:
            dict[str, Decimal]: Copy of the updated table.
        '''

        with self._lock:
            for symbol, price in self._prices.items():
                change = Decimal(str(self._rng.uniform(-1.0, 1.0))) * self._step
                moved = (price * (Decimal(1) + change)).quantize(_PRICE_QUANTUM)
                self._prices[symbol] = moved if moved > _ZERO else price
            updated = dict(self._prices)

        _log.debug('price feed ticked: symbols=%d', len(updated))
        return updated
