'''
Represent one user's live positions keyed by asset symbol.

The book never holds a position at zero or negative quantity. Keys are
unique and iteration follows insertion order so display is stable.
'''

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from decimal import Decimal

from folio.core.domain.errors import InvariantViolation
from folio.core.domain.position import Position

__all__ = ['PositionBook']

_log = logging.getLogger(__name__)

_ZERO = Decimal(0)


class PositionBook:

    '''
    Represent an insertion-ordered mapping of asset to Position.

    Args:
        positions (Iterable[Position]): Initial positions, e.g. from a store.
    '''

    def __init__(self, positions: Iterable[Position] = ()) -> None:

        self._positions: dict[str, Position] = {}
        for position in positions:
            self.put(position)

    def __contains__(self, asset: object) -> bool:

        return asset in self._positions

    def __len__(self) -> int:

        return len(self._positions)

    def __iter__(self) -> Iterator[Position]:

        return iter(self._positions.values())

    def get(self, asset: str) -> Position | None:

        '''
        Return the live position for an asset or None.

        Args:
            asset (str): Asset symbol.

        Returns:
            Position | None: The stored position, not a copy.
        '''

        return self._positions.get(asset)

    def put(self, position: Position) -> None:

        '''
        Insert or replace a position.

        Args:
            position (Position): Position with positive quantity.
        '''

        if position.quantity <= _ZERO:
            msg = f'refusing to store {position.asset} at quantity {position.quantity}'
            raise InvariantViolation(msg)

        self._positions[position.asset] = position

    def remove(self, asset: str) -> Position:

        '''
        Remove and return the position for an asset.

        Args:
            asset (str): Asset symbol.

        Returns:
            Position: The removed position.
        '''

        position = self._positions.pop(asset, None)
        if position is None:
            msg = f'no position for {asset} to remove'
            raise InvariantViolation(msg)

        _log.debug('position removed: asset=%s', asset)
        return position

    def assets(self) -> tuple[str, ...]:

        return tuple(self._positions)

    def snapshot(self) -> tuple[Position, ...]:

        '''Return detached copies of all positions in insertion order.'''

        return tuple(position.copy() for position in self._positions.values())
