'''
Represent the per-user unit of mutable ledger state.

A UserAccount bundles one PositionBook, one TransactionLedger and the
lock that serializes every read and write against them. Accounts for
different users share nothing.
'''

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from folio.core.domain.position import Position
from folio.core.domain.transaction import Transaction
from folio.core.domain.valuation import PositionValuation
from folio.core.position_book import PositionBook
from folio.core.transaction_ledger import TransactionLedger

__all__ = ['UserAccount']


class UserAccount:

    '''
    Represent one user's position book and ledger behind a single lock.

    Args:
        user_id (str): Owner of the account.
        positions (Iterable[Position]): Seeded positions.
        transactions (Iterable[Transaction]): Seeded history, oldest first.
    '''

    def __init__(
        self,
        user_id: str,
        positions: Iterable[Position] = (),
        transactions: Iterable[Transaction] = (),
    ) -> None:

        self.user_id = user_id
        self.book = PositionBook(positions)
        self.ledger = TransactionLedger(user_id, transactions)
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator[UserAccount]:

        '''Hold the account lock for a critical section.'''

        with self._lock:
            yield self

    def positions(self) -> tuple[Position, ...]:

        '''Return a snapshot-consistent copy of the book.'''

        with self._lock:
            return self.book.snapshot()

    def history(self) -> tuple[Transaction, ...]:

        '''Return a snapshot-consistent copy of the ledger.'''

        with self._lock:
            return self.ledger.snapshot()

    @property
    def revision(self) -> int:

        '''Return a counter that advances with every ledger append.'''

        return len(self.ledger)

    def refresh_prices(self, valuations: Iterable[PositionValuation], revision: int) -> int:

        '''
        Write prices seen at valuation time back onto the live book.

        Nothing is written if a trade landed after the valued copy was
        taken, so a newer execution price is never overwritten. Stale
        valuations are skipped, so a later oracle miss falls back to the
        last price actually observed.

        Args:
            valuations (Iterable[PositionValuation]): Priced copy of the book.
            revision (int): Value of revision when the copy was taken.

        Returns:
            int: Number of positions refreshed.
        '''

        refreshed = 0
        with self._lock:
            if self.revision != revision:
                return 0
            for valued in valuations:
                live = self.book.get(valued.asset)
                if valued.stale or live is None:
                    continue
                live.last_price = valued.last_price
                refreshed += 1
        return refreshed

    def __repr__(self) -> str:

        return (
            f'UserAccount(user_id={self.user_id!r}, positions={len(self.book)}, '
            f'transactions={len(self.ledger)})'
        )
