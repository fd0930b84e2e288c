'''
Change notification events emitted by the ledger.

Listeners such as a durable store receive these after each successful
execute(). Each event is an immutable fact carrying detached copies of
the affected state.
'''

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TypeAlias

from folio.core.domain._require import _require_aware, _require_str
from folio.core.domain.position import Position
from folio.core.domain.transaction import Transaction

__all__ = ['AccountSeeded', 'LedgerEvent', 'TransactionExecuted']


@dataclass(frozen=True)
class _EventBase:

    '''
    Represent shared fields for all ledger events.

    Args:
        user_id (str): User whose account changed.
        timestamp (datetime): Event time, must be timezone-aware.
    '''

    user_id: str
    timestamp: datetime

    def __post_init__(self) -> None:

        name = type(self).__name__
        _require_str(name, 'user_id', self.user_id)
        _require_aware(name, 'timestamp', self.timestamp)


@dataclass(frozen=True)
class TransactionExecuted(_EventBase):

    '''
    Represent a successfully applied order.

    Args:
        user_id (str): User whose account changed.
        timestamp (datetime): Event time, must be timezone-aware.
        transaction (Transaction): The appended ledger record.
        position (Position | None): Position after the change, None when closed.
    '''

    transaction: Transaction
    position: Position | None

    def __post_init__(self) -> None:

        super().__post_init__()

        if self.transaction.user_id != self.user_id:
            msg = 'TransactionExecuted.transaction belongs to a different user'
            raise ValueError(msg)

    @property
    def position_closed(self) -> bool:

        '''Return True if the order removed the position from the book.'''

        return self.position is None


@dataclass(frozen=True)
class AccountSeeded(_EventBase):

    '''
    Represent load-time seeding of an account from a durable store.

    Args:
        user_id (str): User whose account was seeded.
        timestamp (datetime): Event time, must be timezone-aware.
        position_count (int): Positions loaded into the book.
        transaction_count (int): Transactions loaded into the ledger.
    '''

    position_count: int
    transaction_count: int

    def __post_init__(self) -> None:

        super().__post_init__()

        if self.position_count < 0 or self.transaction_count < 0:
            msg = 'AccountSeeded counts must be non-negative'
            raise ValueError(msg)


LedgerEvent: TypeAlias = TransactionExecuted | AccountSeeded
