'''
Represent one user's append-only history of transactions.

Records are only ever appended, in non-decreasing timestamp order.
Nothing is mutated or removed once recorded.
'''

from __future__ import annotations

from collections.abc import Iterable, Iterator

from folio.core.domain.transaction import Transaction

__all__ = ['TransactionLedger']


class TransactionLedger:

    '''
    Represent an ordered, append-only sequence of Transaction.

    Args:
        user_id (str): Owner of the ledger.
        transactions (Iterable[Transaction]): Seeded history, oldest first.
    '''

    def __init__(self, user_id: str, transactions: Iterable[Transaction] = ()) -> None:

        if not user_id:
            msg = 'TransactionLedger.user_id must be a non-empty string'
            raise ValueError(msg)
        self.user_id = user_id
        self._transactions: list[Transaction] = []
        self._ids: set[str] = set()
        for transaction in transactions:
            self._append(transaction)

    def __len__(self) -> int:

        return len(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:

        return iter(self._transactions)

    @property
    def last(self) -> Transaction | None:

        return self._transactions[-1] if self._transactions else None

    def append(self, transaction: Transaction) -> None:

        '''
        Append an executed transaction.

        Args:
            transaction (Transaction): COMPLETED record owned by this ledger's user.
        '''

        if not transaction.is_completed:
            msg = f'only COMPLETED transactions can be appended, got {transaction.status.value}'
            raise ValueError(msg)

        self._append(transaction)

    def _append(self, transaction: Transaction) -> None:

        if transaction.user_id != self.user_id:
            msg = (
                f'transaction {transaction.id} belongs to {transaction.user_id}, '
                f'not {self.user_id}'
            )
            raise ValueError(msg)

        if transaction.id in self._ids:
            msg = f'duplicate transaction id {transaction.id}'
            raise ValueError(msg)

        last = self.last
        if last is not None and transaction.timestamp < last.timestamp:
            msg = f'transaction {transaction.id} is older than the last recorded transaction'
            raise ValueError(msg)

        self._transactions.append(transaction)
        self._ids.add(transaction.id)

    def for_asset(self, asset: str) -> tuple[Transaction, ...]:

        '''
        Return transactions for one asset, oldest first.

        Args:
            asset (str): Asset symbol.

        Returns:
            tuple[Transaction, ...]: Matching records.
        '''

        return tuple(t for t in self._transactions if t.asset == asset)

    def snapshot(self) -> tuple[Transaction, ...]:

        return tuple(self._transactions)
