'''
Append-only transaction store backed by SQLite.

Provide durable storage for executed transactions and rebuild user
accounts from them at load time. Caller owns the aiosqlite connection
and commit boundaries, so a store append can share a transaction with
any other write the caller makes.
'''

from __future__ import annotations

import asyncio
import concurrent.futures
import dataclasses
import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

import aiosqlite
import orjson

from folio.core.account import UserAccount
from folio.core.domain.enums import AssetClass, CostBasisPolicy, OrderSide, TransactionStatus
from folio.core.domain.errors import InvariantViolation
from folio.core.domain.events import LedgerEvent, TransactionExecuted
from folio.core.domain.position import Position
from folio.core.domain.transaction import Transaction

__all__ = ['LedgerStore']

_log = logging.getLogger(__name__)

_CREATE_TABLE = '''
CREATE TABLE IF NOT EXISTS transactions (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    transaction_id TEXT NOT NULL UNIQUE,
    user_id TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    payload BLOB NOT NULL
)'''

_CREATE_INDEX = (
    'CREATE INDEX IF NOT EXISTS ix_transactions_user_seq '
    'ON transactions (user_id, seq)'
)

_INSERT = (
    'INSERT INTO transactions (transaction_id, user_id, timestamp, payload) '
    'VALUES (?, ?, ?, ?)'
)

_SELECT = (
    'SELECT seq, payload FROM transactions '
    'WHERE user_id = ? AND seq > ? ORDER BY seq ASC'
)

_USERS = 'SELECT DISTINCT user_id FROM transactions ORDER BY user_id'

_ZERO = Decimal(0)


def _decimal_default(obj: Any) -> Any:

    if isinstance(obj, Decimal):
        return str(obj)
    msg = f'Object of type {type(obj).__name__} is not JSON serializable'
    raise TypeError(msg)


def _encode(transaction: Transaction) -> bytes:

    return orjson.dumps(dataclasses.asdict(transaction), default=_decimal_default)


def _decode(payload: bytes) -> Transaction:

    '''
    Rebuild a Transaction from its stored JSON payload.

    orjson writes enums as their values, datetimes as ISO 8601 and
    Decimals as strings, so each field is restored from that form.

    Args:
        payload (bytes): Stored JSON document

    Returns:
        Transaction: Hydrated record
    '''

    raw: dict[str, Any] = orjson.loads(payload)
    return Transaction(
        id=raw['id'],
        user_id=raw['user_id'],
        asset=raw['asset'],
        asset_class=AssetClass(raw['asset_class']),
        direction=OrderSide(raw['direction']),
        quantity=Decimal(raw['quantity']),
        price=Decimal(raw['price']),
        timestamp=datetime.fromisoformat(raw['timestamp']),
        status=TransactionStatus(raw['status']),
        notes=raw.get('notes', ''),
    )


def _rebuild_positions(
    transactions: list[Transaction],
    cost_basis: CostBasisPolicy,
) -> list[Position]:

    '''Re-apply COMPLETED transactions in order to recover the book.'''

    book: dict[str, Position] = {}
    for t in transactions:
        if not t.is_completed:
            continue

        position = book.get(t.asset)
        if t.direction == OrderSide.BUY:
            if position is None:
                book[t.asset] = Position(
                    asset=t.asset,
                    asset_class=t.asset_class,
                    quantity=t.quantity,
                    open_price=t.price,
                    last_price=t.price,
                    opened_at=t.timestamp,
                    updated_at=t.timestamp,
                )
                continue
            new_qty = position.quantity + t.quantity
            if cost_basis == CostBasisPolicy.WEIGHTED_AVERAGE:
                position.open_price = (position.total_cost + t.total_amount) / new_qty
            position.quantity = new_qty
        else:
            if position is None or position.quantity < t.quantity:
                msg = f'stored history sells more {t.asset} than held at transaction {t.id}'
                raise InvariantViolation(msg)
            new_qty = position.quantity - t.quantity
            if new_qty == _ZERO:
                del book[t.asset]
                continue
            position.quantity = new_qty

        position.last_price = t.price
        position.updated_at = t.timestamp

    return list(book.values())


class LedgerStore:

    '''
    Provide an append-only transaction log in a single SQLite table.

    Args:
        conn (aiosqlite.Connection): Caller-owned database connection
    '''

    def __init__(self, conn: aiosqlite.Connection) -> None:

        self._conn = conn
        self._pending: set[concurrent.futures.Future[int]] = set()

    async def ensure_schema(self) -> None:

        '''Create the transactions table and user index if they do not exist.'''

        async with self._conn.execute(_CREATE_TABLE):
            pass
        async with self._conn.execute(_CREATE_INDEX):
            pass

    async def append(self, transaction: Transaction) -> int:

        '''
        Serialize and append one transaction.

        A transaction id already present violates the UNIQUE constraint
        and raises aiosqlite.IntegrityError.

        Args:
            transaction (Transaction): Record to persist

        Returns:
            int: Assigned sequence number
        '''

        async with self._conn.execute(
            _INSERT,
            (
                transaction.id,
                transaction.user_id,
                transaction.timestamp.isoformat(),
                _encode(transaction),
            ),
        ) as cursor:
            if cursor.lastrowid is None:
                msg = 'cursor.lastrowid was None after INSERT'
                raise RuntimeError(msg)
            return cursor.lastrowid

    async def record(self, event: TransactionExecuted) -> int:

        '''
        Persist the transaction carried by a change notification.

        Args:
            event (TransactionExecuted): Notification from the executor

        Returns:
            int: Assigned sequence number
        '''

        return await self.append(event.transaction)

    def listener(self, loop: asyncio.AbstractEventLoop) -> Callable[[LedgerEvent], None]:

        '''
        Return a synchronous change listener that persists executions.

        Each TransactionExecuted is scheduled onto loop with record();
        other events are ignored. Safe to call from any thread, including
        the loop's own. Await flush() to wait for scheduled writes.

        Args:
            loop (asyncio.AbstractEventLoop): Loop that owns the connection

        Returns:
            Callable[[LedgerEvent], None]: Listener for AccountRegistry.subscribe
        '''

        def _forward(event: LedgerEvent) -> None:

            if not isinstance(event, TransactionExecuted):
                return
            future = asyncio.run_coroutine_threadsafe(self.record(event), loop)
            self._pending.add(future)
            future.add_done_callback(self._settled)

        return _forward

    def _settled(self, future: concurrent.futures.Future[int]) -> None:

        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            _log.error('ledger store write failed', exc_info=exc)

    async def flush(self) -> None:

        '''Wait for every write scheduled through listener() to finish.'''

        pending = list(self._pending)
        if pending:
            await asyncio.gather(
                *(asyncio.wrap_future(f) for f in pending),
                return_exceptions=True,
            )

    async def read(self, user_id: str, after_seq: int = 0) -> list[tuple[int, Transaction]]:

        '''
        Read a user's transactions, optionally after a sequence number.

        Args:
            user_id (str): Ledger owner
            after_seq (int): Return records with sequence numbers greater than this

        Returns:
            list[tuple[int, Transaction]]: Pairs of (seq, Transaction), oldest first
        '''

        async with self._conn.execute(_SELECT, (user_id, after_seq)) as cursor:
            rows = await cursor.fetchall()
        return [(row[0], _decode(row[1])) for row in rows]

    async def users(self) -> list[str]:

        '''Return every user with at least one stored transaction.'''

        async with self._conn.execute(_USERS) as cursor:
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def replay(
        self,
        user_id: str,
        cost_basis: CostBasisPolicy = CostBasisPolicy.KEEP_FIRST_PRICE,
    ) -> UserAccount:

        '''
        Rebuild a user's account from stored history.

        Args:
            user_id (str): Ledger owner
            cost_basis (CostBasisPolicy): Policy the live executor uses

        Returns:
            UserAccount: Account with recovered positions and full ledger
        '''

        transactions = [t for _, t in await self.read(user_id)]
        positions = _rebuild_positions(transactions, cost_basis)
        return UserAccount(user_id, positions=positions, transactions=transactions)
