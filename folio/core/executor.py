'''
Apply buy and sell orders to a user's account.

The executor is the single mutating entry point of the ledger. Each
execute() call validates the order, resolves the price, updates the
position book and appends a COMPLETED transaction as one critical
section under the account lock. On any failure nothing changes.
'''

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from folio.core.account import UserAccount
from folio.core.domain.enums import AssetClass, CostBasisPolicy, OrderSide
from folio.core.domain.errors import (
    AssetNotFound,
    InsufficientHoldings,
    InvalidAssetClass,
    InvalidQuantity,
    InvariantViolation,
)
from folio.core.domain.events import TransactionExecuted
from folio.core.domain.order import OrderRequest
from folio.core.domain.position import Position
from folio.core.domain.transaction import Transaction, new_transaction_id
from folio.core.price_oracle import PriceOracle

__all__ = ['ExecutionListener', 'TransactionExecutor']

_log = logging.getLogger(__name__)

_ZERO = Decimal(0)

ExecutionListener = Callable[[TransactionExecuted], None]


def _utcnow() -> datetime:

    return datetime.now(timezone.utc)


class TransactionExecutor:

    '''
    Validate and apply orders against per-user accounts.

    Args:
        oracle (PriceOracle): Source of execution prices.
        cost_basis (CostBasisPolicy): How repeat buys affect open_price.
        clock (Callable[[], datetime] | None): Timestamp source, UTC now by default.
    '''

    def __init__(
        self,
        oracle: PriceOracle,
        cost_basis: CostBasisPolicy = CostBasisPolicy.KEEP_FIRST_PRICE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:

        self.oracle = oracle
        self.cost_basis = cost_basis
        self._clock = clock or _utcnow
        self._listeners: list[ExecutionListener] = []

    def add_listener(self, listener: ExecutionListener) -> None:

        '''
        Register a callback invoked after every successful execution.

        Args:
            listener (ExecutionListener): Receives a TransactionExecuted event.
        '''

        if inspect.iscoroutinefunction(listener):
            msg = 'execution listeners are called synchronously; coroutine functions are not accepted'
            raise TypeError(msg)
        self._listeners.append(listener)

    def execute(self, account: UserAccount, order: OrderRequest) -> Transaction:

        '''
        Validate and apply one order.

        Args:
            account (UserAccount): Account to apply the order to.
            order (OrderRequest): Requested trade.

        Returns:
            Transaction: The COMPLETED record appended to the ledger.
        '''

        quantity = self._validate_quantity(order)
        asset_class = self._validate_asset_class(order)

        with account.locked():
            price = self._resolve_price(order.asset)

            if order.direction == OrderSide.SELL:
                self._check_holdings(account, order.asset, quantity)

            timestamp = self._timestamp(account)
            transaction = Transaction(
                id=new_transaction_id(),
                user_id=account.user_id,
                asset=order.asset,
                asset_class=asset_class,
                direction=order.direction,
                quantity=quantity,
                price=price,
                timestamp=timestamp,
                notes=order.notes,
            )

            if order.direction == OrderSide.BUY:
                position = self._apply_buy(account, transaction)
            else:
                position = self._apply_sell(account, transaction)

            account.ledger.append(transaction)

            _log.info(
                'transaction executed: user=%s asset=%s side=%s qty=%s price=%s id=%s',
                account.user_id,
                transaction.asset,
                transaction.direction.value,
                transaction.quantity,
                transaction.price,
                transaction.id,
            )

            self._notify(TransactionExecuted(
                user_id=account.user_id,
                timestamp=timestamp,
                transaction=transaction,
                position=position.copy() if position is not None else None,
            ))

        return transaction

    def _validate_quantity(self, order: OrderRequest) -> Decimal:

        '''Return the order quantity as a positive Decimal.'''

        raw = order.quantity
        try:
            quantity = raw if isinstance(raw, Decimal) else Decimal(str(raw))
        except (InvalidOperation, ValueError) as exc:
            _log.warning('order rejected: asset=%s invalid quantity %r', order.asset, raw)
            raise InvalidQuantity(order.asset, f'not a number: {raw!r}') from exc

        if not quantity.is_finite() or quantity <= _ZERO:
            _log.warning('order rejected: asset=%s non-positive quantity %s', order.asset, raw)
            raise InvalidQuantity(order.asset, f'quantity must be positive, got {raw}')

        return quantity

    def _validate_asset_class(self, order: OrderRequest) -> AssetClass:

        try:
            return AssetClass.parse(order.asset_class)
        except ValueError as exc:
            _log.warning(
                'order rejected: asset=%s unknown asset class %r',
                order.asset,
                order.asset_class,
            )
            raise InvalidAssetClass(order.asset, str(exc)) from exc

    def _resolve_price(self, asset: str) -> Decimal:

        '''Return a positive execution price from the oracle.'''

        price = self.oracle.lookup(asset)
        if price is None:
            _log.warning('order rejected: no price for asset=%s', asset)
            raise AssetNotFound(asset, 'no price available')

        if price <= _ZERO:
            _log.warning('order rejected: non-positive price %s for asset=%s', price, asset)
            raise AssetNotFound(asset, f'oracle returned non-positive price {price}')

        return price

    def _check_holdings(self, account: UserAccount, asset: str, quantity: Decimal) -> None:

        position = account.book.get(asset)
        if position is None:
            _log.warning('sell rejected: user=%s holds no %s', account.user_id, asset)
            raise InsufficientHoldings(asset, 'no position')

        if position.quantity < quantity:
            _log.warning(
                'sell rejected: user=%s asset=%s held=%s requested=%s',
                account.user_id,
                asset,
                position.quantity,
                quantity,
            )
            raise InsufficientHoldings(
                asset, f'insufficient quantity: held {position.quantity}, requested {quantity}'
            )

    def _timestamp(self, account: UserAccount) -> datetime:

        '''Return a timestamp no earlier than the last ledger entry.'''

        now = self._clock()
        last = account.ledger.last
        if last is not None and now < last.timestamp:
            return last.timestamp
        return now

    def _apply_buy(self, account: UserAccount, transaction: Transaction) -> Position:

        '''Open a new position or add to an existing one.'''

        position = account.book.get(transaction.asset)

        if position is None:
            position = Position(
                asset=transaction.asset,
                asset_class=transaction.asset_class,
                quantity=transaction.quantity,
                open_price=transaction.price,
                last_price=transaction.price,
                opened_at=transaction.timestamp,
                updated_at=transaction.timestamp,
            )
            account.book.put(position)
            return position

        if position.asset_class != transaction.asset_class:
            _log.warning(
                'asset class mismatch on buy: asset=%s held=%s order=%s, keeping held class',
                transaction.asset,
                position.asset_class.value,
                transaction.asset_class.value,
            )

        new_quantity = position.quantity + transaction.quantity
        if self.cost_basis == CostBasisPolicy.WEIGHTED_AVERAGE:
            position.open_price = (
                (position.quantity * position.open_price + transaction.total_amount)
                / new_quantity
            )
        position.quantity = new_quantity
        position.last_price = transaction.price
        position.updated_at = transaction.timestamp
        return position

    def _apply_sell(self, account: UserAccount, transaction: Transaction) -> Position | None:

        '''Reduce a position, removing it when it reaches exactly zero.'''

        position = account.book.get(transaction.asset)
        if position is None:
            msg = f'sell passed validation without a position for {transaction.asset}'
            _log.error(msg)
            raise InvariantViolation(msg)

        new_quantity = position.quantity - transaction.quantity
        if new_quantity < _ZERO:
            msg = (
                f'position quantity would go negative: user={account.user_id} '
                f'asset={transaction.asset} qty={new_quantity}'
            )
            _log.error(msg)
            raise InvariantViolation(msg)

        if new_quantity == _ZERO:
            account.book.remove(transaction.asset)
            return None

        position.quantity = new_quantity
        position.last_price = transaction.price
        position.updated_at = transaction.timestamp
        return position

    def _notify(self, event: TransactionExecuted) -> None:

        for listener in self._listeners:
            try:
                result = listener(event)
            except Exception:
                _log.exception(
                    'execution listener failed: user=%s transaction=%s',
                    event.user_id,
                    event.transaction.id,
                )
                continue

            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                _log.error(
                    'execution listener returned an awaitable that was never run: user=%s transaction=%s',
                    event.user_id,
                    event.transaction.id,
                )
