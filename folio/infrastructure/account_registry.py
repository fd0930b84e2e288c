'''
Session-facing registry mapping user identity to ledger accounts.

The registry owns the user-to-account map, guarded by its own lock, and
exposes the operations the display layer calls: execute an order, take
a snapshot, read history, seed from storage, and subscribe to changes.
Per-user work runs under that user's account lock only.
'''

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from folio.core.account import UserAccount
from folio.core.domain.enums import AveragingPolicy
from folio.core.domain.events import AccountSeeded, LedgerEvent
from folio.core.domain.order import OrderRequest
from folio.core.domain.position import Position
from folio.core.domain.transaction import Transaction
from folio.core.domain.valuation import PortfolioSnapshot, PortfolioValuation
from folio.core.executor import TransactionExecutor
from folio.core.price_oracle import PriceOracle
from folio.core.risk import classify
from folio.core.valuation_engine import valuate
from folio.infrastructure.settings import Settings

__all__ = ['AccountRegistry', 'PerformanceMetrics']

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerformanceMetrics:

    '''
    Represent headline counters for a user's portfolio.

    Args:
        total_value (Decimal): Current portfolio value.
        asset_count (int): Number of live positions.
        transaction_count (int): Number of ledger records.
    '''

    total_value: Decimal
    asset_count: int
    transaction_count: int


class AccountRegistry:

    '''
    Provide per-user ledger operations for the session layer.

    Args:
        oracle (PriceOracle): Price source for execution and valuation.
        executor (TransactionExecutor | None): Executor to use, built from oracle if omitted.
        averaging (AveragingPolicy): P/L percent averaging for snapshots.
    '''

    def __init__(
        self,
        oracle: PriceOracle,
        executor: TransactionExecutor | None = None,
        averaging: AveragingPolicy = AveragingPolicy.UNWEIGHTED,
    ) -> None:

        self.oracle = oracle
        self.executor = executor or TransactionExecutor(oracle)
        self.averaging = averaging
        self._accounts: dict[str, UserAccount] = {}
        self._lock = threading.Lock()
        self._listeners: list[Callable[[LedgerEvent], None]] = []
        self.executor.add_listener(self._publish)

    @classmethod
    def from_settings(cls, settings: Settings, oracle: PriceOracle) -> AccountRegistry:

        '''
        Build a registry honoring the configured valuation policies.

        Args:
            settings (Settings): Loaded runtime settings.
            oracle (PriceOracle): Price source.

        Returns:
            AccountRegistry: Configured registry.
        '''

        executor = TransactionExecutor(oracle, cost_basis=settings.cost_basis)
        return cls(oracle, executor=executor, averaging=settings.averaging)

    def account(self, user_id: str, *, create: bool = True) -> UserAccount:

        '''
        Return the account for a user.

        Args:
            user_id (str): User identity.
            create (bool): Create an empty account when none exists.

        Returns:
            UserAccount: The user's account.
        '''

        if not user_id:
            msg = 'user_id must be a non-empty string'
            raise ValueError(msg)

        with self._lock:
            account = self._accounts.get(user_id)
            if account is None:
                if not create:
                    raise KeyError(user_id)
                account = UserAccount(user_id)
                self._accounts[user_id] = account
                _log.debug('account created: user=%s', user_id)
            return account

    def users(self) -> tuple[str, ...]:

        with self._lock:
            return tuple(self._accounts)

    def subscribe(self, listener: Callable[[LedgerEvent], None]) -> None:

        '''
        Register a synchronous change listener.

        Durable writers backed by an event loop subscribe through a
        bridge such as LedgerStore.listener(loop).

        Args:
            listener (Callable[[LedgerEvent], None]): Receives every ledger event.
        '''

        if inspect.iscoroutinefunction(listener):
            msg = 'listeners are called synchronously; wrap async writers, e.g. LedgerStore.listener(loop)'
            raise TypeError(msg)
        self._listeners.append(listener)

    def seed(
        self,
        user_id: str,
        positions: Iterable[Position] = (),
        transactions: Iterable[Transaction] = (),
    ) -> UserAccount:

        '''
        Install a user's account from stored state at load time.

        Args:
            user_id (str): User identity.
            positions (Iterable[Position]): Positions to place in the book.
            transactions (Iterable[Transaction]): History, oldest first.

        Returns:
            UserAccount: The installed account.
        '''

        return self.install(UserAccount(user_id, positions=positions, transactions=transactions))

    def install(self, account: UserAccount) -> UserAccount:

        '''
        Install a prebuilt account, e.g. one replayed from LedgerStore.

        Args:
            account (UserAccount): Account to register.

        Returns:
            UserAccount: The same account.
        '''

        with self._lock:
            if account.user_id in self._accounts:
                msg = f'account for {account.user_id} already loaded'
                raise ValueError(msg)
            self._accounts[account.user_id] = account

        _log.info(
            'account seeded: user=%s positions=%d transactions=%d',
            account.user_id,
            len(account.book),
            len(account.ledger),
        )
        self._publish(AccountSeeded(
            user_id=account.user_id,
            timestamp=datetime.now(timezone.utc),
            position_count=len(account.book),
            transaction_count=len(account.ledger),
        ))
        return account

    def execute_order(self, user_id: str, order: OrderRequest) -> Transaction:

        '''
        Apply an order to a user's account.

        Args:
            user_id (str): User identity.
            order (OrderRequest): Requested trade.

        Returns:
            Transaction: The executed record. Raises ExecutionError on rejection.
        '''

        return self.executor.execute(self.account(user_id), order)

    def get_snapshot(self, user_id: str) -> PortfolioSnapshot:

        '''
        Value a user's portfolio and classify its risk.

        Args:
            user_id (str): User identity.

        Returns:
            PortfolioSnapshot: Positions, valuation and risk tier.
        '''

        account = self.account(user_id)
        with account.locked():
            positions = account.book.snapshot()
            revision = account.revision

        valuation = self._valuate(account, positions, revision)
        return PortfolioSnapshot(
            user_id=user_id,
            valuation=valuation,
            risk_tier=classify(valuation.distribution),
            taken_at=datetime.now(timezone.utc),
        )

    def get_transaction_history(self, user_id: str) -> tuple[Transaction, ...]:

        return self.account(user_id).history()

    def performance_metrics(self, user_id: str) -> PerformanceMetrics:

        '''
        Return headline counters for a user.

        Args:
            user_id (str): User identity.

        Returns:
            PerformanceMetrics: Value, asset count and transaction count.
        '''

        account = self.account(user_id)
        with account.locked():
            positions = account.book.snapshot()
            revision = account.revision

        valuation = self._valuate(account, positions, revision)
        return PerformanceMetrics(
            total_value=valuation.total_portfolio_value,
            asset_count=len(positions),
            transaction_count=revision,
        )

    def _valuate(
        self,
        account: UserAccount,
        positions: tuple[Position, ...],
        revision: int,
    ) -> PortfolioValuation:

        '''Value copied positions, then record the prices seen on the live book.'''

        valuation = valuate(positions, self.oracle, self.averaging)
        account.refresh_prices(valuation.positions, revision)
        return valuation

    def _publish(self, event: LedgerEvent) -> None:

        for listener in self._listeners:
            try:
                result = listener(event)
            except Exception:
                _log.exception(
                    'ledger listener failed: user=%s event=%s',
                    event.user_id,
                    type(event).__name__,
                )
                continue

            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                _log.error(
                    'ledger listener returned an awaitable that was never run: user=%s event=%s',
                    event.user_id,
                    type(event).__name__,
                )
