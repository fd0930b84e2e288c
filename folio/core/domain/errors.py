'''
Exceptions raised by the ledger executor.

ExecutionError subclasses are user-facing validation failures: local,
synchronous and non-retryable, with the account left untouched.
InvariantViolation marks a programming error and is never a normal
outcome of execute().
'''

from __future__ import annotations

from folio.core.domain.enums import ExecutionErrorKind


__all__ = [
    'AssetNotFound',
    'ExecutionError',
    'InsufficientHoldings',
    'InvalidAssetClass',
    'InvalidQuantity',
    'InvariantViolation',
]


class ExecutionError(Exception):

    '''
    Base class for order validation failures.

    Args:
        asset (str): Asset symbol of the rejected order.
        reason (str): Diagnostic detail.
    '''

    kind: ExecutionErrorKind

    def __init__(self, asset: str, reason: str) -> None:

        super().__init__(f'{self.kind.value}: {asset}: {reason}')
        self.asset = asset
        self.reason = reason


class InvalidQuantity(ExecutionError):

    '''Raised when the order quantity is zero or negative.'''

    kind = ExecutionErrorKind.INVALID_QUANTITY


class InvalidAssetClass(ExecutionError):

    '''Raised when the asset class is not Stock, Crypto or Forex.'''

    kind = ExecutionErrorKind.INVALID_ASSET_CLASS


class AssetNotFound(ExecutionError):

    '''Raised when the price oracle has no price for the asset.'''

    kind = ExecutionErrorKind.ASSET_NOT_FOUND


class InsufficientHoldings(ExecutionError):

    '''Raised when a SELL exceeds the held quantity or no position exists.'''

    kind = ExecutionErrorKind.INSUFFICIENT_HOLDINGS


class InvariantViolation(RuntimeError):

    '''Raised when internal state would break a ledger invariant.'''
