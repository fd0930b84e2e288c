'''
Transaction dataclass representing one executed buy or sell.

Transactions are immutable facts: once appended to a ledger, no field
changes and the record is never removed.
'''

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from folio.core.domain._require import _require_aware, _require_positive, _require_str
from folio.core.domain.enums import AssetClass, OrderSide, TransactionStatus


__all__ = ['Transaction', 'new_transaction_id']


def new_transaction_id() -> str:

    '''Return a fresh unique transaction identifier.'''

    return uuid.uuid4().hex


@dataclass(frozen=True)
class Transaction:

    '''
    A single executed order recorded in a user's ledger.

    Args:
        id (str): Unique transaction identifier.
        user_id (str): Owner of the ledger this record belongs to.
        asset (str): Asset symbol.
        asset_class (AssetClass): Class of the traded asset.
        direction (OrderSide): BUY or SELL.
        quantity (Decimal): Traded quantity, must be positive.
        price (Decimal): Price used at execution, must be positive.
        timestamp (datetime): Execution time, must be timezone-aware.
        status (TransactionStatus): Lifecycle state, COMPLETED for executed orders.
        notes (str): Free-form note supplied with the order.
    '''

    id: str
    user_id: str
    asset: str
    asset_class: AssetClass
    direction: OrderSide
    quantity: Decimal
    price: Decimal
    timestamp: datetime
    status: TransactionStatus = TransactionStatus.COMPLETED
    notes: str = ''

    def __post_init__(self) -> None:

        '''Validate invariants at construction time.'''

        for field in ('id', 'user_id', 'asset'):
            _require_str('Transaction', field, getattr(self, field))

        _require_positive('Transaction', 'quantity', self.quantity)
        _require_positive('Transaction', 'price', self.price)
        _require_aware('Transaction', 'timestamp', self.timestamp)

    @property
    def total_amount(self) -> Decimal:

        '''Return quantity times execution price.'''

        return self.quantity * self.price

    @property
    def is_completed(self) -> bool:

        '''Return True if the transaction affected positions.'''

        return self.status == TransactionStatus.COMPLETED
