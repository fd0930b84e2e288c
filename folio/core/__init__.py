'''
Represent the ledger core: accounts, execution, valuation and risk.

Re-exports the primary entry points of the core package.
'''

from __future__ import annotations

from folio.core.account import UserAccount
from folio.core.executor import TransactionExecutor
from folio.core.position_book import PositionBook
from folio.core.price_oracle import PriceOracle
from folio.core.risk import classify
from folio.core.transaction_ledger import TransactionLedger
from folio.core.valuation_engine import valuate

__all__ = [
    'PositionBook',
    'PriceOracle',
    'TransactionExecutor',
    'TransactionLedger',
    'UserAccount',
    'classify',
    'valuate',
]
