'''
Domain dataclasses for the Folio ledger.

Re-exports all domain types: enums, positions, transactions, order
requests, execution errors, change events, and valuation results.
'''

from __future__ import annotations

from folio.core.domain.enums import (
    AssetClass,
    AveragingPolicy,
    CostBasisPolicy,
    ExecutionErrorKind,
    OrderSide,
    RiskTier,
    TransactionStatus,
)
from folio.core.domain.errors import (
    AssetNotFound,
    ExecutionError,
    InsufficientHoldings,
    InvalidAssetClass,
    InvalidQuantity,
    InvariantViolation,
)
from folio.core.domain.events import AccountSeeded, LedgerEvent, TransactionExecuted
from folio.core.domain.order import OrderRequest
from folio.core.domain.position import Position
from folio.core.domain.transaction import Transaction, new_transaction_id
from folio.core.domain.valuation import PortfolioSnapshot, PortfolioValuation, PositionValuation

__all__ = [
    'AccountSeeded',
    'AssetClass',
    'AssetNotFound',
    'AveragingPolicy',
    'CostBasisPolicy',
    'ExecutionError',
    'ExecutionErrorKind',
    'InsufficientHoldings',
    'InvalidAssetClass',
    'InvalidQuantity',
    'InvariantViolation',
    'LedgerEvent',
    'OrderRequest',
    'OrderSide',
    'PortfolioSnapshot',
    'PortfolioValuation',
    'Position',
    'PositionValuation',
    'RiskTier',
    'Transaction',
    'TransactionExecuted',
    'TransactionStatus',
    'new_transaction_id',
]
