'''
Enumerated types for the Folio ledger domain.

Defines asset classes, order direction, transaction status, risk tiers,
and the valuation policies used across Position, Transaction, the
executor, and the valuation engine.
'''

from __future__ import annotations

from enum import Enum


__all__ = [
    'AssetClass',
    'AveragingPolicy',
    'CostBasisPolicy',
    'ExecutionErrorKind',
    'OrderSide',
    'RiskTier',
    'TransactionStatus',
]


class AssetClass(Enum):

    '''
    Closed set of asset classes a position can belong to.

    Values match the display strings used by the dashboard layer.
    '''

    STOCK = 'Stock'
    CRYPTO = 'Crypto'
    FOREX = 'Forex'

    @classmethod
    def parse(cls, value: AssetClass | str) -> AssetClass:

        '''
        Return the AssetClass for an enum member, value, or name.

        Matching on strings is case-insensitive against both the value
        ('Stock') and the member name ('STOCK').

        Args:
            value (AssetClass | str): Raw asset class from the caller.

        Returns:
            AssetClass: The matching member.
        '''

        if isinstance(value, cls):
            return value

        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if wanted in (member.value.lower(), member.name.lower()):
                    return member

        msg = f'unknown asset class: {value!r}'
        raise ValueError(msg)


class OrderSide(Enum):

    '''Buy or sell direction for orders and transactions.'''

    BUY = 'BUY'
    SELL = 'SELL'


class TransactionStatus(Enum):

    '''
    Transaction lifecycle states.

    The executor only produces COMPLETED. The other states exist for
    records seeded by an external workflow.
    '''

    PENDING = 'PENDING'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    FAILED = 'FAILED'


class RiskTier(Enum):

    '''Risk classification derived from asset-class distribution.'''

    VERY_HIGH_RISK = 'VERY_HIGH_RISK'
    HIGH_RISK = 'HIGH_RISK'
    MEDIUM_HIGH_RISK = 'MEDIUM_HIGH_RISK'
    MEDIUM_RISK = 'MEDIUM_RISK'
    LOW_TO_MEDIUM_RISK = 'LOW_TO_MEDIUM_RISK'
    NO_INVESTMENTS = 'NO_INVESTMENTS'

    @property
    def label(self) -> str:

        '''Return the human-readable label shown on the dashboard.'''

        return _RISK_LABELS[self]


_RISK_LABELS: dict[RiskTier, str] = {
    RiskTier.VERY_HIGH_RISK: 'Very High Risk (Crypto Heavy)',
    RiskTier.HIGH_RISK: 'High Risk (Significant Crypto)',
    RiskTier.MEDIUM_HIGH_RISK: 'Medium-High Risk (Stock Biased)',
    RiskTier.MEDIUM_RISK: 'Medium Risk (Balanced)',
    RiskTier.LOW_TO_MEDIUM_RISK: 'Low to Medium Risk (Diversified or Forex/Fixed Income Heavy)',
    RiskTier.NO_INVESTMENTS: 'No Investments',
}


class CostBasisPolicy(Enum):

    '''
    How open_price reacts to a repeat BUY on an existing position.

    KEEP_FIRST_PRICE leaves the first purchase price in place.
    WEIGHTED_AVERAGE recomputes a quantity-weighted mean.
    '''

    KEEP_FIRST_PRICE = 'keep_first_price'
    WEIGHTED_AVERAGE = 'weighted_average'


class AveragingPolicy(Enum):

    '''How per-position P/L percentages are averaged into one figure.'''

    UNWEIGHTED = 'unweighted'
    VALUE_WEIGHTED = 'value_weighted'


class ExecutionErrorKind(Enum):

    '''Kinds of validation failure returned by the executor.'''

    INVALID_QUANTITY = 'INVALID_QUANTITY'
    INVALID_ASSET_CLASS = 'INVALID_ASSET_CLASS'
    ASSET_NOT_FOUND = 'ASSET_NOT_FOUND'
    INSUFFICIENT_HOLDINGS = 'INSUFFICIENT_HOLDINGS'
