'''
Classify a portfolio's asset-class distribution into a risk tier.

Rules are evaluated top to bottom and the first match wins, so crypto
exposure always outranks stock bias.
'''

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from folio.core.domain.enums import AssetClass, RiskTier

__all__ = ['classify']

_ZERO = Decimal(0)

_CRYPTO_VERY_HIGH = Decimal('0.6')
_CRYPTO_HIGH = Decimal('0.3')
_STOCK_HEAVY = Decimal('0.7')
_STOCK_BALANCED = Decimal('0.4')
_FOREX_BALANCED = Decimal('0.3')


def classify(distribution: Mapping[AssetClass, Decimal]) -> RiskTier:

    '''
    Return the risk tier for a distribution of asset-class shares.

    Args:
        distribution (Mapping[AssetClass, Decimal]): Share of total value per
            class. Empty, or summing to zero, means no investments.

    Returns:
        RiskTier: First matching tier.
    '''

    if not any(share > _ZERO for share in distribution.values()):
        return RiskTier.NO_INVESTMENTS

    crypto = distribution.get(AssetClass.CRYPTO, _ZERO)
    stock = distribution.get(AssetClass.STOCK, _ZERO)
    forex = distribution.get(AssetClass.FOREX, _ZERO)

    if crypto > _CRYPTO_VERY_HIGH:
        return RiskTier.VERY_HIGH_RISK
    if crypto > _CRYPTO_HIGH:
        return RiskTier.HIGH_RISK
    if stock > _STOCK_HEAVY:
        return RiskTier.MEDIUM_HIGH_RISK
    if stock > _STOCK_BALANCED and forex > _FOREX_BALANCED:
        return RiskTier.MEDIUM_RISK
    return RiskTier.LOW_TO_MEDIUM_RISK
