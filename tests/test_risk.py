'''
Tests for folio.core.risk.classify.
'''

from __future__ import annotations

from decimal import Decimal

import pytest

from folio.core.domain import AssetClass, RiskTier
from folio.core.risk import classify

_S = AssetClass.STOCK
_C = AssetClass.CRYPTO
_F = AssetClass.FOREX


def _dist(stock: str = '0', crypto: str = '0', forex: str = '0') -> dict[AssetClass, Decimal]:

    raw = {_S: Decimal(stock), _C: Decimal(crypto), _F: Decimal(forex)}
    return {k: v for k, v in raw.items() if v}


def test_empty_distribution_is_no_investments() -> None:

    assert classify({}) is RiskTier.NO_INVESTMENTS


def test_all_zero_distribution_is_no_investments() -> None:

    assert classify({_S: Decimal(0), _C: Decimal(0)}) is RiskTier.NO_INVESTMENTS


@pytest.mark.parametrize(
    ('dist', 'expected'),
    [
        (_dist(crypto='0.7', stock='0.3'), RiskTier.VERY_HIGH_RISK),
        (_dist(crypto='0.61', forex='0.39'), RiskTier.VERY_HIGH_RISK),
        (_dist(crypto='0.6', stock='0.4'), RiskTier.HIGH_RISK),
        (_dist(crypto='0.31', stock='0.69'), RiskTier.HIGH_RISK),
        (_dist(crypto='0.3', stock='0.7'), RiskTier.LOW_TO_MEDIUM_RISK),
        (_dist(stock='0.71', forex='0.29'), RiskTier.MEDIUM_HIGH_RISK),
        (_dist(stock='1'), RiskTier.MEDIUM_HIGH_RISK),
        (_dist(stock='0.45', forex='0.35', crypto='0.2'), RiskTier.MEDIUM_RISK),
        (_dist(stock='0.4', forex='0.6'), RiskTier.LOW_TO_MEDIUM_RISK),
        (_dist(stock='0.5', forex='0.3', crypto='0.2'), RiskTier.LOW_TO_MEDIUM_RISK),
        (_dist(forex='1'), RiskTier.LOW_TO_MEDIUM_RISK),
    ],
)
def test_tier_thresholds(dist: dict[AssetClass, Decimal], expected: RiskTier) -> None:

    assert classify(dist) is expected


def test_crypto_rule_takes_precedence_over_stock_rule() -> None:

    # Shares need not sum to one for the rule order to be observable.
    assert classify({_C: Decimal('0.65'), _S: Decimal('0.9')}) is RiskTier.VERY_HIGH_RISK


def test_missing_classes_default_to_zero() -> None:

    assert classify({_S: Decimal('0.5')}) is RiskTier.LOW_TO_MEDIUM_RISK


def test_classify_is_deterministic() -> None:

    dist = _dist(stock='0.45', forex='0.35', crypto='0.2')
    assert {classify(dist) for _ in range(10)} == {RiskTier.MEDIUM_RISK}


def test_classify_accepts_float_shares() -> None:

    assert classify({_C: 0.65, _S: 0.35}) is RiskTier.VERY_HIGH_RISK  # type: ignore[dict-item]
