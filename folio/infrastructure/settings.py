'''
Runtime settings for Folio loaded from the environment.

Values come from process environment variables, optionally populated
from a .env file in the working directory:

    FOLIO_LOG_LEVEL=INFO
    FOLIO_COST_BASIS=keep_first_price      # or weighted_average
    FOLIO_AVERAGING=unweighted             # or value_weighted
    FOLIO_PRICE_STEP=0.01
    FOLIO_DB_PATH=folio.sqlite3
'''

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from dotenv import find_dotenv, load_dotenv

from folio.core.domain.enums import AveragingPolicy, CostBasisPolicy

__all__ = ['Settings']

_LOG_LEVELS = frozenset({'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'})


@dataclass(frozen=True)
class Settings:

    '''
    Represent validated runtime settings.

    Args:
        log_level (str): Minimum log level passed to configure_logging.
        cost_basis (CostBasisPolicy): Repeat-buy cost basis policy.
        averaging (AveragingPolicy): P/L percent averaging policy.
        price_step (Decimal): Maximum fractional move per price feed tick.
        db_path (str): SQLite file used by the ledger store.
    '''

    log_level: str = 'INFO'
    cost_basis: CostBasisPolicy = CostBasisPolicy.KEEP_FIRST_PRICE
    averaging: AveragingPolicy = AveragingPolicy.UNWEIGHTED
    price_step: Decimal = Decimal('0.01')
    db_path: str = 'folio.sqlite3'

    def __post_init__(self) -> None:

        if self.log_level not in _LOG_LEVELS:
            msg = f'Settings.log_level must be one of {sorted(_LOG_LEVELS)}, got {self.log_level!r}'
            raise ValueError(msg)

        if self.price_step < Decimal(0) or self.price_step >= Decimal(1):
            msg = f'Settings.price_step must be in [0, 1), got {self.price_step}'
            raise ValueError(msg)

        if not self.db_path:
            msg = 'Settings.db_path must be a non-empty string'
            raise ValueError(msg)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, *, dotenv: bool = True) -> Settings:

        '''
        Build settings from environment variables.

        Args:
            environ (Mapping[str, str] | None): Variables to read, os.environ by default.
            dotenv (bool): Load the nearest .env file above the working directory first.

        Returns:
            Settings: Validated settings.
        '''

        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))
        env = os.environ if environ is None else environ

        raw_step = env.get('FOLIO_PRICE_STEP', '0.01')
        try:
            price_step = Decimal(raw_step)
        except InvalidOperation as exc:
            msg = f'FOLIO_PRICE_STEP is not a number: {raw_step!r}'
            raise ValueError(msg) from exc

        return cls(
            log_level=env.get('FOLIO_LOG_LEVEL', 'INFO').upper(),
            cost_basis=CostBasisPolicy(env.get('FOLIO_COST_BASIS', 'keep_first_price').lower()),
            averaging=AveragingPolicy(env.get('FOLIO_AVERAGING', 'unweighted').lower()),
            price_step=price_step,
            db_path=env.get('FOLIO_DB_PATH', 'folio.sqlite3'),
        )
