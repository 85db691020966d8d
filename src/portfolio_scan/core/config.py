"""Scan configuration"""

import os
from dataclasses import dataclass

from .exceptions import ConfigurationException


DEFAULT_BATCH_SIZE = 1000
DEFAULT_FETCH_RETRIES = 3

BATCH_SIZE_ENV = 'PORTFOLIO_SCAN_BATCH_SIZE'
FAIL_FAST_ENV = 'PORTFOLIO_SCAN_FAIL_FAST'
FETCH_RETRIES_ENV = 'PORTFOLIO_SCAN_FETCH_RETRIES'

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def _int_from_env(environ, name: str, default: int) -> int:
    raw = environ.get(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        raise ConfigurationException(f"{name} is not an integer: {raw!r}")


@dataclass(frozen=True)
class ScanConfig:
    """
    Settings for a full portfolio scan

    Attributes:
        batch_size: Number of components fetched per page
        fail_fast: Abort the scan on the first failed batch instead of continuing
        fetch_retries: Retries of a page fetch after a non-fatal repository error
    """

    batch_size: int = DEFAULT_BATCH_SIZE
    fail_fast: bool = False
    fetch_retries: int = DEFAULT_FETCH_RETRIES

    def __post_init__(self):
        if not isinstance(self.batch_size, int) or self.batch_size < 1:
            raise ConfigurationException(f"batch_size must be a positive integer, got {self.batch_size!r}")
        if not isinstance(self.fetch_retries, int) or self.fetch_retries < 0:
            raise ConfigurationException(
                f"fetch_retries must be a non-negative integer, got {self.fetch_retries!r}"
            )

    @classmethod
    def from_env(cls, environ=None) -> 'ScanConfig':
        """Build configuration from PORTFOLIO_SCAN_* environment variables"""
        environ = os.environ if environ is None else environ

        return cls(
            batch_size=_int_from_env(environ, BATCH_SIZE_ENV, DEFAULT_BATCH_SIZE),
            fail_fast=environ.get(FAIL_FAST_ENV, '').strip().lower() in _TRUE_VALUES,
            fetch_retries=_int_from_env(environ, FETCH_RETRIES_ENV, DEFAULT_FETCH_RETRIES),
        )
