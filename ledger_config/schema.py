"""
Ledger settings schema.

Frozen dataclasses the loader parses YAML into.  Nothing here reads files
or the environment; see ``ledger_config.loader``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ledger_kernel.domain.values import AccountType


@dataclass(frozen=True)
class DatabaseSettings:
    """Engine construction parameters."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    def __post_init__(self):
        if not self.url:
            raise ValueError("database.url must not be empty")
        if self.pool_size < 1:
            raise ValueError("database.pool_size must be at least 1")


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"

    def __post_init__(self):
        if self.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown logging level: {self.level!r}")


@dataclass(frozen=True)
class NumberingSettings:
    """Journal entry number format: prefix plus zero-padded counter."""

    entry_prefix: str = "JE-"
    entry_width: int = 6

    def __post_init__(self):
        if not 1 <= self.entry_width <= 18:
            raise ValueError("numbering.entry_width must be between 1 and 18")


@dataclass(frozen=True)
class LedgerSettings:
    """Complete ledger configuration."""

    database: DatabaseSettings
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    numbering: NumberingSettings = field(default_factory=NumberingSettings)
    reporting: dict[str, Any] = field(default_factory=dict)
    chart_of_accounts: str | None = None  # Path to a chart template, relative to the settings file


@dataclass(frozen=True)
class AccountTemplate:
    """
    One account of a chart-of-accounts template.

    Satisfies the AccountSeed protocol consumed by
    ``AccountService.seed_chart_of_accounts``.
    """

    code: str
    name: str
    account_type: AccountType
    parent_code: str | None = None
    description: str | None = None
    display_order: int = 0
