"""
Reporting Configuration Schema.

Defines the classification rule that splits expense accounts into cost of
goods sold and operating expenses, and report presentation options.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Self

from ledger_kernel.logging_config import get_logger

logger = get_logger("reporting.config")


@dataclass(frozen=True)
class AccountClassification:
    """
    Rules for classifying expense accounts on the profit and loss statement.

    Prefix matching: an account is cost of goods sold if its code starts
    with any of the configured prefixes.
    """

    cogs_prefixes: tuple[str, ...] = ("COGS", "50")

    def matches_prefix(self, code: str, prefixes: tuple[str, ...]) -> bool:
        """Check if an account code matches any of the given prefixes."""
        return any(code.upper().startswith(p.upper()) for p in prefixes)

    def is_cogs(self, code: str) -> bool:
        return self.matches_prefix(code, self.cogs_prefixes)


@dataclass(frozen=True)
class ReportingConfig:
    """
    Configuration schema for the reporting projection.

    Controls account classification and report presentation.  Amount
    precision follows the tenant base currency, not this config.
    """

    classification: AccountClassification = field(
        default_factory=AccountClassification,
    )

    # Report currency when the tenant has no base currency yet
    default_currency: str = "USD"

    # Entity name shown on reports
    entity_name: str = "Company"

    # Whether to include accounts with zero balance in reports
    include_zero_balances: bool = True

    # Whether to include inactive accounts that carry no balance
    include_inactive: bool = False

    def __post_init__(self):
        if len(self.default_currency) != 3:
            raise ValueError("default_currency must be a 3-letter ISO 4217 code")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from a dictionary (e.g. the ``reporting`` YAML section)."""
        data = dict(data)
        if "classification" in data and isinstance(data["classification"], dict):
            classification = dict(data["classification"])
            if "cogs_prefixes" in classification:
                classification["cogs_prefixes"] = tuple(
                    str(p) for p in classification["cogs_prefixes"]
                )
            data["classification"] = AccountClassification(**classification)
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
