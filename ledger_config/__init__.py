"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides ``get_settings()``, the one way to obtain ledger settings at
    runtime, and ``load_default_chart()`` for the bundled chart of
    accounts.  Other components receive settings objects; they never read
    configuration files or the environment themselves.

Architecture position:
    Configuration -- sits above ``ledger_kernel`` and ``ledger_reporting``.
    The kernel MUST NEVER import from ``ledger_config``; ``bridges``
    translates settings into kernel objects.

Failure modes:
    - ``FileNotFoundError`` -- settings or chart file missing.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``KeyError`` / ``ValueError`` -- missing or invalid values.

Audit relevance:
    Every successful ``get_settings()`` call logs ``ledger_settings_loaded``
    with the source path and database dialect (never the credentials).
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from pathlib import Path

from sqlalchemy.engine import make_url

from ledger_config.loader import (
    DATABASE_URL_ENV,
    load_chart_of_accounts,
    load_yaml_file,
    parse_settings,
)
from ledger_config.schema import (
    AccountTemplate,
    DatabaseSettings,
    LedgerSettings,
    LoggingSettings,
    NumberingSettings,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("config")

DEFAULTS_DIR = Path(__file__).parent / "defaults"
DEFAULT_SETTINGS_PATH = DEFAULTS_DIR / "ledger.yaml"
DEFAULT_CHART_PATH = DEFAULTS_DIR / "chart_of_accounts.yaml"


def get_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerSettings:
    """The public settings entrypoint.

    Args:
        path: Settings YAML.  Defaults to the bundled defaults/ledger.yaml.
        environ: Environment for overrides.  Defaults to os.environ.

    Returns:
        LedgerSettings with ``chart_of_accounts`` resolved to an absolute
        path when the file names one.
    """
    source = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    settings = parse_settings(load_yaml_file(source), environ)

    if settings.chart_of_accounts is not None:
        chart = Path(settings.chart_of_accounts)
        if not chart.is_absolute():
            chart = (source.parent / chart).resolve()
        settings = dataclasses.replace(settings, chart_of_accounts=str(chart))

    logger.info(
        "ledger_settings_loaded",
        extra={
            "path": str(source),
            "dialect": make_url(settings.database.url).get_backend_name(),
        },
    )
    return settings


def load_default_chart(settings: LedgerSettings | None = None) -> list[AccountTemplate]:
    """Chart-of-accounts templates named by settings, or the bundled chart."""
    if settings is not None and settings.chart_of_accounts is not None:
        return load_chart_of_accounts(Path(settings.chart_of_accounts))
    return load_chart_of_accounts(DEFAULT_CHART_PATH)


__all__ = [
    "DATABASE_URL_ENV",
    "DEFAULT_CHART_PATH",
    "DEFAULT_SETTINGS_PATH",
    "AccountTemplate",
    "DatabaseSettings",
    "LedgerSettings",
    "LoggingSettings",
    "NumberingSettings",
    "get_settings",
    "load_chart_of_accounts",
    "load_default_chart",
]
