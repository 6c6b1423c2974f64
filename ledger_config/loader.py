"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads YAML files and parses them into typed ``ledger_config.schema``
dataclass instances: the ledger settings and chart-of-accounts templates.
Callers use ``ledger_config.get_settings()``; the functions here are the
parsing layer beneath it.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the kernel only for
the AccountType enum.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Every parsed object is a frozen dataclass from ``schema.py``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in parsed dict  -> ``KeyError`` propagates.
* Unknown account type  -> ``ValueError``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    AccountTemplate,
    DatabaseSettings,
    LedgerSettings,
    LoggingSettings,
    NumberingSettings,
)
from ledger_kernel.domain.values import AccountType
from ledger_kernel.logging_config import get_logger

logger = get_logger("config.loader")

DATABASE_URL_ENV = "LEDGER_DATABASE_URL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def parse_database(data: Mapping[str, Any], environ: Mapping[str, str]) -> DatabaseSettings:
    url = environ.get(DATABASE_URL_ENV) or data["url"]
    return DatabaseSettings(
        url=url,
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
        pool_timeout=int(data.get("pool_timeout", 30)),
        pool_recycle=int(data.get("pool_recycle", 1800)),
    )


def parse_settings(
    data: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> LedgerSettings:
    """
    Parse a ``LedgerSettings`` from a dict.

    ``LEDGER_DATABASE_URL`` in ``environ`` (defaults to ``os.environ``)
    overrides ``database.url``.

    Raises:
        KeyError: ``database`` or ``database.url`` missing (and no override).
        ValueError: A value fails validation.
    """
    environ = os.environ if environ is None else environ
    logging_data = data.get("logging") or {}
    numbering_data = data.get("numbering") or {}
    return LedgerSettings(
        database=parse_database(data["database"], environ),
        logging=LoggingSettings(level=str(logging_data.get("level", "INFO")).upper()),
        numbering=NumberingSettings(
            entry_prefix=str(numbering_data.get("entry_prefix", "JE-")),
            entry_width=int(numbering_data.get("entry_width", 6)),
        ),
        reporting=dict(data.get("reporting") or {}),
        chart_of_accounts=data.get("chart_of_accounts"),
    )


def _flatten_accounts(
    nodes: list[Mapping[str, Any]],
    parent: AccountTemplate | None,
    out: list[AccountTemplate],
) -> None:
    for node in nodes:
        raw_type = node.get("type")
        if raw_type is None:
            if parent is None:
                raise KeyError(f"Account {node.get('code')!r}: 'type' is required at the top level")
            account_type = parent.account_type
        else:
            account_type = AccountType(raw_type)

        template = AccountTemplate(
            code=str(node["code"]),
            name=str(node["name"]),
            account_type=account_type,
            parent_code=parent.code if parent is not None else None,
            description=node.get("description"),
            display_order=len(out) + 1,
        )
        out.append(template)
        _flatten_accounts(node.get("children") or [], template, out)


def parse_chart_of_accounts(data: Mapping[str, Any]) -> list[AccountTemplate]:
    """
    Flatten a nested ``accounts`` tree into templates, parents first.

    Children inherit their parent's ``type`` when they omit it.  Display
    order follows document order.

    Raises:
        KeyError: Missing ``accounts``, ``code`` or ``name``.
        ValueError: Unknown account type or duplicate code.
    """
    templates: list[AccountTemplate] = []
    _flatten_accounts(data["accounts"], None, templates)

    seen: set[str] = set()
    for template in templates:
        if template.code in seen:
            raise ValueError(f"Duplicate account code in chart template: {template.code}")
        seen.add(template.code)
    return templates


def load_chart_of_accounts(path: Path) -> list[AccountTemplate]:
    """Load and parse a chart-of-accounts YAML template."""
    templates = parse_chart_of_accounts(load_yaml_file(path))
    logger.info(
        "chart_of_accounts_template_loaded",
        extra={"path": str(path), "account_count": len(templates)},
    )
    return templates
