"""Database layer - engine, base classes, types, and immutability listeners."""

from ledger_kernel.db.base import UUID, Base, TenantScopedMixin, TrackedBase, UTCDateTime, UUIDString
from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from ledger_kernel.db.types import CurrencyCode, Money, Rate, round_money, validate_currency

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "drop_tables",
    "Base",
    "TrackedBase",
    "TenantScopedMixin",
    "UUIDString",
    "UTCDateTime",
    "UUID",
    "Money",
    "Rate",
    "CurrencyCode",
    "round_money",
    "validate_currency",
]
