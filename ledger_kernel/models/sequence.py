"""
Module: ledger_kernel.models.sequence
Responsibility: Named counter rows backing per-tenant sequence allocation.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - (tenant_id, name) is unique; the row is the sole source of truth for
      the next value.  The aggregate-max-plus-one pattern is never used.
"""

from sqlalchemy import BigInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base, TenantScopedMixin


class SequenceCounter(TenantScopedMixin, Base):
    """
    Sequence counter table.

    Each row is one named sequence of one tenant.  Row-level locking
    serializes concurrent increments.
    """

    __tablename__ = "sequence_counters"

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_sequence_tenant_name"),
    )

    # e.g. "journal_entry"
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    def __repr__(self) -> str:
        return f"<SequenceCounter {self.name}={self.current_value}>"
