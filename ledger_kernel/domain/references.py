"""
Module: ledger_kernel.domain.references
Responsibility: Tagged variant over the kinds of record a journal entry may
    originate from, and its mapping to the (reference_type, reference_id)
    column pair.
Architecture position: Kernel > Domain.  Pure.  ZERO I/O.

Invariants enforced:
    - Every reference kind is a distinct frozen dataclass; there is no
      untyped type-string/id pair above the persistence layer.
    - reference_from_columns() rejects unknown kinds with ValueError, so a
      row written by a newer schema is never silently misread.

Usage:
    ref = SalesInvoiceRef(invoice_id)
    ref_type, ref_id = reference_to_columns(ref)
    assert reference_from_columns(ref_type, ref_id) == ref
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union, assert_never
from uuid import UUID


class ReferenceKind(str, Enum):
    """Discriminator stored in journal_entries.reference_type."""

    SALES_INVOICE = "sales_invoice"
    PURCHASE_INVOICE = "purchase_invoice"
    PAYMENT = "payment"
    MANUAL = "manual"
    DEPRECIATION = "depreciation"
    PAYROLL = "payroll"
    REVERSAL = "reversal"


@dataclass(frozen=True)
class SalesInvoiceRef:
    invoice_id: UUID
    kind: ClassVar[ReferenceKind] = ReferenceKind.SALES_INVOICE


@dataclass(frozen=True)
class PurchaseInvoiceRef:
    invoice_id: UUID
    kind: ClassVar[ReferenceKind] = ReferenceKind.PURCHASE_INVOICE


@dataclass(frozen=True)
class PaymentRef:
    payment_id: UUID
    kind: ClassVar[ReferenceKind] = ReferenceKind.PAYMENT


@dataclass(frozen=True)
class ManualRef:
    """Entry keyed in by hand; carries no originating record."""

    kind: ClassVar[ReferenceKind] = ReferenceKind.MANUAL


@dataclass(frozen=True)
class DepreciationRef:
    asset_id: UUID
    kind: ClassVar[ReferenceKind] = ReferenceKind.DEPRECIATION


@dataclass(frozen=True)
class PayrollRef:
    payroll_run_id: UUID
    kind: ClassVar[ReferenceKind] = ReferenceKind.PAYROLL


@dataclass(frozen=True)
class ReversalRef:
    """Entry that reverses a posted entry."""

    original_entry_id: UUID
    kind: ClassVar[ReferenceKind] = ReferenceKind.REVERSAL


EntryReference = Union[
    SalesInvoiceRef,
    PurchaseInvoiceRef,
    PaymentRef,
    ManualRef,
    DepreciationRef,
    PayrollRef,
    ReversalRef,
]


def reference_target_id(ref: EntryReference) -> UUID | None:
    """Return the id of the record a reference points at (None for manual)."""
    match ref:
        case SalesInvoiceRef(invoice_id=target) | PurchaseInvoiceRef(invoice_id=target):
            return target
        case PaymentRef(payment_id=target):
            return target
        case DepreciationRef(asset_id=target):
            return target
        case PayrollRef(payroll_run_id=target):
            return target
        case ReversalRef(original_entry_id=target):
            return target
        case ManualRef():
            return None
        case _:
            assert_never(ref)


def reference_to_columns(ref: EntryReference | None) -> tuple[str | None, UUID | None]:
    """Flatten a reference into (reference_type, reference_id)."""
    if ref is None:
        return None, None
    return ref.kind.value, reference_target_id(ref)


def reference_from_columns(
    reference_type: str | None,
    reference_id: UUID | None,
) -> EntryReference | None:
    """
    Rebuild a reference from its stored columns.

    Raises:
        ValueError: Unknown reference_type, or a kind that requires an id
            stored without one.
    """
    if reference_type is None:
        return None

    kind = ReferenceKind(reference_type)
    if kind is ReferenceKind.MANUAL:
        return ManualRef()
    if reference_id is None:
        raise ValueError(f"Reference kind '{kind.value}' requires a reference_id")

    match kind:
        case ReferenceKind.SALES_INVOICE:
            return SalesInvoiceRef(reference_id)
        case ReferenceKind.PURCHASE_INVOICE:
            return PurchaseInvoiceRef(reference_id)
        case ReferenceKind.PAYMENT:
            return PaymentRef(reference_id)
        case ReferenceKind.DEPRECIATION:
            return DepreciationRef(reference_id)
        case ReferenceKind.PAYROLL:
            return PayrollRef(reference_id)
        case ReferenceKind.REVERSAL:
            return ReversalRef(reference_id)
    raise ValueError(f"Unhandled reference kind: {kind.value}")
