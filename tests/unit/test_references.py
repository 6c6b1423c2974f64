"""Tests for the entry reference variant and its column mapping."""

from uuid import uuid4

import pytest

from ledger_kernel.domain.references import (
    DepreciationRef,
    ManualRef,
    PaymentRef,
    PayrollRef,
    PurchaseInvoiceRef,
    ReferenceKind,
    ReversalRef,
    SalesInvoiceRef,
    reference_from_columns,
    reference_target_id,
    reference_to_columns,
)

TARGET = uuid4()


@pytest.mark.parametrize(
    "ref, kind",
    [
        (SalesInvoiceRef(TARGET), "sales_invoice"),
        (PurchaseInvoiceRef(TARGET), "purchase_invoice"),
        (PaymentRef(TARGET), "payment"),
        (DepreciationRef(TARGET), "depreciation"),
        (PayrollRef(TARGET), "payroll"),
        (ReversalRef(TARGET), "reversal"),
    ],
)
def test_targeted_references_map_to_columns(ref, kind):
    assert reference_to_columns(ref) == (kind, TARGET)
    assert reference_from_columns(kind, TARGET) == ref


def test_manual_reference_has_no_target():
    assert reference_target_id(ManualRef()) is None
    assert reference_to_columns(ManualRef()) == ("manual", None)
    assert reference_from_columns("manual", None) == ManualRef()


def test_no_reference():
    assert reference_to_columns(None) == (None, None)
    assert reference_from_columns(None, None) is None


def test_unknown_kind_rejected():
    with pytest.raises(ValueError):
        reference_from_columns("purchase_order", TARGET)


def test_kind_requiring_target_rejected_without_one():
    with pytest.raises(ValueError, match="requires a reference_id"):
        reference_from_columns(ReferenceKind.PAYMENT.value, None)


def test_references_are_value_objects():
    assert SalesInvoiceRef(TARGET) == SalesInvoiceRef(TARGET)
    assert SalesInvoiceRef(TARGET) != PurchaseInvoiceRef(TARGET)
    assert hash(ReversalRef(TARGET)) == hash(ReversalRef(TARGET))
