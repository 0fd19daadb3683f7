"""
Unit tests cho tính tiền đơn hàng (hàm thuần, không cần DB).
"""

from decimal import Decimal

import pytest

from backend.sokho.core.error_handler import (
    EmptyOrderError,
    InvalidAmountError,
    UnderPaymentError,
    ValidationError,
)
from backend.sokho.services.sales_calculator import (
    LineItem,
    amount_due,
    change_due,
    compute_settlement,
    order_subtotal,
    round_vnd,
    total_cost,
)

D = Decimal

SAMPLE_ITEMS = [
    LineItem(quantity=2, unit_price=D("50000"), cost_price=D("30000")),
    LineItem(quantity=1, unit_price=D("100000"), cost_price=D("60000")),
]


def test_sample_order_totals():
    result = compute_settlement(
        SAMPLE_ITEMS,
        discount_pct=D("10"),
        other_income=D("5000"),
        payment_method="transfer",
    )

    assert result.subtotal == D("200000")
    assert result.amount_due == D("185000")
    assert result.total_cost == D("120000")
    assert result.total_profit == D("65000")
    assert result.cash_received is None
    assert result.change_given is None


def test_cash_settlement_gives_change():
    result = compute_settlement(
        SAMPLE_ITEMS,
        discount_pct=D("10"),
        other_income=D("5000"),
        payment_method="cash",
        cash_received=D("200000"),
    )

    assert result.final_amount == D("185000")
    assert result.change_given == D("15000")


def test_cash_underpayment_rejected():
    with pytest.raises(UnderPaymentError) as exc:
        compute_settlement(
            SAMPLE_ITEMS,
            discount_pct=D("10"),
            other_income=D("5000"),
            payment_method="cash",
            cash_received=D("150000"),
        )

    assert exc.value.error_code == "UNDER_PAYMENT"
    assert exc.value.amount_due == D("185000")


def test_cash_missing_amount_rejected():
    with pytest.raises(UnderPaymentError) as exc:
        compute_settlement(SAMPLE_ITEMS, payment_method="cash")

    assert exc.value.message == "Vui lòng nhập số tiền khách trả."


def test_amount_due_never_negative():
    assert amount_due(D("100000"), direct_discount=D("150000")) == D("0")


def test_free_order_cash_needs_no_money():
    result = compute_settlement(
        [LineItem(quantity=1, unit_price=D("0"))],
        payment_method="cash",
    )

    assert result.amount_due == D("0")
    assert result.cash_received == D("0")
    assert result.change_given == D("0")


def test_amount_due_rounds_half_up():
    # 33333 * 0.85 = 28333.05 -> 28333 ; 10001 * 0.95 = 9500.95 -> 9501
    assert amount_due(D("33333"), discount_pct=D("15")) == D("28333")
    assert amount_due(D("10001"), discount_pct=D("5")) == D("9501")
    assert round_vnd(D("2.5")) == D("3")


def test_direct_discount_reduces_amount_due():
    result = compute_settlement(
        SAMPLE_ITEMS,
        direct_discount=D("20000"),
        payment_method="transfer",
    )

    assert result.amount_due == D("180000")
    assert result.total_profit == D("60000")


def test_percentage_and_direct_discount_are_exclusive():
    with pytest.raises(ValidationError):
        compute_settlement(
            SAMPLE_ITEMS,
            discount_pct=D("10"),
            direct_discount=D("1000"),
            payment_method="transfer",
        )


@pytest.mark.parametrize(
    "kwargs",
    [
        {"discount_pct": D("-1")},
        {"discount_pct": D("101")},
        {"other_income": D("-5")},
        {"direct_discount": D("-5")},
    ],
)
def test_invalid_amounts_rejected(kwargs):
    with pytest.raises(InvalidAmountError):
        compute_settlement(SAMPLE_ITEMS, payment_method="transfer", **kwargs)


def test_empty_order_rejected():
    with pytest.raises(EmptyOrderError):
        compute_settlement([], payment_method="transfer")

    with pytest.raises(EmptyOrderError):
        compute_settlement([LineItem(quantity=0, unit_price=D("1000"))], payment_method="transfer")


def test_unknown_payment_method_rejected():
    with pytest.raises(ValidationError):
        compute_settlement(SAMPLE_ITEMS, payment_method="card")


def test_helpers():
    assert order_subtotal(SAMPLE_ITEMS) == D("200000")
    assert total_cost(SAMPLE_ITEMS) == D("120000")
    assert change_due(D("100000"), D("120000")) == D("0")
