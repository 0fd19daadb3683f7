"""
Tính tiền đơn hàng bán: thành tiền, giảm giá, thu khác, tiền thối, lãi.

Toàn bộ là hàm thuần (không đụng DB), dùng `Decimal` để số tiền VND luôn chính xác.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol, Sequence

from ..core.error_handler import (
    EmptyOrderError,
    InvalidAmountError,
    UnderPaymentError,
    ValidationError,
)
from ..models.enums import PAYMENT_METHOD_CASH, PAYMENT_METHODS

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class PricedItem(Protocol):
    quantity: int
    unit_price: Decimal
    cost_price: Decimal


@dataclass(frozen=True)
class LineItem:
    """Dòng hàng tối giản dùng cho tính toán / báo giá."""

    quantity: int
    unit_price: Decimal
    cost_price: Decimal = ZERO


@dataclass(frozen=True)
class SettlementResult:
    subtotal: Decimal
    discount_percentage: Decimal
    direct_discount_amount: Decimal
    other_income_amount: Decimal
    amount_due: Decimal
    total_cost: Decimal
    total_profit: Decimal
    payment_method: str
    cash_received: Decimal | None
    change_given: Decimal | None

    @property
    def final_amount(self) -> Decimal:
        return self.amount_due

    def to_dict(self) -> dict[str, object]:
        return {
            "subtotal": self.subtotal,
            "discount_percentage": self.discount_percentage,
            "direct_discount_amount": self.direct_discount_amount,
            "other_income_amount": self.other_income_amount,
            "final_amount": self.amount_due,
            "total_cost": self.total_cost,
            "total_profit": self.total_profit,
            "payment_method": self.payment_method,
            "cash_received": self.cash_received,
            "change_given": self.change_given,
        }


def round_vnd(amount: Decimal) -> Decimal:
    """Làm tròn về đồng (không có xu)."""
    return amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def line_total(item: PricedItem) -> Decimal:
    return Decimal(item.quantity) * Decimal(item.unit_price)


def order_subtotal(items: Iterable[PricedItem]) -> Decimal:
    return sum((line_total(item) for item in items), ZERO)


def total_cost(items: Iterable[PricedItem]) -> Decimal:
    return sum(
        (Decimal(item.quantity) * Decimal(item.cost_price or ZERO) for item in items),
        ZERO,
    )


def amount_due(
    subtotal: Decimal,
    discount_pct: Decimal = ZERO,
    other_income: Decimal = ZERO,
    direct_discount: Decimal = ZERO,
) -> Decimal:
    """Số tiền khách phải trả, không bao giờ âm."""

    due = subtotal * (1 - discount_pct / HUNDRED) - direct_discount + other_income
    return max(ZERO, round_vnd(due))


def change_due(cash_received: Decimal, due: Decimal) -> Decimal:
    return max(ZERO, cash_received - due)


def total_profit(due: Decimal, cost: Decimal) -> Decimal:
    return due - cost


def validate_payment_inputs(
    discount_pct: Decimal,
    other_income: Decimal,
    direct_discount: Decimal = ZERO,
    cash_received: Decimal | None = None,
) -> None:
    if discount_pct < 0 or discount_pct > HUNDRED:
        raise InvalidAmountError("Giảm giá phải trong khoảng 0-100%")
    if direct_discount < 0:
        raise InvalidAmountError("Giảm giá không âm")
    if other_income < 0:
        raise InvalidAmountError("Thu khác không âm")
    if cash_received is not None and cash_received < 0:
        raise InvalidAmountError("Tiền khách trả không âm")
    if discount_pct and direct_discount:
        raise ValidationError(
            "Chỉ có thể áp dụng một trong hai: Giảm giá (%) hoặc Giảm trực tiếp (đ)."
        )


def valid_lines(items: Sequence[PricedItem]) -> list[PricedItem]:
    """Bỏ các dòng số lượng <= 0; đơn không còn dòng nào là đơn rỗng."""

    lines = [item for item in items if item.quantity > 0]
    if not lines:
        raise EmptyOrderError()
    return lines


def compute_settlement(
    items: Sequence[PricedItem],
    discount_pct: Decimal = ZERO,
    other_income: Decimal = ZERO,
    payment_method: str = PAYMENT_METHOD_CASH,
    cash_received: Decimal | None = None,
    direct_discount: Decimal = ZERO,
) -> SettlementResult:
    """Tính toàn bộ số liệu thanh toán cho một đơn.

    Raises:
        EmptyOrderError: không có dòng hàng hợp lệ
        InvalidAmountError / ValidationError: tham số thanh toán sai
        UnderPaymentError: tiền mặt khách trả không đủ
    """
    lines = valid_lines(items)
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Phương thức thanh toán không hợp lệ: {payment_method}")
    validate_payment_inputs(discount_pct, other_income, direct_discount, cash_received)

    subtotal = order_subtotal(lines)
    due = amount_due(subtotal, discount_pct, other_income, direct_discount)
    cost = total_cost(lines)

    change: Decimal | None = None
    if payment_method == PAYMENT_METHOD_CASH:
        if due > 0 and (cash_received is None or cash_received < due):
            raise UnderPaymentError(amount_due=due, cash_received=cash_received)
        if cash_received is None:
            cash_received = ZERO
        change = change_due(cash_received, due)
    else:
        cash_received = None

    return SettlementResult(
        subtotal=subtotal,
        discount_percentage=discount_pct,
        direct_discount_amount=direct_discount,
        other_income_amount=other_income,
        amount_due=due,
        total_cost=cost,
        total_profit=total_profit(due, cost),
        payment_method=payment_method,
        cash_received=cash_received,
        change_given=change,
    )
