"""
Parse + validate dữ liệu đầu vào từ form / JSON.

Các hàm ở đây trả về giá trị đã chuẩn hóa hoặc raise `InvalidAmountError` /
`ValidationError` với thông báo tiếng Việt hiển thị được cho người dùng.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from .error_handler import InvalidAmountError, ValidationError

# Giới hạn INTEGER 64-bit của SQLite
MAX_INT = 2**63 - 1


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def optional_text(value: Any) -> str | None:
    """Chuỗi rỗng coi như không nhập."""
    if is_blank(value):
        return None
    return str(value).strip()


def require_text(value: Any, label: str) -> str:
    text = optional_text(value)
    if text is None:
        raise ValidationError(f"{label} là bắt buộc")
    return text


def parse_decimal(value: Any, label: str) -> Decimal:
    """Parse số tiền; chấp nhận dấu chấm phân cách hàng nghìn kiểu VN ("1.250.000")."""
    if isinstance(value, bool):
        raise InvalidAmountError(f"{label} phải là số")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        text = str(value).strip() if value is not None else ""
        if text.count(".") > 1 or (text.count(".") == 1 and len(text.split(".")[1]) == 3):
            text = text.replace(".", "")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise InvalidAmountError(f"{label} phải là số")
    if not result.is_finite():
        raise InvalidAmountError(f"{label} phải là số")
    return result


def parse_non_negative(value: Any, label: str, default: Decimal | None = None) -> Decimal:
    if is_blank(value):
        if default is None:
            raise InvalidAmountError(f"{label} là bắt buộc")
        return default
    result = parse_decimal(value, label)
    if result < 0:
        raise InvalidAmountError(f"{label} không được âm")
    return result


def parse_positive(value: Any, label: str) -> Decimal:
    result = parse_decimal(value, label) if not is_blank(value) else None
    if result is None or result <= 0:
        raise InvalidAmountError(f"{label} phải lớn hơn 0")
    return result


def parse_optional_positive(value: Any, label: str) -> Decimal | None:
    if is_blank(value):
        return None
    return parse_positive(value, label)


def parse_optional_non_negative(value: Any, label: str) -> Decimal | None:
    if is_blank(value):
        return None
    return parse_non_negative(value, label)


def parse_int(value: Any, label: str, minimum: int) -> int:
    """Parse số nguyên >= minimum (số lượng, tồn kho)."""
    if isinstance(value, bool) or is_blank(value):
        raise InvalidAmountError(f"{label} phải là số nguyên")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidAmountError(f"{label} phải là số nguyên")
    if not number.is_finite() or number != number.to_integral_value():
        raise InvalidAmountError(f"{label} phải là số nguyên")
    result = int(number)
    if result > MAX_INT:
        raise InvalidAmountError(f"{label} quá lớn")
    if result < minimum:
        if minimum == 1:
            raise InvalidAmountError(f"{label} phải lớn hơn 0")
        raise InvalidAmountError(f"{label} không được âm")
    return result


def parse_optional_int(value: Any, label: str, minimum: int = 0) -> int | None:
    if is_blank(value):
        return None
    return parse_int(value, label, minimum)


def parse_date(value: Any, label: str = "Ngày", default: date | None = None) -> date:
    """Parse ngày ISO (YYYY-MM-DD); chấp nhận cả datetime ISO."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if is_blank(value):
        if default is not None:
            return default
        raise ValidationError(f"{label} là bắt buộc")
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise ValidationError(f"{label} không đúng định dạng YYYY-MM-DD")


def require_choice(value: Any, choices: Iterable[str], label: str) -> str:
    if value not in tuple(choices):
        raise ValidationError(f"{label} không hợp lệ: {value}")
    return value


def to_number(value: Decimal | None) -> float | None:
    """Decimal -> float để trả JSON (VND không có phần lẻ đáng kể)."""
    if value is None:
        return None
    return float(value)


def load_json_body(body: Any) -> dict[str, Any]:
    """Body JSON của request -> dict; body rỗng coi như {}."""
    try:
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        data = json.loads(body or "{}")
    except ValueError:
        raise ValidationError("Body không phải JSON hợp lệ")
    if not isinstance(data, dict):
        raise ValidationError("Body JSON phải là object")
    return data
