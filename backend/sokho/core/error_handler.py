"""
Error handling và logging cho backend.

Tất cả lỗi nghiệp vụ (không tìm thấy, thiếu hàng, sai số tiền, đơn rỗng,
khách trả thiếu) đều là `AppError`: người dùng sửa được, không phải sự cố.
API trả về chúng dưới dạng JSON có `error_code` để client phân nhánh.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from functools import wraps
from typing import Callable, Any

from robyn import Response

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base exception cho ứng dụng."""

    def __init__(self, message: str, status_code: int = 500, error_code: str | None = None):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(self.message)

    def details(self) -> dict[str, Any]:
        """Thông tin bổ sung trả kèm trong JSON lỗi."""
        return {}


class ValidationError(AppError):
    """Lỗi validation dữ liệu."""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(message, status_code=400, error_code=error_code)


class NotFoundError(AppError):
    """Lỗi không tìm thấy resource."""

    def __init__(self, message: str = "Resource not found", error_code: str = "NOT_FOUND"):
        super().__init__(message, status_code=404, error_code=error_code)


class InvalidAmountError(ValidationError):
    """Giá, số lượng, giảm giá âm hoặc không phải số."""

    def __init__(self, message: str):
        super().__init__(message, error_code="INVALID_AMOUNT")


class EmptyOrderError(ValidationError):
    """Chốt đơn khi không có dòng hàng hợp lệ."""

    def __init__(self, message: str = "Đơn hàng phải có ít nhất một sản phẩm"):
        super().__init__(message, error_code="EMPTY_ORDER")


class InsufficientStockError(AppError):
    """Xuất kho vượt tồn kho hiện tại."""

    def __init__(self, available: int, requested: int, product_name: str | None = None):
        self.available = available
        self.requested = requested
        self.product_name = product_name
        prefix = f"{product_name}: " if product_name else ""
        super().__init__(
            f"{prefix}Không đủ hàng tồn kho. Hiện có: {available}.",
            status_code=409,
            error_code="INSUFFICIENT_STOCK",
        )

    def details(self) -> dict[str, Any]:
        return {
            "available": self.available,
            "requested": self.requested,
            "product_name": self.product_name,
        }


class UnderPaymentError(AppError):
    """Khách trả tiền mặt ít hơn số tiền cần thanh toán."""

    def __init__(self, amount_due: Decimal, cash_received: Decimal | None):
        self.amount_due = amount_due
        self.cash_received = cash_received
        if cash_received is None:
            message = "Vui lòng nhập số tiền khách trả."
        else:
            message = "Số tiền khách trả phải lớn hơn hoặc bằng số tiền cần trả."
        super().__init__(message, status_code=400, error_code="UNDER_PAYMENT")

    def details(self) -> dict[str, Any]:
        return {"amount_due": self.amount_due, "cash_received": self.cash_received}


class ExtractionError(AppError):
    """Gọi dịch vụ AI đọc ghi chú thất bại (mạng hoặc phản hồi hỏng)."""

    def __init__(self, message: str = "Không thể trích xuất thông tin từ ảnh ghi chú"):
        super().__init__(message, status_code=502, error_code="AI_EXTRACTION_FAILED")


def error_response(error: AppError | Exception) -> Response:
    """Tạo response từ exception."""
    if isinstance(error, AppError):
        status_code = error.status_code
        error_data = {
            "error": error.message,
            "error_code": error.error_code or "UNKNOWN_ERROR",
            **error.details(),
        }
    else:
        status_code = 500
        error_data = {
            "error": "Internal server error",
            "error_code": "INTERNAL_ERROR",
        }
        logger.exception("Unhandled exception: %s", error)

    return json_response(error_data, status_code)


def handle_errors(func: Callable) -> Callable:
    """Decorator để handle errors trong API handlers."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Response:
        try:
            result = await func(*args, **kwargs)
            return result
        except AppError as e:
            logger.warning("AppError [%s]: %s", e.error_code, e.message)
            return error_response(e)
        except Exception as e:
            logger.error("Unhandled error in %s: %s", func.__name__, str(e), exc_info=True)
            return error_response(e)

    return wrapper


def json_response(data: object, status_code: int = 200) -> Response:
    """Helper function để tạo JSON response."""
    return Response(
        status_code=status_code,
        headers={"Content-Type": "application/json"},
        description=json.dumps(data, default=str, ensure_ascii=False),
    )


def html_response(html: str, status_code: int = 200) -> Response:
    """Helper trả về trang HTML (hóa đơn in)."""
    return Response(
        status_code=status_code,
        headers={"Content-Type": "text/html; charset=utf-8"},
        description=html,
    )
