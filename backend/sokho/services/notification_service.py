"""
Service gửi thông báo Telegram khi chốt đơn bán.

Gửi lỗi chỉ ghi log, không bao giờ làm hỏng giao dịch bán hàng.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from ..core.config import settings
from ..models.enums import PAYMENT_METHOD_LABELS

logger = logging.getLogger(__name__)


def send_telegram_notification(message: str, transport: httpx.BaseTransport | None = None) -> bool:
    """
    Gửi thông báo qua Telegram.

    Args:
        message: Nội dung tin nhắn
        transport: httpx transport (thay thế khi test)

    Returns:
        True nếu gửi thành công, False nếu chưa cấu hình hoặc có lỗi
    """
    bot_token = settings.telegram_bot_token
    chat_id = settings.telegram_chat_id
    if not bot_token or not chat_id:
        logger.debug("Telegram chưa được cấu hình, bỏ qua thông báo")
        return False

    url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
    payload = {"chat_id": chat_id, "text": message, "parse_mode": "HTML"}
    try:
        with httpx.Client(timeout=10.0, transport=transport) as client:
            response = client.post(url, json=payload)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Lỗi khi gửi thông báo Telegram: %s", e)
        return False

    logger.info("Đã gửi thông báo Telegram")
    return True


def format_vnd(amount: Any) -> str:
    """1234567 -> '1.234.567 đ'"""
    if amount is None:
        return "0 đ"
    return f"{float(amount):,.0f}".replace(",", ".") + " đ"


def format_sale_notification(order: dict[str, Any]) -> str:
    """Định dạng thông báo chốt đơn (nhận dict từ `order_to_dict`)."""

    now = datetime.now().strftime("%d/%m/%Y %H:%M:%S")
    products = ", ".join(
        f"{item['product_name']} x{item['quantity']}" for item in order.get("items", [])
    )
    method = PAYMENT_METHOD_LABELS.get(order.get("payment_method"), order.get("payment_method"))
    return (
        f"Vào lúc {now}, đã chốt đơn \"{order['order_number']}\" "
        f"của khách hàng \"{order.get('customer_name') or 'Khách lẻ'}\": {products}. "
        f"Thành tiền {format_vnd(order.get('final_amount'))} ({method})."
    )
