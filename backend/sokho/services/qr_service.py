"""
Service tạo QR code cho hóa đơn bán hàng.

- QR mã đơn (tra cứu đơn khi quét)
- URL ảnh VietQR để khách chuyển khoản đúng số tiền
"""

from __future__ import annotations

import base64
import io
import json
from decimal import Decimal
from urllib.parse import quote

import qrcode

from ..core.config import settings

VIETQR_IMAGE_BASE = "https://img.vietqr.io/image"


def generate_qr_code_image(data: str, size: int = 10, border: int = 4) -> bytes:
    """
    Tạo QR code image PNG từ dữ liệu text.

    Args:
        data: Nội dung QR code (text hoặc JSON string)
        size: Kích thước mỗi ô (box size)
        border: Border size

    Returns:
        Bytes của image PNG
    """
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_qr_code_data_url(data: str, size: int = 10, border: int = 4) -> str:
    """QR code dạng data URL, nhúng thẳng vào <img> trong HTML."""
    encoded = base64.b64encode(generate_qr_code_image(data, size, border)).decode("utf-8")
    return f"data:image/png;base64,{encoded}"


def create_order_qr_data(order: dict) -> str:
    """JSON cho QR code của đơn hàng (nhận dict từ `order_to_dict`)."""
    data = {
        "type": "sales_order",
        "id": order["id"],
        "order_number": order["order_number"],
        "date": order["date"],
        "final_amount": order.get("final_amount"),
    }
    return json.dumps(data, ensure_ascii=False)


def build_vietqr_url(
    amount: Decimal | float | int,
    add_info: str,
    bank_id: str | None = None,
    account_number: str | None = None,
    account_name: str | None = None,
) -> str | None:
    """URL ảnh VietQR; None khi số tiền <= 0 hoặc chưa cấu hình tài khoản."""

    bank_id = bank_id or settings.bank_id
    account_number = account_number or settings.bank_account_number
    account_name = account_name if account_name is not None else settings.bank_account_name
    rounded = int(Decimal(str(amount)).to_integral_value())
    if rounded <= 0 or not bank_id or not account_number:
        return None

    url = (
        f"{VIETQR_IMAGE_BASE}/{bank_id}-{account_number}-print.png"
        f"?amount={rounded}&addInfo={quote(add_info)}"
    )
    if account_name:
        url += f"&accountName={quote(account_name)}"
    return url
