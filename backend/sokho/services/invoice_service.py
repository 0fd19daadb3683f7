"""
Service render hóa đơn bán hàng (HTML in được) bằng Jinja2.

Chỉ đọc dữ liệu đơn đã có, không ghi gì vào DB.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.config import Settings, settings as default_settings
from ..models.enums import PAYMENT_METHOD_LABELS, PAYMENT_METHOD_TRANSFER
from .notification_service import format_vnd
from .qr_service import build_vietqr_url, create_order_qr_data, generate_qr_code_data_url

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)
env.filters["vnd"] = format_vnd


def render_invoice(order: dict[str, Any], settings: Settings | None = None) -> str:
    """Render hóa đơn từ dict của `order_to_dict`."""

    settings = settings or default_settings
    vietqr_url = None
    if order.get("payment_method") == PAYMENT_METHOD_TRANSFER:
        vietqr_url = build_vietqr_url(
            order.get("final_amount") or 0,
            f"TT DH {order['order_number']}",
            bank_id=settings.bank_id,
            account_number=settings.bank_account_number,
            account_name=settings.bank_account_name,
        )

    template = env.get_template("invoice.html")
    return template.render(
        shop_name=settings.shop_name,
        order=order,
        payment_label=PAYMENT_METHOD_LABELS.get(order.get("payment_method"), ""),
        order_qr=generate_qr_code_data_url(create_order_qr_data(order), size=4),
        vietqr_url=vietqr_url,
    )
