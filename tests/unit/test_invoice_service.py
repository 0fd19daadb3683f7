"""
Unit tests cho hóa đơn HTML, QR code và thông báo Telegram.
"""

import json
from decimal import Decimal

import httpx

from backend.sokho.core.config import Settings
from backend.sokho.services import notification_service
from backend.sokho.services.invoice_service import render_invoice
from backend.sokho.services.notification_service import (
    format_sale_notification,
    format_vnd,
    send_telegram_notification,
)
from backend.sokho.services.qr_service import (
    build_vietqr_url,
    create_order_qr_data,
    generate_qr_code_data_url,
)

ORDER = {
    "id": "2c8f3c1e-9a1b-4c55-8d0e-6f7a1b2c3d4e",
    "order_number": "DH20250308-001",
    "customer_name": "Chị Lan",
    "date": "2025-03-08",
    "status": "Hoàn thành",
    "notes": None,
    "items": [
        {"product_name": "Áo thun", "quantity": 2, "unit_price": 50000.0, "total_price": 100000.0},
        {"product_name": "Quần jean", "quantity": 1, "unit_price": 100000.0, "total_price": 100000.0},
    ],
    "total_amount": 200000.0,
    "discount_percentage": 10.0,
    "direct_discount_amount": 0.0,
    "other_income_amount": 5000.0,
    "final_amount": 185000.0,
    "payment_method": "cash",
    "cash_received": 200000.0,
    "change_given": 15000.0,
}


def _settings(**kwargs):
    values = {
        "shop_name": "Maimiel Shop",
        "bank_id": "VCB",
        "bank_account_number": "0123456789",
        "bank_account_name": "Maimiel",
    }
    values.update(kwargs)
    return Settings(**values)


def test_format_vnd():
    assert format_vnd(1234567) == "1.234.567 đ"
    assert format_vnd(None) == "0 đ"


def test_render_cash_invoice():
    html = render_invoice(ORDER, _settings())

    assert "Maimiel Shop" in html
    assert "DH20250308-001" in html
    assert "185.000 đ" in html
    assert "15.000 đ" in html
    assert "data:image/png;base64," in html
    assert "img.vietqr.io" not in html


def test_render_transfer_invoice_has_vietqr():
    order = dict(ORDER, payment_method="transfer", cash_received=None, change_given=None)

    html = render_invoice(order, _settings())

    assert "https://img.vietqr.io/image/VCB-0123456789-print.png?amount=185000" in html
    assert "Chuyển khoản" in html


def test_vietqr_url_requires_positive_amount():
    assert build_vietqr_url(0, "TT", bank_id="VCB", account_number="1") is None
    url = build_vietqr_url(Decimal("1500.4"), "TT DH 1", bank_id="VCB", account_number="1", account_name="")
    assert url == "https://img.vietqr.io/image/VCB-1-print.png?amount=1500&addInfo=TT%20DH%201"


def test_order_qr_data():
    data = json.loads(create_order_qr_data(ORDER))

    assert data["type"] == "sales_order"
    assert data["order_number"] == "DH20250308-001"
    assert generate_qr_code_data_url("DH20250308-001").startswith("data:image/png;base64,")


def test_sale_notification_text():
    message = format_sale_notification(ORDER)

    assert "DH20250308-001" in message
    assert "Áo thun x2" in message
    assert "185.000 đ (Tiền mặt)" in message


def test_telegram_skipped_when_not_configured(monkeypatch):
    monkeypatch.setattr(notification_service.settings, "telegram_bot_token", None)

    assert send_telegram_notification("xin chào") is False


def test_telegram_failure_is_not_raised(monkeypatch):
    monkeypatch.setattr(notification_service.settings, "telegram_bot_token", "token")
    monkeypatch.setattr(notification_service.settings, "telegram_chat_id", "42")
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(500)

    assert send_telegram_notification("xin chào", transport=httpx.MockTransport(handler)) is False
    assert sent[0]["chat_id"] == "42"
