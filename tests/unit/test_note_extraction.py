"""
Unit tests cho đọc ảnh ghi chú bằng AI (Gemini được giả lập bằng httpx.MockTransport).
"""

import json
from datetime import date
from decimal import Decimal

import httpx
import pytest

from backend.sokho.core.error_handler import ExtractionError, InvalidAmountError, NotFoundError, ValidationError
from backend.sokho.services.note_extraction import (
    NoteExtractionClient,
    SuggestedItem,
    confirm_item,
    match_products,
    parse_suggested_note,
    split_data_uri,
)
from tests.utils.factories import create_test_product

IMAGE = "data:image/jpeg;base64,QUJD"


def _gemini_reply(payload):
    body = {"candidates": [{"content": {"parts": [{"text": json.dumps(payload)}]}}]}
    return httpx.Response(200, json=body)


def _client(handler):
    return NoteExtractionClient(
        api_key="test-key",
        model="gemini-test",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


def test_extract_sales_note_parses_suggestions():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return _gemini_reply(
            {
                "date": "2025-04-01",
                "counterpart_name": "Cô Ba",
                "items": [
                    {"name_guess": "Bút bi Thiên Long", "quantity_guess": 20, "unit_price_guess": 5000},
                    {"name_guess": "Sách giáo khoa"},
                    {"name_guess": "Vở", "quantity_guess": 0},
                    "rác",
                ],
            }
        )

    note = _client(handler).extract_sales_note(IMAGE)

    assert "models/gemini-test:generateContent" in seen["url"]
    assert "key=test-key" in seen["url"]
    inline = seen["body"]["contents"][0]["parts"][1]["inline_data"]
    assert inline == {"mime_type": "image/jpeg", "data": "QUJD"}

    assert note.date == date(2025, 4, 1)
    assert note.counterpart_name == "Cô Ba"
    assert note.items == [
        SuggestedItem(name_guess="Bút bi Thiên Long", quantity_guess=20, unit_price_guess=Decimal("5000"))
    ]


def test_invalid_date_is_dropped():
    note = parse_suggested_note({"date": "hôm qua", "notes": "  giao sáng  "})

    assert note.date is None
    assert note.notes == "giao sáng"
    assert note.items == []


def test_http_error_raises_extraction_error():
    def handler(request):
        return httpx.Response(500, json={"error": "boom"})

    with pytest.raises(ExtractionError) as exc:
        _client(handler).extract_import_note(IMAGE)

    assert exc.value.status_code == 502
    assert exc.value.error_code == "AI_EXTRACTION_FAILED"


def test_transport_failure_raises_extraction_error():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(ExtractionError):
        _client(handler).extract_import_note(IMAGE)


def test_malformed_reply_raises_extraction_error():
    def handler(request):
        return httpx.Response(200, json={"candidates": []})

    with pytest.raises(ExtractionError):
        _client(handler).extract_import_note(IMAGE)


def test_missing_api_key():
    client = NoteExtractionClient(api_key="", transport=httpx.MockTransport(lambda r: _gemini_reply({})))

    with pytest.raises(ExtractionError):
        client.extract_import_note(IMAGE)


def test_bad_data_uri_and_kind():
    with pytest.raises(ValidationError):
        split_data_uri("https://example.com/a.jpg")
    with pytest.raises(ValidationError):
        _client(lambda r: _gemini_reply({})).extract("invoice", IMAGE)


def test_financial_forecast():
    def handler(request):
        prompt = json.loads(request.content)["contents"][0]["parts"][0]["text"]
        assert "2025-01-01" in prompt
        return _gemini_reply({"forecast_summary": "Thu nhập ổn định", "recommendations": "Giảm chi"})

    result = _client(handler).financial_forecast(
        [{"date": "2025-01-01", "amount": 5000}], [{"date": "2025-01-03", "amount": 1000}]
    )

    assert result == {"forecast_summary": "Thu nhập ổn định", "recommendations": "Giảm chi"}


def test_match_products_is_only_a_hint(test_db):
    create_test_product(test_db, name="Bút bi Thiên Long")
    create_test_product(test_db, name="Thước kẻ")

    matches = match_products(test_db, SuggestedItem(name_guess="but bi thien long"))
    contained = match_products(test_db, SuggestedItem(name_guess="thước"))

    assert matches and matches[0]["name"] == "Bút bi Thiên Long"
    assert contained[0]["name"] == "Thước kẻ"


def test_confirm_item_requires_product_and_quantity(test_db):
    product = create_test_product(test_db, name="Thước kẻ")
    suggestion = SuggestedItem(name_guess="thuoc ke", quantity_guess=3, unit_price_guess=Decimal("7000"))

    confirmed = confirm_item(test_db, suggestion, product.id, 4)

    assert confirmed.product_name == "Thước kẻ"
    assert confirmed.quantity == 4
    assert confirmed.unit_price == Decimal("7000")
    assert confirmed.to_order_line()["quantity"] == 4

    with pytest.raises(InvalidAmountError):
        confirm_item(test_db, suggestion, product.id, 0)
    with pytest.raises(NotFoundError):
        confirm_item(test_db, suggestion, "5f0c1a0e-0000-4000-8000-000000000000", 1)
