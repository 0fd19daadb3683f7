"""
API đọc ảnh ghi chú viết tay + dự báo tài chính bằng AI.

Kết quả AI chỉ là gợi ý. Dòng hàng phải được xác nhận (`/api/notes/confirm`)
mới dùng được để tạo đơn hoặc phiếu kho.
"""

from __future__ import annotations

from robyn import Request, Response

from ..core.db import get_session
from ..core.error_handler import ValidationError, json_response
from ..core.validators import load_json_body, parse_optional_positive, to_number
from ..services import entry_service
from ..services.note_extraction import (
    NoteExtractionClient,
    SuggestedItem,
    confirm_item,
    match_products,
)


def extract_note(request: Request) -> Response:  # type: ignore[override]
    """POST /api/notes/extract

    Payload: {"kind": "import" | "sales", "image_data_uri": "data:image/jpeg;base64,..."}
    """
    data = load_json_body(request.body)
    note = NoteExtractionClient().extract(data.get("kind"), data.get("image_data_uri"))

    with get_session() as db:
        matches = [match_products(db, item) for item in note.items]

    result = note.to_dict()
    for item, candidates in zip(result["items"], matches):
        item["matches"] = candidates
    return json_response(result)


def confirm_note_items(request: Request) -> Response:  # type: ignore[override]
    """POST /api/notes/confirm

    Payload:
    {
      "items": [
        {"product_id": "...", "quantity": 5, "unit_price": 20000,
         "name_guess": "bánh quy", "unit_price_guess": 21000},
        ...
      ]
    }
    """
    data = load_json_body(request.body)
    raw_items = data.get("items")
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("Cần ít nhất một dòng để xác nhận")

    confirmed = []
    with get_session() as db:
        for raw in raw_items:
            if not isinstance(raw, dict):
                raise ValidationError("Dòng xác nhận không hợp lệ")
            suggestion = None
            if raw.get("name_guess"):
                suggestion = SuggestedItem(
                    name_guess=str(raw["name_guess"]),
                    unit_price_guess=parse_optional_positive(
                        raw.get("unit_price_guess"), "Đơn giá gợi ý"
                    ),
                )
            item = confirm_item(
                db,
                suggestion,
                raw.get("product_id"),
                raw.get("quantity"),
                raw.get("unit_price"),
            )
            confirmed.append(item.to_dict())
    return json_response({"items": confirmed})


def forecast(request: Request) -> Response:  # type: ignore[override]
    """POST /api/forecast: dự báo từ toàn bộ lịch sử thu / chi."""

    with get_session() as db:
        income = [
            {"date": e.entry_date.isoformat(), "amount": to_number(e.amount)}
            for e in entry_service.list_income_entries(db)
        ]
        expenses = [
            {"date": e.entry_date.isoformat(), "amount": to_number(e.amount)}
            for e in entry_service.list_expense_entries(db)
        ]
    return json_response(NoteExtractionClient().financial_forecast(income, expenses))
