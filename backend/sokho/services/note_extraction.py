"""
Service đọc ảnh phiếu nhập / phiếu bán viết tay bằng Gemini.

Kết quả chỉ là GỢI Ý (`SuggestedNote`): ngày, tên đối tác, ghi chú và các dòng
hàng đoán được. Người dùng phải chọn sản phẩm + xác nhận số lượng
(`confirm_item`) trước khi dòng đó được dùng để tạo đơn hoặc phiếu kho.

Trong lúc chờ AI không có gì trong DB bị thay đổi; bỏ kết quả là coi như hủy.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from difflib import SequenceMatcher
from typing import Any

import httpx
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.error_handler import ExtractionError, ValidationError
from ..core.validators import parse_int, parse_optional_positive, to_number
from ..repositories import ProductRepository

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

NOTE_KIND_IMPORT = "import"
NOTE_KIND_SALES = "sales"
NOTE_KINDS = (NOTE_KIND_IMPORT, NOTE_KIND_SALES)

# Ngưỡng tối thiểu để gợi ý sản phẩm khớp tên
MATCH_THRESHOLD = 0.6

IMPORT_NOTE_PROMPT = """Bạn là trợ lý chuyên đọc ảnh phiếu nhập kho viết tay hoặc in.
Hãy trích xuất:
1. "date": ngày nhập, định dạng YYYY-MM-DD (chọn ngày nổi bật nhất nếu có nhiều ngày).
2. "counterpart_name": tên nhà cung cấp nếu có.
3. "items": danh sách {"name_guess": tên sản phẩm đoán được, "quantity_guess": số nguyên >= 1}.
   Dòng không có số lượng thì bỏ qua.
4. "notes": các ghi chú khác trên phiếu.
Thông tin không rõ thì bỏ trống, không được đoán bừa.
Ví dụ: "Bút bi Thiên Long x 20" -> {"name_guess": "Bút bi Thiên Long", "quantity_guess": 20}
Chỉ trả về JSON."""

SALES_NOTE_PROMPT = """Bạn là trợ lý chuyên đọc ảnh phiếu bán hàng / hóa đơn đơn giản viết tay.
Hãy trích xuất:
1. "counterpart_name": tên khách hàng nếu có.
2. "date": ngày bán, định dạng YYYY-MM-DD.
3. "items": danh sách {"name_guess": tên sản phẩm, "quantity_guess": số nguyên >= 1,
   "unit_price_guess": đơn giá nếu ghi rõ}. Dòng không có số lượng thì bỏ qua.
4. "notes": các ghi chú khác trên phiếu.
Thông tin không rõ thì bỏ trống, không được đoán bừa.
Ví dụ: "Bút bi Thiên Long x 20, 5000d" ->
{"name_guess": "Bút bi Thiên Long", "quantity_guess": 20, "unit_price_guess": 5000}
Chỉ trả về JSON."""

FORECAST_PROMPT = """Bạn là cố vấn tài chính cho một cửa hàng nhỏ ở Việt Nam.
Phân tích dữ liệu thu nhập và chi tiêu dưới đây, dự báo xu hướng sắp tới và đưa ra
khuyến nghị cụ thể để cải thiện tình hình tài chính. Trả lời bằng tiếng Việt.
Trả về JSON dạng {{"forecast_summary": "...", "recommendations": "..."}}.

Thu nhập: {income}
Chi tiêu: {expenses}"""


@dataclass(frozen=True)
class SuggestedItem:
    name_guess: str
    quantity_guess: int | None = None
    unit_price_guess: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name_guess": self.name_guess,
            "quantity_guess": self.quantity_guess,
            "unit_price_guess": to_number(self.unit_price_guess),
        }


@dataclass(frozen=True)
class SuggestedNote:
    """Thông tin AI đoán từ ảnh, mọi trường đều có thể trống."""

    date: date | None = None
    counterpart_name: str | None = None
    notes: str | None = None
    items: list[SuggestedItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat() if self.date else None,
            "counterpart_name": self.counterpart_name,
            "notes": self.notes,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class ConfirmedItem:
    """Dòng hàng đã được người dùng xác nhận, dùng được cho đơn / phiếu kho."""

    product_id: uuid.UUID
    product_name: str
    quantity: int
    unit_price: Decimal | None = None

    def to_order_line(self) -> dict[str, Any]:
        line: dict[str, Any] = {"product_id": str(self.product_id), "quantity": self.quantity}
        if self.unit_price is not None:
            line["unit_price"] = self.unit_price
        return line

    def to_transaction_payload(self, tx_type: str, tx_date: date | None = None) -> dict[str, Any]:
        return {
            "product_id": str(self.product_id),
            "type": tx_type,
            "quantity": self.quantity,
            "date": tx_date,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": str(self.product_id),
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": to_number(self.unit_price),
        }


def _clean_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def _clean_date(value: Any) -> date | None:
    text = _clean_text(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def _clean_quantity(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value >= 1:
        return value
    return None


def _clean_price(value: Any) -> Decimal | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value < 0:
        return None
    return Decimal(str(value))


def parse_suggested_note(raw: Any) -> SuggestedNote:
    """Chuẩn hóa JSON model trả về; dòng hỏng / ngày sai bị bỏ qua."""

    if not isinstance(raw, dict):
        return SuggestedNote()

    items: list[SuggestedItem] = []
    raw_items = raw.get("items")
    if isinstance(raw_items, list):
        for entry in raw_items:
            if not isinstance(entry, dict):
                continue
            name = _clean_text(entry.get("name_guess"))
            quantity = _clean_quantity(entry.get("quantity_guess"))
            if not name or quantity is None:
                continue
            items.append(
                SuggestedItem(
                    name_guess=name,
                    quantity_guess=quantity,
                    unit_price_guess=_clean_price(entry.get("unit_price_guess")),
                )
            )

    return SuggestedNote(
        date=_clean_date(raw.get("date")),
        counterpart_name=_clean_text(raw.get("counterpart_name")),
        notes=_clean_text(raw.get("notes")),
        items=items,
    )


def split_data_uri(data_uri: str) -> tuple[str, str]:
    """'data:image/png;base64,xxx' -> ('image/png', 'xxx')"""

    if not isinstance(data_uri, str) or not data_uri.startswith("data:"):
        raise ValidationError("Ảnh phải là data URI dạng data:<mime>;base64,<dữ liệu>")
    header, _, payload = data_uri.partition(",")
    mime_type, _, encoding = header[5:].partition(";")
    if encoding != "base64" or not mime_type or not payload:
        raise ValidationError("Ảnh phải là data URI dạng data:<mime>;base64,<dữ liệu>")
    return mime_type, payload


class NoteExtractionClient:
    """Client gọi Gemini `generateContent` qua httpx."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.timeout = timeout or settings.ai_timeout_seconds
        self.transport = transport

    def _generate(self, parts: list[dict[str, Any]]) -> Any:
        if not self.api_key:
            raise ExtractionError("Chưa cấu hình GEMINI_API_KEY")

        url = f"{GEMINI_API_BASE}/models/{self.model}:generateContent"
        payload = {
            "contents": [{"parts": parts}],
            "generationConfig": {"response_mime_type": "application/json"},
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(url, params={"key": self.api_key}, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            logger.error("Lỗi khi gọi Gemini: %s", e)
            raise ExtractionError() from e
        except ValueError as e:
            logger.error("Gemini trả về dữ liệu không phải JSON: %s", e)
            raise ExtractionError() from e

        try:
            text = body["candidates"][0]["content"]["parts"][0]["text"]
            return json.loads(text)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("Không đọc được phản hồi Gemini: %s", e)
            raise ExtractionError() from e

    def _extract(self, prompt: str, image_data_uri: str) -> SuggestedNote:
        mime_type, data = split_data_uri(image_data_uri)
        raw = self._generate(
            [
                {"text": prompt},
                {"inline_data": {"mime_type": mime_type, "data": data}},
            ]
        )
        note = parse_suggested_note(raw)
        logger.info("AI gợi ý %s dòng hàng từ ảnh ghi chú", len(note.items))
        return note

    def extract_import_note(self, image_data_uri: str) -> SuggestedNote:
        return self._extract(IMPORT_NOTE_PROMPT, image_data_uri)

    def extract_sales_note(self, image_data_uri: str) -> SuggestedNote:
        return self._extract(SALES_NOTE_PROMPT, image_data_uri)

    def extract(self, kind: str, image_data_uri: str) -> SuggestedNote:
        if kind == NOTE_KIND_IMPORT:
            return self.extract_import_note(image_data_uri)
        if kind == NOTE_KIND_SALES:
            return self.extract_sales_note(image_data_uri)
        raise ValidationError(f"Loại ghi chú không hợp lệ: {kind}")

    def financial_forecast(
        self,
        income: list[dict[str, Any]],
        expenses: list[dict[str, Any]],
    ) -> dict[str, str]:
        """Dự báo tài chính từ lịch sử thu / chi ({date, amount})."""

        prompt = FORECAST_PROMPT.format(
            income=json.dumps(income, ensure_ascii=False, default=str),
            expenses=json.dumps(expenses, ensure_ascii=False, default=str),
        )
        raw = self._generate([{"text": prompt}])
        if not isinstance(raw, dict):
            raise ExtractionError("Phản hồi dự báo không hợp lệ")
        return {
            "forecast_summary": _clean_text(raw.get("forecast_summary")) or "",
            "recommendations": _clean_text(raw.get("recommendations")) or "",
        }


def _similarity(a: str, b: str) -> float:
    return SequenceMatcher(None, a.casefold(), b.casefold()).ratio()


def match_products(db: Session, suggestion: SuggestedItem, limit: int = 3) -> list[dict[str, Any]]:
    """Gợi ý sản phẩm có tên gần giống; chỉ là gợi ý, không tự xác nhận."""

    guess = suggestion.name_guess
    scored = []
    for product in ProductRepository(db).list_all():
        score = _similarity(guess, product.name)
        if guess.casefold() in product.name.casefold():
            score = max(score, 0.9)
        if score >= MATCH_THRESHOLD:
            scored.append((score, product))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [
        {"product_id": str(product.id), "name": product.name, "score": round(score, 2)}
        for score, product in scored[:limit]
    ]


def confirm_item(
    db: Session,
    suggestion: SuggestedItem | None,
    product_id: Any,
    quantity: Any,
    unit_price: Any = None,
) -> ConfirmedItem:
    """Người dùng chọn sản phẩm + số lượng cho một dòng gợi ý.

    Raises:
        NotFoundError: sản phẩm không tồn tại
        InvalidAmountError: số lượng <= 0 hoặc đơn giá sai
    """
    product = ProductRepository(db).get_or_raise(product_id)
    confirmed_qty = parse_int(quantity, "Số lượng", minimum=1)
    price = parse_optional_positive(unit_price, "Đơn giá")
    if price is None and suggestion is not None:
        price = suggestion.unit_price_guess

    return ConfirmedItem(
        product_id=product.id,
        product_name=product.name,
        quantity=confirmed_qty,
        unit_price=price,
    )
