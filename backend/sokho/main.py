"""
Điểm vào chính của backend Robyn.

- Khởi tạo Robyn app
- Cấu hình logging + DB
- Khai báo routes JSON (và trang hóa đơn HTML)
"""

from __future__ import annotations

from robyn import Robyn, Request, Response

from .api import catalog as catalog_api
from .api import inventory as inventory_api
from .api import ledger as ledger_api
from .api import notes as notes_api
from .api import orders as orders_api
from .core.config import settings
from .core.db import init_db
from .core.error_handler import handle_errors, json_response
from .core.logging_config import setup_logging

app = Robyn(__file__)


@app.get("/api/health")
async def health(request: Request) -> Response:  # type: ignore[override]
    return json_response({"status": "ok", "app": settings.app_name})


# Product API routes
@app.get("/api/products")
@handle_errors
async def api_list_products(request: Request) -> Response:  # type: ignore[override]
    """API: Danh sách sản phẩm kèm tồn kho."""
    return catalog_api.list_products(request)


@app.post("/api/products")
@handle_errors
async def api_create_product(request: Request) -> Response:  # type: ignore[override]
    """API: Thêm sản phẩm."""
    return catalog_api.create_product(request)


@app.get("/api/products/:id")
@handle_errors
async def api_get_product(request: Request) -> Response:  # type: ignore[override]
    return catalog_api.get_product(request)


@app.put("/api/products/:id")
@handle_errors
async def api_update_product(request: Request) -> Response:  # type: ignore[override]
    """API: Sửa sản phẩm."""
    return catalog_api.update_product(request)


@app.delete("/api/products/:id")
@handle_errors
async def api_delete_product(request: Request) -> Response:  # type: ignore[override]
    """API: Xóa sản phẩm (kèm giao dịch kho)."""
    return catalog_api.delete_product(request)


@app.get("/api/products/:id/stock")
@handle_errors
async def api_get_product_stock(request: Request) -> Response:  # type: ignore[override]
    """API: Tồn kho hiện tại của 1 sản phẩm."""
    return catalog_api.get_product_stock(request)


# Inventory API routes
@app.get("/api/inventory/transactions")
@handle_errors
async def api_list_transactions(request: Request) -> Response:  # type: ignore[override]
    """API: Lịch sử nhập / xuất kho."""
    return inventory_api.list_transactions(request)


@app.post("/api/inventory/transactions")
@handle_errors
async def api_create_transaction(request: Request) -> Response:  # type: ignore[override]
    """API: Ghi phiếu nhập / xuất kho."""
    return inventory_api.create_transaction(request)


# Sales order API routes
@app.get("/api/orders")
@handle_errors
async def api_list_orders(request: Request) -> Response:  # type: ignore[override]
    """API: Danh sách đơn hàng."""
    return orders_api.list_orders(request)


@app.post("/api/orders")
@handle_errors
async def api_create_order(request: Request) -> Response:  # type: ignore[override]
    """API: Tạo đơn hàng nháp."""
    return orders_api.create_order(request)


@app.post("/api/orders/quote")
@handle_errors
async def api_quote_order(request: Request) -> Response:  # type: ignore[override]
    """API: Xem trước số tiền cần trả."""
    return orders_api.quote_order(request)


@app.get("/api/orders/:id")
@handle_errors
async def api_get_order(request: Request) -> Response:  # type: ignore[override]
    return orders_api.get_order(request)


@app.put("/api/orders/:id")
@handle_errors
async def api_update_order(request: Request) -> Response:  # type: ignore[override]
    """API: Sửa đơn hàng "Mới"."""
    return orders_api.update_order(request)


@app.post("/api/orders/:id/settle")
@handle_errors
async def api_settle_order(request: Request) -> Response:  # type: ignore[override]
    """API: Chốt đơn + thanh toán."""
    return orders_api.settle_order(request)


@app.post("/api/orders/:id/cancel")
@handle_errors
async def api_cancel_order(request: Request) -> Response:  # type: ignore[override]
    """API: Hủy đơn hàng "Mới"."""
    return orders_api.cancel_order(request)


@app.get("/api/orders/:id/invoice")
@handle_errors
async def api_order_invoice(request: Request) -> Response:  # type: ignore[override]
    """Trang hóa đơn HTML để in."""
    return orders_api.get_invoice(request)


# Income / expense API routes
@app.get("/api/income")
@handle_errors
async def api_list_income(request: Request) -> Response:  # type: ignore[override]
    return ledger_api.list_income(request)


@app.post("/api/income")
@handle_errors
async def api_create_income(request: Request) -> Response:  # type: ignore[override]
    """API: Ghi khoản thu."""
    return ledger_api.create_income(request)


@app.delete("/api/income/:id")
@handle_errors
async def api_delete_income(request: Request) -> Response:  # type: ignore[override]
    return ledger_api.delete_income(request)


@app.get("/api/expenses")
@handle_errors
async def api_list_expenses(request: Request) -> Response:  # type: ignore[override]
    return ledger_api.list_expenses(request)


@app.post("/api/expenses")
@handle_errors
async def api_create_expense(request: Request) -> Response:  # type: ignore[override]
    """API: Ghi khoản chi."""
    return ledger_api.create_expense(request)


@app.delete("/api/expenses/:id")
@handle_errors
async def api_delete_expense(request: Request) -> Response:  # type: ignore[override]
    return ledger_api.delete_expense(request)


# Report API routes
@app.get("/api/reports/stock-levels")
@handle_errors
async def api_stock_levels(request: Request) -> Response:  # type: ignore[override]
    """API: Báo cáo tồn kho (còn hàng / sắp hết / hết hàng)."""
    return inventory_api.get_stock_levels(request)


@app.get("/api/reports/category-totals")
@handle_errors
async def api_category_totals(request: Request) -> Response:  # type: ignore[override]
    """API: Tổng thu / chi theo danh mục."""
    return ledger_api.get_category_totals(request)


@app.get("/api/reports/monthly")
@handle_errors
async def api_monthly_summary(request: Request) -> Response:  # type: ignore[override]
    """API: Thu chi theo tháng."""
    return ledger_api.get_monthly_summary(request)


@app.get("/api/reports/order-profit")
@handle_errors
async def api_order_profit(request: Request) -> Response:  # type: ignore[override]
    """API: Doanh thu, giá vốn, lãi của đơn đã hoàn thành."""
    return ledger_api.get_order_profit(request)


@app.get("/api/reports/dashboard")
@handle_errors
async def api_dashboard(request: Request) -> Response:  # type: ignore[override]
    return ledger_api.get_dashboard(request)


# AI API routes
@app.post("/api/notes/extract")
@handle_errors
async def api_extract_note(request: Request) -> Response:  # type: ignore[override]
    """API: Đọc ảnh phiếu nhập / phiếu bán viết tay."""
    return notes_api.extract_note(request)


@app.post("/api/notes/confirm")
@handle_errors
async def api_confirm_note(request: Request) -> Response:  # type: ignore[override]
    """API: Xác nhận dòng hàng gợi ý."""
    return notes_api.confirm_note_items(request)


@app.post("/api/forecast")
@handle_errors
async def api_forecast(request: Request) -> Response:  # type: ignore[override]
    """API: Dự báo tài chính."""
    return notes_api.forecast(request)


def setup() -> None:
    """Chạy các bước khởi tạo khi start app."""

    setup_logging()
    init_db()


if __name__ == "__main__":
    setup()
    app.start(port=8000, host="0.0.0.0")
