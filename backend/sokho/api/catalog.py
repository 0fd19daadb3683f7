"""
API cho danh mục sản phẩm.

Mọi sản phẩm trả về đều kèm tồn kho hiện tại (tính lại qua sổ kho).
"""

from __future__ import annotations

from robyn import Request, Response

from ..core.db import get_session
from ..core.error_handler import json_response
from ..core.validators import load_json_body
from ..services import catalog_service
from ..services.stock_ledger import current_stock


def list_products(request: Request) -> Response:  # type: ignore[override]
    """GET /api/products?search=..."""

    search = request.query_params.get("search", None)
    with get_session() as db:
        products = catalog_service.list_products(db, search=search)
        return json_response([p.to_dict() for p in products])


def create_product(request: Request) -> Response:  # type: ignore[override]
    """POST /api/products

    Payload:
    {
      "name": "Bánh quy bơ",
      "unit": "hộp",
      "cost_price": 35000,
      "selling_price": 50000,
      "initial_stock": 10,
      "min_stock_level": 3
    }
    """
    data = load_json_body(request.body)
    with get_session() as db:
        product = catalog_service.add_product(db, data)
        return json_response(product.to_dict(), status_code=201)


def get_product(request: Request) -> Response:  # type: ignore[override]
    with get_session() as db:
        product = catalog_service.get_product(db, request.path_params.get("id"))
        return json_response(product.to_dict())


def update_product(request: Request) -> Response:  # type: ignore[override]
    """PUT /api/products/:id (chỉ sửa các trường có trong body)."""

    data = load_json_body(request.body)
    with get_session() as db:
        product = catalog_service.update_product(db, request.path_params.get("id"), data)
        return json_response(product.to_dict())


def delete_product(request: Request) -> Response:  # type: ignore[override]
    """DELETE /api/products/:id, xóa kèm toàn bộ giao dịch kho của sản phẩm."""

    with get_session() as db:
        removed = catalog_service.delete_product(db, request.path_params.get("id"))
    return json_response({"deleted": True, "transactions_removed": removed})


def get_product_stock(request: Request) -> Response:  # type: ignore[override]
    product_id = request.path_params.get("id")
    with get_session() as db:
        stock = current_stock(db, product_id)
    return json_response({"product_id": product_id, "current_stock": stock})
