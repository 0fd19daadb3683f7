"""
API cho module Kho: ghi phiếu nhập / xuất và báo cáo tồn kho.
"""

from __future__ import annotations

from robyn import Request, Response

from ..core.db import get_session
from ..core.error_handler import json_response
from ..core.validators import load_json_body
from ..services.stock_ledger import stock_levels_report
from ..services.transaction_service import (
    admit_transaction,
    list_transactions as list_transactions_service,
    transaction_to_dict,
)


def list_transactions(request: Request) -> Response:  # type: ignore[override]
    """GET /api/inventory/transactions?type=import|export&product_id=..."""

    tx_type = request.query_params.get("type", None) or None
    product_id = request.query_params.get("product_id", None)
    with get_session() as db:
        rows = list_transactions_service(db, type=tx_type, product_id=product_id)
        return json_response([transaction_to_dict(tx) for tx in rows])


def create_transaction(request: Request) -> Response:  # type: ignore[override]
    """POST /api/inventory/transactions

    Phiếu xuất vượt tồn kho bị từ chối (409, INSUFFICIENT_STOCK, kèm `available`).
    """
    data = load_json_body(request.body)
    with get_session() as db:
        tx = admit_transaction(db, data)
        return json_response(transaction_to_dict(tx), status_code=201)


def get_stock_levels(request: Request) -> Response:  # type: ignore[override]
    """GET /api/reports/stock-levels"""

    with get_session() as db:
        return json_response(stock_levels_report(db))
