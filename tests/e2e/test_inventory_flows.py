"""
E2E tests cho luồng Kho: sản phẩm, nhập / xuất, báo cáo tồn kho.

Priority: P0
"""

import pytest

from backend.sokho.api import catalog as catalog_api
from backend.sokho.api import inventory as inventory_api
from backend.sokho.models.entities import InventoryTransaction
from tests.utils.factories import create_test_product


@pytest.mark.e2e
@pytest.mark.p0
def test_import_export_flow_rejects_over_export(api, test_db):
    """
    Test Description: Nhập / xuất kho và chặn xuất vượt tồn

    Given:
    - Sản phẩm tồn đầu kỳ 10

    When:
    - Nhập 5, xuất 3, rồi xuất 20

    Then:
    - Tồn kho 15 -> 12
    - Phiếu xuất 20 bị từ chối (409) kèm available = 12, tồn vẫn là 12
    """
    # Setup (Given)
    created = api.call(
        catalog_api.create_product,
        body={"name": "Khăn lụa", "unit": "cái", "initial_stock": 10, "selling_price": 120000},
    )
    assert created.status_code == 201
    product_id = created.json()["id"]
    assert created.json()["current_stock"] == 10

    # When
    imported = api.call(
        inventory_api.create_transaction,
        body={"product_id": product_id, "type": "import", "quantity": 5, "related_party": "NCC A"},
    )
    stock = api.call(catalog_api.get_product_stock, path={"id": product_id})
    assert imported.status_code == 201
    assert stock.json()["current_stock"] == 15

    exported = api.call(
        inventory_api.create_transaction,
        body={"product_id": product_id, "type": "export", "quantity": 3},
    )
    assert exported.status_code == 201

    rejected = api.call(
        inventory_api.create_transaction,
        body={"product_id": product_id, "type": "export", "quantity": 20},
    )

    # Assert (Then)
    assert rejected.status_code == 409
    assert rejected.json()["error_code"] == "INSUFFICIENT_STOCK"
    assert rejected.json()["available"] == 12
    assert api.call(catalog_api.get_product, path={"id": product_id}).json()["current_stock"] == 12
    assert test_db.query(InventoryTransaction).count() == 2


@pytest.mark.e2e
@pytest.mark.p0
def test_invalid_transaction_payloads(api, test_db):
    product = create_test_product(test_db, initial_stock=1)
    test_db.commit()

    zero = api.call(
        inventory_api.create_transaction,
        body={"product_id": str(product.id), "type": "import", "quantity": 0},
    )
    unknown = api.call(
        inventory_api.create_transaction,
        body={"product_id": "5f0c1a0e-0000-4000-8000-000000000000", "type": "import", "quantity": 1},
    )
    bad_type = api.call(
        inventory_api.create_transaction,
        body={"product_id": str(product.id), "type": "transfer", "quantity": 1},
    )

    assert zero.status_code == 400
    assert zero.json()["error_code"] == "INVALID_AMOUNT"
    assert unknown.status_code == 404
    assert bad_type.status_code == 400


@pytest.mark.e2e
@pytest.mark.p0
def test_transaction_rejects_unknown_order_and_huge_quantity(api, test_db):
    product = create_test_product(test_db, initial_stock=1)
    test_db.commit()

    unknown_order = api.call(
        inventory_api.create_transaction,
        body={
            "product_id": str(product.id),
            "type": "import",
            "quantity": 1,
            "related_order_id": "5f0c1a0e-0000-4000-8000-000000000000",
        },
    )
    huge = api.call(
        inventory_api.create_transaction,
        body={"product_id": str(product.id), "type": "import", "quantity": 10**20},
    )

    assert unknown_order.status_code == 404
    assert unknown_order.json()["error_code"] == "NOT_FOUND"
    assert huge.status_code == 400
    assert huge.json()["error_code"] == "INVALID_AMOUNT"
    assert test_db.query(InventoryTransaction).count() == 0


@pytest.mark.e2e
@pytest.mark.p0
def test_delete_product_cascades_transactions(api, test_db):
    """
    Given: sản phẩm có lịch sử nhập / xuất
    When: xóa sản phẩm
    Then: giao dịch kho của nó bị xóa theo, sản phẩm không còn
    """
    product = create_test_product(test_db, initial_stock=2)
    test_db.commit()
    product_id = str(product.id)
    api.call(inventory_api.create_transaction, body={"product_id": product_id, "type": "import", "quantity": 4})
    api.call(inventory_api.create_transaction, body={"product_id": product_id, "type": "export", "quantity": 1})

    deleted = api.call(catalog_api.delete_product, path={"id": product_id})

    assert deleted.status_code == 200
    assert deleted.json()["transactions_removed"] == 2
    assert api.call(catalog_api.get_product, path={"id": product_id}).status_code == 404
    listed = api.call(inventory_api.list_transactions, query={"product_id": product_id})
    assert listed.json() == []


@pytest.mark.e2e
@pytest.mark.p1
def test_update_product_and_stock_levels_report(api, test_db):
    product = create_test_product(test_db, name="Nến thơm", initial_stock=4, min_stock_level=2)
    test_db.commit()

    updated = api.call(
        catalog_api.update_product,
        path={"id": str(product.id)},
        body={"min_stock_level": 10, "current_stock": 500},
    )
    report = api.call(inventory_api.get_stock_levels)
    products = api.call(catalog_api.list_products, query={"search": "nến"})

    assert updated.json()["current_stock"] == 4
    assert updated.json()["stock_status"] == "low_stock"
    assert report.json()["counts"]["low_stock"] == 1
    assert [p["name"] for p in products.json()] == ["Nến thơm"]


@pytest.mark.e2e
@pytest.mark.p1
def test_list_transactions_filters(api, test_db):
    a = create_test_product(test_db, initial_stock=5)
    b = create_test_product(test_db, initial_stock=5)
    test_db.commit()
    api.call(inventory_api.create_transaction, body={"product_id": str(a.id), "type": "import", "quantity": 1})
    api.call(inventory_api.create_transaction, body={"product_id": str(a.id), "type": "export", "quantity": 2})
    api.call(inventory_api.create_transaction, body={"product_id": str(b.id), "type": "export", "quantity": 3})

    exports = api.call(inventory_api.list_transactions, query={"type": "export"}).json()
    only_a = api.call(inventory_api.list_transactions, query={"product_id": str(a.id)}).json()

    assert sorted(tx["quantity"] for tx in exports) == [2, 3]
    assert len(only_a) == 2
