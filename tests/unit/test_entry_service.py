"""
Unit tests cho khoản thu / chi.
"""

import uuid

import pytest

from backend.sokho.core.error_handler import InvalidAmountError, NotFoundError, ValidationError
from backend.sokho.services import entry_service


def test_add_and_list_income(test_db):
    entry_service.add_income_entry(
        test_db, {"date": "2025-01-05", "amount": 120000, "category": "Lương"}
    )
    entry_service.add_income_entry(
        test_db, {"date": "2025-02-05", "amount": "1.500.000", "category": "Khác"}
    )

    rows = entry_service.list_income_entries(test_db)

    assert [entry_service.entry_to_dict(e)["date"] for e in rows] == ["2025-02-05", "2025-01-05"]
    assert entry_service.entry_to_dict(rows[0])["amount"] == 1500000


def test_add_expense_with_receipt(test_db):
    entry = entry_service.add_expense_entry(
        test_db,
        {
            "date": "2025-01-05",
            "amount": 45000,
            "category": "Thực phẩm",
            "receipt_image_url": "https://example.com/r.jpg",
        },
    )

    assert entry_service.entry_to_dict(entry)["receipt_image_url"] == "https://example.com/r.jpg"


@pytest.mark.parametrize("amount", [0, -5, "abc"])
def test_amount_must_be_positive(test_db, amount):
    with pytest.raises(InvalidAmountError):
        entry_service.add_income_entry(
            test_db, {"date": "2025-01-05", "amount": amount, "category": "Lương"}
        )


def test_category_must_be_known(test_db):
    with pytest.raises(ValidationError):
        entry_service.add_expense_entry(
            test_db, {"date": "2025-01-05", "amount": 1000, "category": "Lương"}
        )


def test_date_is_required(test_db):
    with pytest.raises(ValidationError):
        entry_service.add_expense_entry(test_db, {"amount": 1000, "category": "Khác"})


def test_delete_entries(test_db):
    entry = entry_service.add_expense_entry(
        test_db, {"date": "2025-01-05", "amount": 1000, "category": "Khác"}
    )

    entry_service.delete_expense_entry(test_db, str(entry.id))

    assert entry_service.list_expense_entries(test_db) == []
    with pytest.raises(NotFoundError):
        entry_service.delete_income_entry(test_db, uuid.uuid4())


def test_related_order_must_exist(test_db):
    with pytest.raises(NotFoundError):
        entry_service.add_income_entry(
            test_db,
            {"date": "2025-01-05", "amount": 1000, "category": "Khác", "related_order_id": uuid.uuid4()},
        )
    with pytest.raises(NotFoundError):
        entry_service.add_expense_entry(
            test_db,
            {"date": "2025-01-05", "amount": 1000, "category": "Khác", "related_order_id": str(uuid.uuid4())},
        )

    assert entry_service.list_income_entries(test_db) == []
