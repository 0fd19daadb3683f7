"""
Pytest configuration và fixtures cho tests.

Fixtures:
- test_db_engine: SQLite file tạm cho từng test (tách biệt hoàn toàn)
- test_db: Session để dựng dữ liệu + kiểm tra kết quả
- api: gọi thẳng các handler trong backend/sokho/api với request giả
"""

from __future__ import annotations

import os
from typing import Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

# Override database path cho tests - import backend sau dòng này
os.environ["DB_PATH"] = ":memory:"
os.environ.pop("TELEGRAM_BOT_TOKEN", None)
os.environ.pop("GEMINI_API_KEY", None)

from backend.sokho.models import Base


@pytest.fixture
def test_db_engine(tmp_path):
    """Engine SQLite trên file tạm, đủ bảng, bật foreign keys."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'sokho_test.db'}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def override_session_factory(test_db_engine, monkeypatch):
    """`get_session()` của app dùng engine test thay cho DB thật."""
    from backend.sokho.core import db

    factory = sessionmaker(bind=test_db_engine, autoflush=False, autocommit=False)
    monkeypatch.setattr(db, "SessionLocal", factory)
    return factory


@pytest.fixture
def test_db(override_session_factory) -> Generator[Session, None, None]:
    """Session cho mỗi test.

    Dữ liệu dựng bằng factories phải được `commit()` trước khi gọi API handler,
    vì handler mở session riêng.
    """
    session = override_session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def api():
    """Helper gọi handler API với request giả."""
    from tests.utils.api_client import APIClient

    return APIClient()
