"""
Khởi tạo kết nối SQLAlchemy cho backend Sổ Kho.

Dùng sync engine + sessionmaker đơn giản với SQLite. Mỗi request mở một
session qua `get_session()`: commit khi thành công, rollback toàn bộ khi có lỗi,
nên một thao tác nhiều bước (chốt đơn hàng) không bao giờ để lại dữ liệu dở dang.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import settings
from ..models.base import Base

# Đảm bảo thư mục chứa database tồn tại
if settings.db_path != ":memory:":
    db_path = Path(settings.db_path)
    if db_path.parent != Path("."):
        db_path.parent.mkdir(parents=True, exist_ok=True)

engine_kwargs: dict = {
    "echo": settings.debug,
    "connect_args": {"check_same_thread": False},  # Cho phép multi-threading
}
if settings.db_path == ":memory:":
    # In-memory DB chỉ tồn tại trên một connection
    engine_kwargs["poolclass"] = StaticPool

engine = create_engine(settings.sqlalchemy_database_uri, **engine_kwargs)


@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Bật foreign key constraints cho SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db() -> None:
    """Khởi tạo database (tạo bảng nếu chưa có)."""

    # Import để đăng ký tất cả model vào metadata
    from .. import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Context manager cung cấp SQLAlchemy Session an toàn."""

    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
