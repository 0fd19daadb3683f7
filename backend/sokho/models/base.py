"""
Base SQLAlchemy cho các model của Sổ Kho + helper khai báo cột dùng chung.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, MetaData, Numeric, Uuid
from sqlalchemy.orm import DeclarativeBase, declared_attr, Mapped, mapped_column

# Tên constraint cố định để CHECK / FK có tên đọc được trong SQLite
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Tiền VND: 18 chữ số, giữ 2 số lẻ cho giá nhập có xu
MONEY = Numeric(18, 2)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class cho tất cả model; tên bảng = tên class viết thường."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return cls.__name__.lower()


def uuid_pk() -> Mapped[uuid.UUID]:
    """Khóa chính UUID sinh phía Python (có id ngay khi tạo object)."""
    return mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


def money_column(nullable: bool = False, default: Decimal | int | None = None) -> Mapped[Decimal]:
    if default is None:
        return mapped_column(MONEY, nullable=nullable)
    return mapped_column(MONEY, nullable=nullable, default=default)


def created_at_column() -> Mapped[datetime]:
    """Cột thời điểm tạo bản ghi (UTC)."""
    return mapped_column(DateTime(timezone=True), default=utcnow)
