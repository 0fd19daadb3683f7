"""
Config chung cho backend Sổ Kho.

- Đọc cấu hình từ biến môi trường (.env) cho DB, AI, thông tin chuyển khoản...
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Cấu hình ứng dụng backend.

    Sử dụng biến môi trường để dễ triển khai nhiều môi trường.
    """

    app_name: str = "Sổ Kho"
    debug: bool = os.getenv("APP_DEBUG", "false").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    db_path: str = os.getenv("DB_PATH", "data/sokho.db")

    # Trích xuất ghi chú viết tay bằng Gemini
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY", None)
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    ai_timeout_seconds: float = float(os.getenv("AI_TIMEOUT_SECONDS", "30"))

    # Thông tin cửa hàng in trên hóa đơn + VietQR
    shop_name: str = os.getenv("SHOP_NAME", "Maimiel Shop")
    bank_id: str = os.getenv("BANK_ID", "VCB")
    bank_account_number: str = os.getenv("BANK_ACCOUNT_NUMBER", "")
    bank_account_name: str = os.getenv("BANK_ACCOUNT_NAME", "")

    telegram_bot_token: str | None = os.getenv("TELEGRAM_BOT_TOKEN", None)
    telegram_chat_id: str | None = os.getenv("TELEGRAM_CHAT_ID", None)

    @property
    def sqlalchemy_database_uri(self) -> str:
        """Trả về connection string cho SQLite.

        SQLite URI format: sqlite:///path/to/database.db
        Hoặc sqlite:///:memory: cho in-memory database
        """
        return f"sqlite:///{self.db_path}"


settings = Settings()
