import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Settings:
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    DB_PATH: str = os.getenv("DB_PATH", "./transport.db")

    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8000"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "standard")  # standard | json
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:4000")

    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "BRL")
    PARTIAL_ENTRY_RATE: Decimal = Decimal(os.getenv("PARTIAL_ENTRY_RATE", "0.20"))

    PAYMENT_PROVIDER: str = os.getenv("PAYMENT_PROVIDER", "stub")  # stub | webhook
    PAYMENT_WEBHOOK_URL: str = os.getenv("PAYMENT_WEBHOOK_URL", "")
    PAYMENT_TIMEOUT_SECONDS: float = float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "15"))

    WEBHOOK_SECRET: str = os.getenv("WEBHOOK_SECRET", "dev-secret-123")

    @property
    def cors_origins(self) -> list:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
