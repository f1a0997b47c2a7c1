"""
Application Configuration — Environment & Settings
Centralizes all config from .env with Pydantic Settings for validation.
"""
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings

# Resolve paths relative to backend/ directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Razorpay test-mode keys shipped with the dashboard; test-only.
DEFAULT_RAZORPAY_KEY_ID = "rzp_test_rpnNH3RrWqpT9U"
DEFAULT_RAZORPAY_KEY_SECRET = "s8cKPbTGISIrraI5ywf37IRk"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Core ---
    APP_NAME: str = "TradeMind Top-up API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # --- Storage ---
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'data' / 'topup.db'}"
    LEDGER_BACKEND: str = "memory"  # memory | sql

    # --- Razorpay ---
    RAZORPAY_KEY_ID: str = DEFAULT_RAZORPAY_KEY_ID
    RAZORPAY_KEY_SECRET: str = DEFAULT_RAZORPAY_KEY_SECRET

    # --- Checkout ---
    MERCHANT_NAME: str = "TradeMind AI"
    MERCHANT_DESCRIPTION: str = "Account Top-up"
    MERCHANT_ADDRESS: str = "TradeMind AI Corporate Office"
    THEME_COLOR: str = "#3B82F6"
    CHECKOUT_TIMEOUT_SECONDS: int = 300
    CHECKOUT_RETRY_MAX: int = 3

    # --- Top-up limits (rupees) ---
    MIN_TOPUP_RUPEES: int = 1
    MAX_TOPUP_RUPEES: int = 200000
    DEFAULT_CURRENCY: str = "INR"

    # --- Account ---
    OPENING_BALANCE_RUPEES: int = 150000

    # --- Security ---
    CORS_ORIGINS: list[str] = ["*"]
    CREATE_ORDER_RATE_LIMIT: int = 10
    CREATE_ORDER_RATE_WINDOW: int = 60

    # --- Logging ---
    LOG_DIR: str = str(BASE_DIR / "logs")
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True

    @property
    def gateway_configured(self) -> bool:
        return bool(self.RAZORPAY_KEY_ID and self.RAZORPAY_KEY_SECRET)

    @property
    def gateway_status(self) -> str:
        """configured | default-test-keys | unconfigured"""
        if not self.gateway_configured:
            return "unconfigured"
        if (self.RAZORPAY_KEY_ID, self.RAZORPAY_KEY_SECRET) == (DEFAULT_RAZORPAY_KEY_ID, DEFAULT_RAZORPAY_KEY_SECRET):
            return "default-test-keys"
        return "configured"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
