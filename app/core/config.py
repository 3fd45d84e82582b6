from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API Settings
    PROJECT_NAME: str = "Receipt Ledger API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Payment cascade and customer balance reconciliation for POS receipts"

    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "receipt_ledger"
    RECEIPTS_COLLECTION: str = "receipts"
    PAYMENTS_COLLECTION: str = "payment_transactions"

    # Store capabilities
    SUPPORTS_ORDERED_QUERIES: bool = True

    # Balances
    BALANCE_CACHE_TTL_SECONDS: float = 300.0
    BALANCE_TOLERANCE: float = 0.01  # Absorbs floating point rounding
    ALLOW_OVERPAYMENT: bool = True

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

settings = Settings()
