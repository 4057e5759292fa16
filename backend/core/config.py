import os
from dotenv import load_dotenv

load_dotenv()


def _default_database_url() -> str:
    host = os.getenv("PGHOST", "localhost")
    port = os.getenv("PGPORT", "5432")
    user = os.getenv("PGUSER", "postgres")
    password = os.getenv("PGPASSWORD", "postgres")
    database = os.getenv("PGDATABASE", "medwarehouse")
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{database}"


class Settings:
    database_url: str = os.getenv("DATABASE_URL") or _default_database_url()
    database_echo: bool = os.getenv("DATABASE_ECHO", "False").lower() == "true"
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "10"))
    db_pool_timeout: int = int(os.getenv("DB_POOL_TIMEOUT", "10"))  # seconds

    # Alerting / reporting defaults
    expiry_horizon_days: int = int(os.getenv("EXPIRY_HORIZON_DAYS", "30"))
    transactions_default_limit: int = int(os.getenv("TRANSACTIONS_DEFAULT_LIMIT", "20"))
    transactions_max_limit: int = int(os.getenv("TRANSACTIONS_MAX_LIMIT", "100"))

    cors_origins: list[str] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o and o.strip()
    ]
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    port: int = int(os.getenv("PORT", "3000"))


settings = Settings()
