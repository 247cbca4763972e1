import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        secret_key: str,
        token_ttl_days: int,
        bcrypt_rounds: int,
        cors_origins: list[str],
        host: str,
        port: int,
        log_level: str,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.secret_key = secret_key
        self.token_ttl_days = token_ttl_days
        self.bcrypt_rounds = bcrypt_rounds
        self.cors_origins = cors_origins
        self.host = host
        self.port = port
        self.log_level = log_level

    @property
    def token_max_age_secs(self) -> int:
        return self.token_ttl_days * 24 * 3600


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("EXPENSES_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    database_url = os.getenv("EXPENSES_DATABASE_URL")
    if not database_url:
        default_db = _ensure_data_dir() / "expenses.db"
        database_url = f"sqlite:///{default_db}"
    timezone = os.getenv("EXPENSES_TIMEZONE", "UTC")
    secret_key = os.getenv(
        "EXPENSES_SECRET_KEY",
        "3f0c1d9e6a2b47c8b5e4d7a19c6f2e80d4b7a3c5e9f1026b8d3c7e5a4f9b1c2d",
    )
    token_ttl_days = int(os.getenv("EXPENSES_TOKEN_TTL_DAYS", "7"))
    bcrypt_rounds = int(os.getenv("EXPENSES_BCRYPT_ROUNDS", "12"))
    cors_origins = _split_csv(os.getenv("EXPENSES_CORS_ORIGINS", "*"))
    host = os.getenv("EXPENSES_HOST", "0.0.0.0")
    port = int(os.getenv("EXPENSES_PORT", "8000"))
    log_level = os.getenv("EXPENSES_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        timezone=timezone,
        secret_key=secret_key,
        token_ttl_days=token_ttl_days,
        bcrypt_rounds=bcrypt_rounds,
        cors_origins=cors_origins,
        host=host,
        port=port,
        log_level=log_level,
    )
