from typing import List, Optional

from pydantic_settings import BaseSettings
from urllib.parse import quote_plus


class Settings(BaseSettings):
    env: str = "local"
    log_level: str = "INFO"

    # Full SQLAlchemy URL wins over the postgres_* parts (sqlite for local/tests)
    database_url_override: Optional[str] = None

    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_db: str = "taza"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    token_expire_days: int = 30

    default_delivery_charge: float = 40
    free_delivery_order_count: int = 3
    order_number_offset: int = 1000

    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None

    cors_origins: List[str] = ["*"]

    api_base_url: str = "http://localhost:8000/api"
    api_timeout_seconds: float = 10

    @property
    def database_url(self):
        if self.database_url_override:
            return self.database_url_override

        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
