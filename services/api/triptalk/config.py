"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # ── TiDB (MySQL-protocol compatible) ───────────────────────────────────
    tidb_host: str = "tidb"
    tidb_port: int = 4000
    tidb_user: str = "root"
    tidb_password: str = ""
    tidb_database: str = "triptalk"
    # Full SQLAlchemy URL; takes precedence over the tidb_* fields when set
    database_url: Optional[str] = None

    @property
    def tidb_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{self.tidb_user}:{self.tidb_password}"
            f"@{self.tidb_host}:{self.tidb_port}/{self.tidb_database}"
        )

    store_timeout_seconds: float = 5.0

    # ── Redis (sessions) ───────────────────────────────────────────────────
    redis_host: str = "redis"
    redis_port: int = 6379
    session_cookie_name: str = "triptalk_sid"
    session_ttl_seconds: int = 3600      # 1h, same as the cookie max-age

    # ── MinIO (S3-compatible) ──────────────────────────────────────────────
    minio_endpoint: str = "minio:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_bucket: str = "uploads"
    minio_use_ssl: bool = False
    # Base URL browsers use to fetch stored objects
    media_public_url: str = "http://localhost:9000"
    upload_max_bytes: int = 10 * 1024 * 1024

    # ── Third-party APIs ───────────────────────────────────────────────────
    openweather_api_key: str = ""
    openweather_api_url: str = "https://api.openweathermap.org"
    openai_api_key: str = ""
    openai_api_url: str = "https://api.openai.com/v1"
    chat_model: str = "gpt-4o-mini"
    chat_system_prompt: str = (
        "You are an AI assistant helping users talk about travel on a website "
        "called tripTalk. Keep answers short and friendly."
    )
    external_timeout_seconds: float = 10.0

    # ── HTTP surface ───────────────────────────────────────────────────────
    api_prefix: str = "/triptalk"

    # ── Observability ──────────────────────────────────────────────────────
    log_level: str = "INFO"
    tracing_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "triptalk-api"
    environment: str = "development"


settings = Settings()
