from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "spiceledger-dev-jwt-secret-change-me"
DEFAULT_ADMIN_PASSWORD = "admin123"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SL_", extra="ignore")

    app_name: str = "SpiceLedger"
    env: str = "dev"
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./spiceledger.db"

    # Daily price backend: sql | redis
    price_backend: str = "sql"
    redis_url: str = "redis://localhost:6379/0"

    jwt_secret: str = DEFAULT_JWT_SECRET
    access_token_ttl_seconds: int = 72 * 3600
    refresh_token_ttl_seconds: int = 30 * 24 * 3600
    password_hash_iterations: int = Field(
        default=240_000,
        description="PBKDF2-SHA256 rounds for new password hashes",
    )

    admin_email: str = "admin@example.com"
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    admin_name: str = "Admin User"
    seed_admin_on_startup: bool = True

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return

        insecure_items: list[str] = []
        if self.jwt_secret == DEFAULT_JWT_SECRET:
            insecure_items.append("SL_JWT_SECRET")
        if self.admin_password == DEFAULT_ADMIN_PASSWORD:
            insecure_items.append("SL_ADMIN_PASSWORD")

        if insecure_items:
            raise ValueError(
                "insecure default secrets are not allowed outside dev mode; set env vars: "
                + ", ".join(sorted(insecure_items))
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
