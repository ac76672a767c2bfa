from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env at project root: crackcheck/core/config.py -> crackcheck/core -> crackcheck -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    environment: str = "development"
    secret_key: str = "change-me-in-production"
    # PEM public key from the identity provider (Clerk "JWT verification key"). Empty = HS256 with secret_key.
    clerk_jwt_key: str = ""
    admin_email: str = ""
    database_url: str = "sqlite:///./crackcheck.db"
    # Comma-separated origins; "*" allows all
    cors_origins: str = "*"
    rate_limit_per_minute: int = 60
    analyze_rate_limit_per_minute: int = 10
    # OpenRouter (OpenAI-compatible) for crack analysis and chat
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_site_url: str = "https://crackcheck.com"
    openrouter_app_title: str = "CrackCheck AI Analysis"
    # KIE image annotation
    kie_api_key: str = ""
    kie_base_url: str = "https://api.kie.ai/api/v1"
    # Object storage on local disk, served under /storage
    storage_dir: str = "./data/storage"
    public_base_url: str = "http://127.0.0.1:8000"
    upload_max_mb: int = 10
    thumbnail_max_mb: int = 5
    # Credits
    initial_credits: int = 20
    pdf_export_cost: int = 100
    # Canonical site address for sitemap.xml
    site_url: str = "https://www.cracksense.online"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator(
        "openrouter_api_key", "kie_api_key", "admin_email", "clerk_jwt_key", mode="before"
    )
    @classmethod
    def strip_secret(cls, v: str | None) -> str:
        """Trailing whitespace from copy-pasted keys breaks auth headers."""
        return (v or "").strip()

    @field_validator("public_base_url", "site_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str:
        return (v or "").strip().rstrip("/")


settings = Settings()


def is_openrouter_configured() -> bool:
    return bool(settings.openrouter_api_key)


def is_kie_configured() -> bool:
    return bool(settings.kie_api_key)
