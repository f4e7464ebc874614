from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    PROJECT_NAME: str = "siteaudit"
    VERSION: str = "0.1.0"

    API_V1_STR: str = "/api/v1"

    CORS_ORIGINS: str = "http://localhost:3000"

    LOG_LEVEL: str = "INFO"

    USER_AGENT: str = "SiteAudit/1.0 (+https://github.com/siteaudit; single-page auditor)"

    # Network timeouts (seconds unless noted)
    ROBOTS_TIMEOUT: float = 8.0
    SITEMAP_TIMEOUT: float = 10.0
    ARCHIVE_TIMEOUT: float = 3.0
    RENDER_TIMEOUT_MS: int = 45000

    # Browser working directories are created per audit under this root
    # (empty = system temp dir) and removed when the audit finishes.
    RENDER_WORKDIR_ROOT: str = ""

    # Google PageSpeed Insights (Lighthouse)
    PAGESPEED_API_KEY: str = ""
    PAGESPEED_TIMEOUT: float = 60.0
    PAGESPEED_STRATEGY: str = "mobile"

    # LLM Configuration
    # Provider: "openai", "anthropic", or "local" (LM Studio)
    LLM_PROVIDER: str = "openai"
    LLM_BASE_URL: str = "https://api.openai.com/v1"
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TIMEOUT: float = 60.0

    # Outbound email (disabled when SMTP_HOST is empty)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "reports@siteaudit.local"
    SMTP_USE_TLS: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        if isinstance(self.CORS_ORIGINS, str):
            return [o.strip() for o in self.CORS_ORIGINS.split(",")]
        return self.CORS_ORIGINS


settings = Settings()
