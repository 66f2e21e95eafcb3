from functools import lru_cache
from urllib.parse import urlparse

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Tablehost"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True

    # Security
    log_user_emails: bool = False  # GDPR: keep off in production
    allowed_app_url_domains: list[str] = ["localhost", "127.0.0.1"]
    csp_production: str = "default-src 'self'; frame-ancestors 'none'"

    # Database
    database_url: str
    database_migrations_url: str | None = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_ssl_mode: str = "prefer"  # disable, prefer, require, verify-ca, verify-full
    database_statement_cache_size: int = 100
    # Non-login role assumed by principal-scoped sessions so row-level policies apply
    database_rls_role: str = "tablehost_app"

    # Shutdown
    shutdown_grace_period: int = 30

    # Identity provider (GoTrue-compatible admin API)
    identity_url: str = "http://localhost:9999"
    identity_service_key: str
    identity_jwt_secret: str
    identity_jwt_algorithm: str = "HS256"
    identity_jwt_audience: str = "authenticated"
    identity_request_timeout_seconds: float = 10.0

    @field_validator("identity_jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if v == "change-this-to-a-secure-random-string":
            raise ValueError(
                "IDENTITY_JWT_SECRET must be changed from default value. "
                "Use the JWT secret configured on the identity provider."
            )
        if len(v) < 32:
            raise ValueError("IDENTITY_JWT_SECRET must be at least 32 characters")
        return v

    # Provisioning
    reserved_slugs: list[str] = [
        "admin",
        "api",
        "app",
        "auth",
        "billing",
        "dashboard",
        "demo",
        "help",
        "root",
        "status",
        "support",
        "system",
        "www",
    ]
    reserved_email_domains: list[str] = ["system.tablehost.app"]
    provisioning_retention_days: int = 90
    provisioning_stale_minutes: int = 15  # processing attempts older than this are expired
    setup_link_path: str = "/auth/setup"

    @field_validator("reserved_slugs", "reserved_email_domains")
    @classmethod
    def lowercase_entries(cls, v: list[str]) -> list[str]:
        return [entry.strip().lower() for entry in v if entry.strip()]

    # Widgets
    widget_draft_ttl_hours: int = 24
    widget_event_rate_limit: str = "120/minute"
    widget_analytics_max_rows: int = 50_000  # cap for the raw-row fallback query

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Reject wildcards, credentials are allowed on every origin."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    @field_validator("app_url")
    @classmethod
    def validate_app_url(cls, v: str, info: ValidationInfo) -> str:
        """APP_URL ends up in setup-link emails, so restrict it to known domains."""
        allowed = info.data.get("allowed_app_url_domains", ["localhost", "127.0.0.1"])
        hostname = urlparse(v).hostname or ""
        if not any(hostname == domain or hostname.endswith(f".{domain}") for domain in allowed):
            raise ValueError(
                f"APP_URL domain '{hostname}' not in allowed list. "
                f"Add it to ALLOWED_APP_URL_DOMAINS or use: {allowed}"
            )
        return v

    # Temporal
    temporal_host: str = "localhost:7233"
    temporal_namespace: str = "default"
    temporal_task_queue: str = "tablehost-jobs"
    maintenance_schedule: str | None = None  # Cron syntax, e.g. "0 3 * * *"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    # Email (Resend)
    resend_api_key: str | None = None  # If not set, emails are logged but not sent
    email_from: str = "noreply@example.com"
    email_send_timeout_seconds: int = 10
    app_url: str = "http://localhost:3000"  # Client dashboard, target of setup links

    # Redis (optional - app works without it)
    redis_url: str | None = None
    redis_pool_size: int = 10

    @property
    def setup_link_redirect_url(self) -> str:
        return f"{self.app_url.rstrip('/')}{self.setup_link_path}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
