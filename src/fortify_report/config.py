"""Runtime configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # HTTP
    http_timeout: float = 30.0
    verify_tls: bool = False
    user_agent: str = "fortify-report/1.0.0"

    # Pagination
    page_delay: float = 0.1
    max_issues: int = 10000

    # Pipeline behaviour
    skip_validation: bool = False

    # Credentials (read by the CLI only)
    ci_token: str | None = None
    api_key: str | None = None
    api_secret: str | None = None

    # Logging
    log_level: str = "info"
    json_logs: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "FORTIFY_",
        "extra": "ignore",
    }


settings = Settings()
