# tgbatch/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: Literal["dev", "staging", "prod"] = "dev"
    log_level: str = "INFO"
    log_json: bool = False  # JSON log lines instead of coloured console output

    # Telegram Bot API
    telegram_bot_token: str | None = None  # Bot token from @BotFather
    telegram_api_base: str = "https://api.telegram.org"

    # Outbound HTTP session
    http_timeout_seconds: float = 25.0
    http_connect_timeout_seconds: float = 5.0
    http_pool_limit: int = 20

    # Batch behaviour
    # Default for the CLI runner; library callers pass BatchConfig explicitly.
    continue_on_fail: bool = False

    # Monitoring
    enable_metrics: bool = True

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"

    @property
    def telegram_enabled(self) -> bool:
        """Check if a bot token is configured"""
        return bool(self.telegram_bot_token)

    def validate_required_for_production(self) -> list[str]:
        """Validate that required settings exist for production"""
        if not self.is_production:
            return []

        missing = []
        required_fields = [
            ("telegram_bot_token", self.telegram_bot_token),
        ]
        for field_name, value in required_fields:
            if not value:
                missing.append(field_name)

        return missing


def warn_on_risky_config(s: "Settings") -> list[str]:
    warnings: list[str] = []

    if not s.telegram_enabled:
        warnings.append("telegram_bot_token is not set (every dispatch will be rejected by the API).")

    if not s.telegram_api_base.startswith("https://"):
        warnings.append(
            f"telegram_api_base={s.telegram_api_base!r} is not HTTPS (the bot token travels in the URL path)."
        )

    if s.http_timeout_seconds <= s.http_connect_timeout_seconds:
        warnings.append("http_timeout_seconds should be larger than http_connect_timeout_seconds.")

    if s.is_production and not s.log_json:
        warnings.append("prod: log_json=False (console logs are hard to ingest).")

    return warnings


def validate_or_warn(s: "Settings") -> None:
    """
    In prod: enforce required settings (hard fail).
    In non-prod: warn only.
    """
    missing = s.validate_required_for_production()

    if missing:
        raise RuntimeError(f"Missing required settings for production: {', '.join(missing)}")

    from tgbatch.infra.logging_config import get_logger

    logger = get_logger(__name__)
    for msg in warn_on_risky_config(s):
        logger.warning("[config] %s", msg)


settings = Settings()
