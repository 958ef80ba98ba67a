"""Client settings loaded from the environment.

Every setting can be given as a ``MAILSORT_``-prefixed environment variable
or in a ``.env`` file in the working directory, e.g.::

    MAILSORT_BASE_URL=https://mail.example.com/api
    MAILSORT_SESSION_COOKIE=...
    MAILSORT_MAX_RETRIES=5
"""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from mailsort.retry import RetryPolicy


class MailsortSettings(BaseSettings):
    """Connection, paging and retry settings for the mailsort client."""

    model_config = SettingsConfigDict(
        env_prefix="MAILSORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Backend
    base_url: str = "http://localhost:8080"
    timeout: float = Field(default=30.0, gt=0)
    session_cookie: SecretStr | None = None
    session_cookie_name: str = "session"

    # Paging
    page_size: int = Field(default=20, ge=1)

    # Retry
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay: float = Field(default=1.0, ge=0)
    retry_max_jitter: float = Field(default=1.0, ge=0)

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_jitter=self.retry_max_jitter,
        )

    def session_cookie_value(self) -> str | None:
        if self.session_cookie is None:
            return None
        return self.session_cookie.get_secret_value()


@lru_cache
def get_settings() -> MailsortSettings:
    """Get cached settings instance."""
    return MailsortSettings()
