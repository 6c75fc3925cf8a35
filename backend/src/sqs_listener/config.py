from urllib.parse import urlparse
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(ValueError):
    """Raised for setup problems. These are fatal and never retried."""


class MissingConfigurationParameterError(ConfigurationError):
    pass


class ListenerConfig(BaseModel):
    """Immutable settings for a single listener instance."""
    model_config = ConfigDict(frozen=True)

    queue_url: Optional[str] = None
    # SQS hard limits: 10 messages per receive, 20s long poll, 12h visibility
    batch_size: int = Field(10, ge=1, le=10)
    visibility_timeout: int = Field(10, ge=1, le=43_200)
    wait_time: int = Field(20, ge=0, le=20)

    def ensure_valid_queue_url(self):
        """
        Checks that the queue URL is a secure (https) URI.

        Raises:
            MissingConfigurationParameterError: If the URL is unset or not https.
        """
        parsed = urlparse(str(self.queue_url or ""))
        if parsed.scheme != "https" or not parsed.netloc:
            raise MissingConfigurationParameterError(
                f"SQS_QUEUE_URL must be set to a valid https URI (got {self.queue_url!r})"
            )


class Settings(BaseSettings):
    # App Settings
    APP_ENV: str = "production"  # local, local_mock, development, production
    LOG_LEVEL: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"

    # Local Settings
    WORK_DIR: str = "work_dir"

    # AWS Settings
    AWS_REGION: str = "us-east-1"
    SQS_ENDPOINT_URL: Optional[str] = None  # e.g. LocalStack
    SQS_QUEUE_URL: Optional[str] = None
    SQS_BATCH_SIZE: int = 10
    SQS_VISIBILITY_TIMEOUT: int = 10
    SQS_WAIT_TIME: int = 20

    # Worker reference, "package.module:attr"
    WORKER: Optional[str] = None

    # Control API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    model_config = SettingsConfigDict(env_file=[".env", "../.env"], env_ignore_empty=True, extra="ignore")

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    def listener_config(self) -> ListenerConfig:
        return ListenerConfig(
            queue_url=self.SQS_QUEUE_URL,
            batch_size=self.SQS_BATCH_SIZE,
            visibility_timeout=self.SQS_VISIBILITY_TIMEOUT,
            wait_time=self.SQS_WAIT_TIME,
        )
