"""
Configuration for fetch_auth_pipeline.
"""
from dataclasses import dataclass, field
from typing import Optional, Union
from urllib.parse import urlparse

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = "fetch-auth-pipeline/0.1.0"
DEFAULT_REFRESH_PATH = "/auth/refresh-token"
DEFAULT_UNAUTHORIZED_RETRY_COUNT = 1
MAX_UNAUTHORIZED_RETRY_COUNT = 1

URL_ENCODED_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


@dataclass
class TimeoutConfig:
    """Timeout configuration (seconds), applied by the transport."""

    connect: float = 10.0
    read: float = 30.0
    write: float = 30.0


@dataclass
class ClientConfig:
    """Pipeline configuration."""

    base_url: str
    shared_store_base_url: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    refresh_path: str = DEFAULT_REFRESH_PATH
    unauthorized_retry_count: int = DEFAULT_UNAUTHORIZED_RETRY_COUNT
    unauthorized_retry_delay: float = 0.0
    timeout: Optional[Union[TimeoutConfig, float]] = None
    verbose: bool = False


@dataclass
class ResolvedConfig:
    """Resolved pipeline configuration with defaults applied."""

    base_url: str
    shared_store_base_url: Optional[str]
    user_agent: str
    refresh_path: str
    unauthorized_retry_count: int
    unauthorized_retry_delay: float
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    verbose: bool = False


def _validate_url(name: str, value: str) -> None:
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Invalid {name}: {value}")


def validate_config(config: ClientConfig) -> None:
    """Validate pipeline configuration."""
    if not config.base_url:
        raise ValueError("base_url is required")
    _validate_url("base_url", config.base_url)

    if config.shared_store_base_url:
        _validate_url("shared_store_base_url", config.shared_store_base_url)

    if not config.refresh_path:
        raise ValueError("refresh_path is required")

    if not 0 <= config.unauthorized_retry_count <= MAX_UNAUTHORIZED_RETRY_COUNT:
        raise ValueError(
            f"unauthorized_retry_count must be between 0 and {MAX_UNAUTHORIZED_RETRY_COUNT}, "
            f"got {config.unauthorized_retry_count}"
        )

    if config.unauthorized_retry_delay < 0:
        raise ValueError("unauthorized_retry_delay must be >= 0")


def normalize_timeout(timeout: Optional[Union[TimeoutConfig, float]]) -> TimeoutConfig:
    """Normalize a timeout given as seconds or TimeoutConfig."""
    if timeout is None:
        return TimeoutConfig()
    if isinstance(timeout, (int, float)):
        return TimeoutConfig(connect=float(timeout), read=float(timeout), write=float(timeout))
    return timeout


def resolve_config(config: ClientConfig) -> ResolvedConfig:
    """Resolve pipeline configuration with defaults."""
    validate_config(config)

    return ResolvedConfig(
        base_url=config.base_url,
        shared_store_base_url=config.shared_store_base_url,
        user_agent=config.user_agent or DEFAULT_USER_AGENT,
        refresh_path=config.refresh_path,
        unauthorized_retry_count=config.unauthorized_retry_count,
        unauthorized_retry_delay=config.unauthorized_retry_delay,
        timeout=normalize_timeout(config.timeout),
        verbose=config.verbose,
    )


class PipelineSettings(BaseSettings):
    """Pipeline settings loaded from FETCH_AUTH_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="FETCH_AUTH_", case_sensitive=False)

    base_url: str = ""
    shared_store_base_url: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    refresh_path: str = DEFAULT_REFRESH_PATH
    unauthorized_retry_count: int = DEFAULT_UNAUTHORIZED_RETRY_COUNT
    unauthorized_retry_delay: float = 0.0
    timeout_seconds: Optional[float] = None
    verbose: bool = False

    def to_client_config(self) -> ClientConfig:
        return ClientConfig(
            base_url=self.base_url,
            shared_store_base_url=self.shared_store_base_url,
            user_agent=self.user_agent,
            refresh_path=self.refresh_path,
            unauthorized_retry_count=self.unauthorized_retry_count,
            unauthorized_retry_delay=self.unauthorized_retry_delay,
            timeout=self.timeout_seconds,
            verbose=self.verbose,
        )


def load_config_from_env() -> ClientConfig:
    """Build a ClientConfig from the environment."""
    return PipelineSettings().to_client_config()
