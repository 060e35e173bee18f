"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _split_domains(value: Any) -> Any:
    """Accept ``"a.com, b.org"`` as well as a list."""
    if isinstance(value, str):
        return [d.strip() for d in value.split(",") if d.strip()]
    return value


class ProviderConfig(BaseModel):
    """DigiMovie backend settings (YAML section: provider.*)."""

    base_host: str = Field(
        default="digimoviez.com",
        description="Provider API host (no scheme).",
    )
    timeout_seconds: float = Field(
        default=15.0,
        description="Per-call timeout for provider requests.",
    )
    label_prefix: str = Field(
        default="[DigiMovie]",
        description="Prefix prepended to every stream title.",
    )

    @field_validator("base_host")
    @classmethod
    def _validate_host(cls, v: str) -> str:
        v = v.strip().removeprefix("https://").removeprefix("http://").rstrip("/")
        if not v:
            raise ValueError("provider.base_host must not be empty")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("provider.timeout_seconds must be > 0")
        return v


class MetadataConfig(BaseModel):
    """Catalog metadata (Cinemeta) settings (YAML section: metadata.*)."""

    base_url: str = Field(
        default="https://v3-cinemeta.strem.io",
        description="Cinemeta base URL.",
    )
    timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for title lookups.",
    )

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("metadata.timeout_seconds must be > 0")
        return v


class RelayConfig(BaseModel):
    """Forwarding gateway settings (YAML section: relay.*).

    Consumed by both processes: the addon rewrites stream URLs to
    ``{public_url}/{path}?url=...`` when ``enabled``; the gateway
    enforces ``allowed_domains`` and the fetch limits.
    """

    enabled: bool = Field(
        default=False,
        description="Rewrite stream URLs through the forwarding gateway.",
    )
    public_url: str = Field(
        default="",
        description="Externally reachable base URL of the gateway.",
    )
    path: str = Field(
        default="proxy",
        description="Gateway endpoint path (without leading slash).",
    )
    allowed_domains: list[str] = Field(
        default_factory=list,
        description="Hosts the gateway may fetch (exact or subdomain match).",
    )
    max_payload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum relayed body size in bytes.",
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for the upstream fetch.",
    )
    max_redirects: int = Field(
        default=5,
        description="Maximum redirect hops followed.",
    )

    @field_validator("allowed_domains", mode="before")
    @classmethod
    def _validate_domains(cls, v: Any) -> Any:
        return _split_domains(v)

    @field_validator("path")
    @classmethod
    def _validate_path(cls, v: str) -> str:
        v = v.strip("/")
        if not v:
            raise ValueError("relay.path must not be empty")
        return v

    @field_validator("max_payload_bytes", "max_redirects")
    @classmethod
    def _validate_positive_int(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("relay limits must be > 0")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("relay.timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _require_target_when_enabled(self) -> "RelayConfig":
        if self.enabled and not self.public_url:
            raise ValueError("relay.public_url is required when relay.enabled")
        if self.enabled and not self.allowed_domains:
            raise ValueError("relay.allowed_domains is required when relay.enabled")
        return self


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/provider/metadata/relay).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="digiscout", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default HTTP timeout in seconds for the shared client.",
    )
    http_user_agent: str = Field(
        default="digiscout/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    load.py creates EnvOverrides() to read DIGISCOUT_* variables,
    converts to dict of set values, merges into YAML/defaults,
    then validates AppConfig.

    Supported env var examples (flat, explicit):
    - DIGISCOUT_LOG_LEVEL
    - DIGISCOUT_PROVIDER_BASE_HOST
    - DIGISCOUT_RELAY_ENABLED
    - DIGISCOUT_RELAY_ALLOWED_DOMAINS (comma-separated)
    """

    model_config = SettingsConfigDict(
        env_prefix="DIGISCOUT_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    provider_base_host: Optional[str] = None
    provider_timeout_seconds: Optional[float] = None
    provider_label_prefix: Optional[str] = None

    metadata_base_url: Optional[str] = None
    metadata_timeout_seconds: Optional[float] = None

    relay_enabled: Optional[bool] = None
    relay_public_url: Optional[str] = None
    relay_path: Optional[str] = None
    relay_allowed_domains: Annotated[Optional[list[str]], NoDecode] = None
    relay_max_payload_bytes: Optional[int] = None
    relay_timeout_seconds: Optional[float] = None
    relay_max_redirects: Optional[int] = None

    @field_validator("relay_allowed_domains", mode="before")
    @classmethod
    def _validate_domains(cls, v: Any) -> Any:
        if v is None:
            return None
        return _split_domains(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
