"""Configuration models for wire-driver."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HttpConfig(BaseModel):
    """Settings for the HTTP transport."""

    timeout: float = Field(default=60.0, description="Per-request timeout in seconds.")
    verify: bool = True


class PollingConfig(BaseModel):
    """Settings for waiting on elements and navigation."""

    interval: float = 0.1
    timeout: Optional[float] = Field(
        default=None,
        description="Optional upper bound (in seconds); waits are unbounded when unset.",
    )


class DriverConfig(BaseSettings):
    """Top-level configuration for connecting to a WebDriver server."""

    model_config = SettingsConfigDict(
        env_prefix="WIRE_DRIVER_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    server_url: str = Field(default="http://localhost:4444")
    user_agent: Optional[str] = None
    capabilities: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra capabilities merged over pageLoadStrategy=normal.",
    )
    http: HttpConfig = Field(default_factory=HttpConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)

    @field_validator("server_url")
    @classmethod
    def _check_server_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid server_url {value!r}: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"server_url must be an http(s) URL, got {value!r}")
        return value.rstrip("/")


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> DriverConfig:
    """Load configuration from an optional YAML file, the environment and overrides.

    Precedence, highest first: ``overrides``, the YAML file, environment
    variables (``WIRE_DRIVER_*``), ``env_file``. Nested sections such as
    ``capabilities`` and ``polling`` are merged key by key, so a file that
    sets ``polling.timeout`` keeps an ``interval`` coming from the
    environment.
    """

    explicit = _merged(_read_yaml(path) if path else {}, overrides)
    settings_kwargs: dict[str, object] = {}
    if env_file is not None:
        settings_kwargs["_env_file"] = env_file
    config = DriverConfig(**explicit, **settings_kwargs)
    if not explicit:
        return config
    return DriverConfig.model_validate(_merged(config.model_dump(mode="python"), explicit))


def _read_yaml(path: Path) -> dict[str, Any]:
    import yaml

    data = yaml.safe_load(path.read_text()) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{path} must contain a mapping of settings")
    return dict(data)


def _merged(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``updates`` merged in; nested mappings merge recursively."""

    result = dict(base)
    for key, value in updates.items():
        current = result.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            result[key] = _merged(current, value)
        else:
            result[key] = value
    return result
