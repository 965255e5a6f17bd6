"""Infra client configuration management.

Configuration sources (in priority order):
1. Environment variables (KUBEVIRT_INFRA_ prefix)
2. Config file (config.yaml)
3. Defaults
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClusterConfig(BaseModel):
    """Infra cluster connection configuration."""

    kubeconfig: str | None = None  # Path; None (and no kubeconfig_data) = in-cluster config

    # Inline kubeconfig YAML, e.g. read from a Secret. Takes precedence over kubeconfig.
    kubeconfig_data: str | None = None

    # Kubeconfig context (None = current-context)
    context: str | None = None


class OwnershipConfig(BaseModel):
    """Which DataVolumes this client is allowed to touch.

    Note on volume_prefix:
    - A trailing "-" is appended when the client is built, so "pvc" guards
      names starting with "pvc-".
    """

    volume_prefix: str = "pvc"

    # Labels every owned DataVolume must carry (all must match)
    infra_labels: dict[str, str] = Field(default_factory=dict)


class PollingConfig(BaseModel):
    """Hotplug convergence polling."""

    interval: float = 1.0  # seconds between samples

    # Default attach/detach budget in seconds
    volume_timeout: float = 120.0


class Settings(BaseSettings):
    """Infra client settings."""

    model_config = SettingsConfigDict(
        env_prefix="KUBEVIRT_INFRA_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    cluster: ClusterConfig = Field(default_factory=ClusterConfig)
    ownership: OwnershipConfig = Field(default_factory=OwnershipConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)

    @property
    def volume_name_prefix(self) -> str:
        """Owned name prefix, as enforced by the ownership guard."""
        return f"{self.ownership.volume_prefix}-"


CONFIG_FILE_ENV = "KUBEVIRT_INFRA_CONFIG_FILE"
DEFAULT_CONFIG_PATHS = (Path("config.yaml"), Path("/etc/kubevirt-infra/config.yaml"))


def _config_file_candidates() -> list[Path]:
    """Config file locations, most specific first.

    An explicit KUBEVIRT_INFRA_CONFIG_FILE wins over ./config.yaml, which wins
    over /etc/kubevirt-infra/config.yaml.
    """
    explicit = os.environ.get(CONFIG_FILE_ENV)
    candidates = [Path(explicit)] if explicit else []
    return candidates + list(DEFAULT_CONFIG_PATHS)


def _load_config_file() -> dict:
    """Return the first existing YAML config file as a dict ({} if none)."""
    path = next((p for p in _config_file_candidates() if p.is_file()), None)
    if path is None:
        return {}
    return yaml.safe_load(path.read_text()) or {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Environment variables override the YAML file, which overrides defaults.
    """
    return Settings(**_load_config_file())
