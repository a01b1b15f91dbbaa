"""Configuration loading and validation."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator

from appcenter_upload.api.client import DEFAULT_BASE_URL
from appcenter_upload.models.request import UploadRequest

TOKEN_ENV_VAR = "APPCENTER_API_TOKEN"
UNSET_VARIABLE = re.compile(r"\$(\w+|\{\w+\})")


class TransportConfig(BaseModel):
    """HTTP settings shared by every flavor."""

    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = Field(default=60.0, gt=0)
    backoff_seconds: float = Field(default=1.0, ge=0)


class FlavorConfig(BaseModel):
    """App Center settings for one build flavor."""

    owner: str
    app_name: str
    api_token: SecretStr | None = None
    distribution_targets: list[str] = []
    notify_testers: bool = True
    max_retries: int = Field(default=3, ge=0)
    mapping_file: Path | None = None

    @field_validator("api_token", mode="before")
    @classmethod
    def expand_token(cls, v: Any) -> Any:
        """Expand environment variables, so the file can say ``$APPCENTER_API_TOKEN``."""
        if isinstance(v, str):
            expanded = os.path.expandvars(v)
            # An unset variable is left unexpanded by expandvars
            if UNSET_VARIABLE.fullmatch(expanded):
                return None
            return expanded
        return v


class AppCenterConfig(BaseModel):
    """Contents of an App Center config file."""

    transport: TransportConfig = TransportConfig()
    flavors: dict[str, FlavorConfig] = {}


def load_config(config_path: Path) -> AppCenterConfig:
    """Load an App Center config file."""
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return AppCenterConfig(**data)


def get_flavor(config: AppCenterConfig, flavor: str) -> FlavorConfig:
    if flavor not in config.flavors:
        raise ValueError(f"Flavor '{flavor}' not found in config. Available: {list(config.flavors.keys())}")

    return config.flavors[flavor]


def load_upload_request(
    config: AppCenterConfig,
    flavor: str,
    artifact_file: Path,
    build_number: int,
    build_version: str,
    mapping_file: Path | None = None,
    release_notes: str | None = None,
    api_token: str | None = None,
) -> UploadRequest:
    """
    Merge a flavor's settings with per-build values into an UploadRequest.

    The token is taken from, in order: the api_token argument, the flavor's
    config entry, then the APPCENTER_API_TOKEN environment variable.

    Raises:
        ValueError: if the flavor is unknown or no token is available
    """
    flavor_config = get_flavor(config, flavor)

    token = api_token
    if token is None and flavor_config.api_token is not None:
        token = flavor_config.api_token.get_secret_value()
    if token is None:
        token = os.getenv(TOKEN_ENV_VAR)
    if not token:
        raise ValueError(f"No API token for flavor '{flavor}'. Set {TOKEN_ENV_VAR} or api_token in the config.")

    return UploadRequest(
        artifact_file=artifact_file,
        mapping_file=mapping_file if mapping_file is not None else flavor_config.mapping_file,
        build_number=build_number,
        build_version=build_version,
        flavor=flavor,
        owner=flavor_config.owner,
        app_name=flavor_config.app_name,
        api_token=token,
        distribution_targets=tuple(flavor_config.distribution_targets),
        notify_testers=flavor_config.notify_testers,
        release_notes=release_notes,
        max_retries=flavor_config.max_retries,
    )
