from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class UploadRequest(BaseModel):
    """Everything needed to upload and distribute one build."""

    model_config = ConfigDict(frozen=True)

    # Files
    artifact_file: Path
    mapping_file: Path | None = None

    # Build metadata
    build_number: int = Field(ge=0)
    build_version: str = Field(min_length=1)
    flavor: str = "release"

    # App Center app
    owner: str = Field(min_length=1)
    app_name: str = Field(min_length=1)
    api_token: SecretStr

    # Distribution
    distribution_targets: tuple[str, ...] = ()
    notify_testers: bool = True
    release_notes: str | None = None

    max_retries: int = Field(default=3, ge=0)

    @field_validator("artifact_file", "mapping_file", mode="before")
    @classmethod
    def expand_path(cls, v):
        """Expand environment variables and ~ in path."""
        if v is None:
            return None
        return Path(os.path.expandvars(os.path.expanduser(str(v))))

    def check_artifact(self) -> None:
        """
        Make sure the artifact can be uploaded.

        Raises:
            FileNotFoundError: if the artifact is missing or not a regular file
            PermissionError: if it cannot be read
        """
        if not self.artifact_file.is_file():
            raise FileNotFoundError(f"Artifact file not found: {self.artifact_file}")
        if not os.access(self.artifact_file, os.R_OK):
            raise PermissionError(f"Artifact file is not readable: {self.artifact_file}")

    @property
    def has_mapping_file(self) -> bool:
        """True when a mapping file was configured and is a readable regular file."""
        if self.mapping_file is None or not self.mapping_file.is_file():
            return False
        return os.access(self.mapping_file, os.R_OK)
