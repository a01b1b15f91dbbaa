from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

SYMBOL_TYPE_ANDROID_PROGUARD = "AndroidProguard"


class _WireModel(BaseModel):
    # App Center adds fields over time; only the ones we use are declared
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PrepareUploadResponse(_WireModel):
    upload_id: str = Field(min_length=1)
    upload_url: str = Field(min_length=1)


class CommitReleaseRequest(_WireModel):
    status: str = "committed"


class CommitReleaseResponse(_WireModel):
    release_id: str = Field(min_length=1)
    release_url: str | None = None

    @field_validator("release_id", mode="before")
    @classmethod
    def _stringify_release_id(cls, v: Any) -> Any:
        # App Center returns release ids as numbers
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class DistributeReleaseDestination(_WireModel):
    name: str


class DistributeReleaseRequest(_WireModel):
    destinations: list[DistributeReleaseDestination] = Field(default_factory=list)
    notify_testers: bool = True
    release_notes: str | None = None

    @classmethod
    def for_targets(
        cls, targets: list[str], notify_testers: bool, release_notes: str | None
    ) -> DistributeReleaseRequest:
        return cls(
            destinations=[DistributeReleaseDestination(name=name) for name in targets],
            notify_testers=notify_testers,
            release_notes=release_notes,
        )


class PrepareSymbolUploadRequest(_WireModel):
    symbol_type: str = SYMBOL_TYPE_ANDROID_PROGUARD
    build: str
    version: str
    file_name: str


class PrepareSymbolUploadResponse(_WireModel):
    upload_id: str = Field(alias="symbol_upload_id", min_length=1)
    upload_url: str = Field(min_length=1)
    expiration_date: str | None = None


class CommitSymbolUploadRequest(_WireModel):
    status: str = "committed"
