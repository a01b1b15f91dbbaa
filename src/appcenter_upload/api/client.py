"""Typed bindings for the App Center release and symbol upload endpoints."""

import logging
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from pydantic import BaseModel, ValidationError

from appcenter_upload.api.transport import API_TOKEN_HEADER, Body, HttpRequest, HttpResponse, Transport
from appcenter_upload.models.release import (
    CommitReleaseRequest,
    CommitReleaseResponse,
    CommitSymbolUploadRequest,
    DistributeReleaseRequest,
    PrepareSymbolUploadRequest,
    PrepareSymbolUploadResponse,
    PrepareUploadResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.appcenter.ms/v0.1/apps/"

# The release upload endpoint only accepts this field name, whatever the package format
BINARY_FIELD_NAME = "ipa"

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    status_code: int
    request_description: str
    reason: str | None = None


ApiResult = Union[Success[T], Failure]


class DistributionClient:
    """
    Thin wrappers around the App Center calls used to publish a build.

    Every method returns an ApiResult. Network failures are not caught here:
    TransportError raised by the transport propagates to the caller.
    """

    def __init__(self, transport: Transport, base_url: str = DEFAULT_BASE_URL):
        self.transport = transport
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

    def _app_url(self, owner: str, app: str, path: str) -> str:
        return f"{self.base_url}{owner}/{app}/{path}"

    @staticmethod
    def _headers(token: str) -> dict[str, str]:
        return {API_TOKEN_HEADER: token, "Accept": "application/json"}

    @staticmethod
    def _decode(request: HttpRequest, response: HttpResponse, model: type[M]) -> "ApiResult[M]":
        if not response.ok:
            return Failure(response.status_code, request.describe())
        try:
            payload = response.json()
        except ValueError:
            return Failure(response.status_code, request.describe(), "Body expected")
        try:
            return Success(model.model_validate(payload))
        except ValidationError as e:
            logger.debug("[AppCenter] - unexpected body for %s: %s", request.describe(), e)
            return Failure(response.status_code, request.describe(), f"Unexpected body: {e.error_count()} error(s)")

    @staticmethod
    def _status(request: HttpRequest, response: HttpResponse) -> "ApiResult[int]":
        if not response.ok:
            return Failure(response.status_code, request.describe())
        return Success(response.status_code)

    # Release flow

    def prepare_upload(self, token: str, app: str, owner: str) -> "ApiResult[PrepareUploadResponse]":
        """Allocate a release upload slot."""
        request = HttpRequest(
            method="POST",
            url=self._app_url(owner, app, "release_uploads"),
            headers=self._headers(token),
            json={},
        )
        return self._decode(request, self.transport.execute(request), PrepareUploadResponse)

    def upload_binary(self, upload_url: str, file_name: str, content: Body) -> "ApiResult[int]":
        """Send the build artifact to the pre-signed upload URL."""
        request = HttpRequest(
            method="POST",
            url=upload_url,
            files={BINARY_FIELD_NAME: (file_name, content)},
        )
        return self._status(request, self.transport.execute(request))

    def commit_release_upload(
        self, token: str, app: str, owner: str, upload_id: str
    ) -> "ApiResult[CommitReleaseResponse]":
        """Turn an uploaded binary into a release."""
        request = HttpRequest(
            method="PATCH",
            url=self._app_url(owner, app, f"release_uploads/{upload_id}"),
            headers=self._headers(token),
            json=CommitReleaseRequest().model_dump(),
        )
        return self._decode(request, self.transport.execute(request), CommitReleaseResponse)

    def distribute_release(
        self,
        token: str,
        app: str,
        owner: str,
        release_id: str,
        destinations: list[str],
        notify_testers: bool,
        release_notes: str | None,
    ) -> "ApiResult[int]":
        """Send a release to the given distribution groups."""
        body = DistributeReleaseRequest.for_targets(list(destinations), notify_testers, release_notes)
        request = HttpRequest(
            method="PATCH",
            url=self._app_url(owner, app, f"releases/{release_id}"),
            headers=self._headers(token),
            json=body.model_dump(exclude_none=True),
        )
        return self._status(request, self.transport.execute(request))

    # Symbol flow

    def prepare_symbol_upload(
        self, token: str, app: str, owner: str, descriptor: PrepareSymbolUploadRequest
    ) -> "ApiResult[PrepareSymbolUploadResponse]":
        """Allocate a symbol upload slot for a mapping file."""
        request = HttpRequest(
            method="POST",
            url=self._app_url(owner, app, "symbol_uploads"),
            headers=self._headers(token),
            json=descriptor.model_dump(),
        )
        return self._decode(request, self.transport.execute(request), PrepareSymbolUploadResponse)

    def upload_symbol_file(self, upload_url: str, content: Body) -> "ApiResult[int]":
        """Put the mapping file at the pre-signed blob URL."""
        request = HttpRequest(
            method="PUT",
            url=upload_url,
            headers={"x-ms-blob-type": "BlockBlob"},
            data=content,
        )
        return self._status(request, self.transport.execute(request))

    def commit_symbol_upload(self, token: str, app: str, owner: str, upload_id: str) -> "ApiResult[int]":
        """Mark a symbol upload as complete."""
        request = HttpRequest(
            method="PATCH",
            url=self._app_url(owner, app, f"symbol_uploads/{upload_id}"),
            headers=self._headers(token),
            json=CommitSymbolUploadRequest().model_dump(),
        )
        return self._status(request, self.transport.execute(request))
