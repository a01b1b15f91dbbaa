"""Upload a build to App Center and distribute it."""

import logging
from datetime import datetime
from pathlib import Path

from appcenter_upload.api.client import DistributionClient, Failure
from appcenter_upload.errors import (
    BinaryUploadFailed,
    CommitFailed,
    DistributionFailed,
    PreparationFailed,
    SymbolCommitFailed,
    SymbolPreparationFailed,
    SymbolUploadFailed,
    UploadStepError,
)
from appcenter_upload.models.release import SYMBOL_TYPE_ANDROID_PROGUARD, PrepareSymbolUploadRequest
from appcenter_upload.models.request import UploadRequest
from appcenter_upload.pipeline._shared import ReleaseState, SymbolState, UploadReport, UploadSession

logger = logging.getLogger(__name__)


def _log(message: str, *args) -> None:
    logger.info("[AppCenter] - (%s) - " + message, datetime.now().isoformat(timespec="seconds"), *args)


def _check(result, error: type[UploadStepError]):
    """Unwrap a Success or raise the step's error for a Failure."""
    if isinstance(result, Failure):
        raise error(result.status_code, result.request_description, result.reason)
    return result.value


class UploadOrchestrator:
    """
    Run the release flow, then the mapping flow.

    Release flow:
        1. Prepare a release upload
        2. Upload the artifact to the returned URL
        3. Commit the upload into a release
        4. Distribute the release to the configured groups

    Mapping flow (only when a readable mapping file exists, and only after the
    release flow succeeded):
        1. Prepare a symbol upload
        2. Upload the mapping file
        3. Commit the symbol upload

    The first failing step raises and nothing after it runs. Nothing is
    rolled back.
    """

    def __init__(self, client: DistributionClient, request: UploadRequest):
        self.client = client
        self.request = request

    @property
    def _token(self) -> str:
        return self.request.api_token.get_secret_value()

    def run(self) -> UploadReport:
        self.request.check_artifact()

        _log("Starting upload of %s (%s)", self.request.artifact_file.name, self.request.flavor)
        release = self.upload_release()
        report = UploadReport(
            flavor=self.request.flavor,
            release_id=release.release_id,
            destinations=list(self.request.distribution_targets),
        )

        if self.request.has_mapping_file:
            symbols = self.upload_mapping_file(self.request.mapping_file)
            report.symbol_upload_id = symbols.upload_id
        elif self.request.mapping_file is not None:
            logger.warning(
                "[AppCenter] - Mapping file %s is missing or unreadable, skipping", self.request.mapping_file
            )

        _log("Upload finished")
        return report

    def upload_release(self) -> UploadSession:
        req = self.request
        session = UploadSession(state=ReleaseState.START)

        prepared = _check(self.client.prepare_upload(self._token, req.app_name, req.owner), PreparationFailed)
        session.upload_id = prepared.upload_id
        session.upload_url = prepared.upload_url
        session.advance(ReleaseState.PREPARED)
        _log("Prepared release upload %s", session.upload_id)

        with open(req.artifact_file, "rb") as artifact:
            result = self.client.upload_binary(session.upload_url, req.artifact_file.name, artifact)
        _check(result, BinaryUploadFailed)
        session.advance(ReleaseState.BINARY_UPLOADED)
        _log("Uploaded %s", req.artifact_file.name)

        committed = _check(
            self.client.commit_release_upload(self._token, req.app_name, req.owner, session.upload_id),
            CommitFailed,
        )
        session.release_id = committed.release_id
        session.advance(ReleaseState.COMMITTED)
        _log("Committed release %s", session.release_id)

        _check(
            self.client.distribute_release(
                self._token,
                req.app_name,
                req.owner,
                session.release_id,
                list(req.distribution_targets),
                req.notify_testers,
                req.release_notes,
            ),
            DistributionFailed,
        )
        session.advance(ReleaseState.DISTRIBUTED)
        _log("Distributed release %s to %s", session.release_id, ", ".join(req.distribution_targets) or "nobody")
        return session

    def upload_mapping_file(self, mapping_file: Path) -> UploadSession:
        req = self.request
        session = UploadSession(state=SymbolState.START)

        descriptor = PrepareSymbolUploadRequest(
            symbol_type=SYMBOL_TYPE_ANDROID_PROGUARD,
            build=str(req.build_number),
            version=req.build_version,
            file_name=mapping_file.name,
        )
        prepared = _check(
            self.client.prepare_symbol_upload(self._token, req.app_name, req.owner, descriptor),
            SymbolPreparationFailed,
        )
        session.upload_id = prepared.upload_id
        session.upload_url = prepared.upload_url
        session.advance(SymbolState.SYMBOL_PREPARED)
        _log("Prepared mapping upload %s", session.upload_id)

        with open(mapping_file, "rb") as symbols:
            result = self.client.upload_symbol_file(session.upload_url, symbols)
        _check(result, SymbolUploadFailed)
        session.advance(SymbolState.SYMBOL_UPLOADED)

        _check(
            self.client.commit_symbol_upload(self._token, req.app_name, req.owner, session.upload_id),
            SymbolCommitFailed,
        )
        session.advance(SymbolState.SYMBOL_COMMITTED)
        _log("Uploaded mapping file %s", mapping_file.name)
        return session


def upload_build(request: UploadRequest, client: DistributionClient) -> UploadReport:
    """
    Upload and distribute one build.

    Args:
        request: What to upload and where
        client: App Center client

    Returns:
        UploadReport with the release id and, if one was uploaded, the symbol upload id

    Raises:
        FileNotFoundError: if the artifact does not exist
        UploadStepError: subclass naming the step that failed
        TransportError: if a call could not be completed after retrying
        OSError: if a file cannot be opened for upload
    """
    return UploadOrchestrator(client, request).run()
