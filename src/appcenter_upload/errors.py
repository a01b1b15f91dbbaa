"""Exceptions raised while talking to App Center."""


class AppCenterError(Exception):
    """Base class for every upload failure."""


class TransportError(AppCenterError):
    """An HTTP exchange could not be completed, even after retrying."""

    def __init__(self, method: str, url: str, attempts: int, message: str | None = None):
        self.method = method
        self.url = url
        self.attempts = attempts
        if message is None:
            message = f"{method} {url} failed after {attempts} attempt(s)"
        super().__init__(message)


class UploadStepError(AppCenterError):
    """
    A completed exchange told us the step did not succeed.

    Attributes:
        step: Human readable name of the failed step
        status_code: HTTP status observed (None when no response was decoded)
        url: Request URL, where one applies
        reason: Extra detail such as "body expected"
    """

    step = "upload step"

    def __init__(self, status_code: int | None, url: str | None = None, reason: str | None = None):
        self.status_code = status_code
        self.url = url
        self.reason = reason
        super().__init__(self._format())

    def _format(self) -> str:
        message = f"Failed to {self.step}. Status code: {self.status_code}"
        if self.url:
            message += f" for {self.url}"
        if self.reason:
            message += f" ({self.reason})"
        return message


class PreparationFailed(UploadStepError):
    step = "prepare release upload"


class BinaryUploadFailed(UploadStepError):
    step = "upload release file"


class CommitFailed(UploadStepError):
    step = "commit release upload"


class DistributionFailed(UploadStepError):
    step = "distribute release"


class SymbolPreparationFailed(UploadStepError):
    step = "prepare mapping file upload"


class SymbolUploadFailed(UploadStepError):
    step = "upload mapping file"


class SymbolCommitFailed(UploadStepError):
    step = "commit mapping file upload"
