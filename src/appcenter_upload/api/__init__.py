"""App Center client and HTTP transports."""

from appcenter_upload.api.client import DistributionClient, Failure, Success
from appcenter_upload.api.transport import (
    HttpRequest,
    HttpResponse,
    LoggingTransport,
    RequestsTransport,
    RetryingTransport,
    build_transport,
)

__all__ = [
    "DistributionClient",
    "Failure",
    "Success",
    "HttpRequest",
    "HttpResponse",
    "LoggingTransport",
    "RequestsTransport",
    "RetryingTransport",
    "build_transport",
]
