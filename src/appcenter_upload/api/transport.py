"""HTTP transports: a requests backend plus retry and logging decorators."""

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Protocol, Union

import requests
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from appcenter_upload.errors import TransportError

logger = logging.getLogger(__name__)

API_TOKEN_HEADER = "X-API-Token"

# Exceptions that mean the exchange never completed and is worth another try
RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    requests.exceptions.ChunkedEncodingError,
)

# In-memory bytes or an open binary file, rewound before every attempt
Body = Union[bytes, BinaryIO]


@dataclass(frozen=True)
class HttpRequest:
    """A single HTTP call, independent of the backend that sends it."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    json: Any | None = None
    data: Body | None = None
    # field name -> (file name, content)
    files: dict[str, tuple[str, Body]] | None = None

    def describe(self) -> str:
        return f"{self.method} {self.url}"

    def bodies(self) -> list[Body]:
        bodies = [content for _, content in (self.files or {}).values()]
        if self.data is not None:
            bodies.append(self.data)
        return bodies


@dataclass(frozen=True)
class HttpResponse:
    """A completed HTTP exchange."""

    status_code: int
    url: str
    content: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body as JSON. Raises ValueError on an empty or invalid body."""
        return json.loads(self.content)


class Transport(Protocol):
    """Anything that can turn an HttpRequest into an HttpResponse."""

    def execute(self, request: HttpRequest) -> HttpResponse: ...


class RequestsTransport:
    """Send requests over a requests.Session."""

    def __init__(self, timeout: float = 60.0, session: requests.Session | None = None):
        self.timeout = timeout
        self._session = session or requests.Session()

    def execute(self, request: HttpRequest) -> HttpResponse:
        # A retried request must resend file bodies from the start
        for body in request.bodies():
            if not isinstance(body, bytes):
                body.seek(0)

        response = self._session.request(
            request.method,
            request.url,
            headers=request.headers,
            json=request.json,
            data=request.data,
            files=request.files,
            timeout=self.timeout,
        )
        return HttpResponse(
            status_code=response.status_code,
            url=response.url or request.url,
            content=response.content,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self._session.close()


class RetryingTransport:
    """
    Retry requests that fail at the network level.

    A request is attempted at most ``max_retries + 1`` times. Responses with
    an error status are returned as-is: they are business failures for the
    caller to judge, not transport failures.

    Between attempts tenacity sleeps a random delay in
    ``[0, min(backoff_cap, backoff_base * 2 ** (retry - 1))]``.
    """

    def __init__(
        self,
        inner: Transport,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        backoff_cap: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.inner = inner
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self._sleep = sleep

    def _retrying(self, request: HttpRequest) -> Retrying:
        attempts = self.max_retries + 1

        def log_retry(retry_state: RetryCallState) -> None:
            logger.warning(
                "[AppCenter] - %s failed (attempt %d/%d): %s. Retrying in %.2fs",
                request.describe(),
                retry_state.attempt_number,
                attempts,
                retry_state.outcome.exception(),
                retry_state.next_action.sleep,
            )

        return Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_random_exponential(multiplier=self.backoff_base, max=self.backoff_cap),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            sleep=self._sleep,
            before_sleep=log_retry,
        )

    def execute(self, request: HttpRequest) -> HttpResponse:
        attempts = self.max_retries + 1
        attempt = 0

        def send() -> HttpResponse:
            nonlocal attempt
            attempt += 1
            logger.debug("[AppCenter] - attempt %d/%d: %s", attempt, attempts, request.describe())
            return self.inner.execute(request)

        try:
            return self._retrying(request)(send)
        except RetryError as e:
            logger.error("[AppCenter] - %s gave up after %d attempt(s)", request.describe(), attempts)
            raise TransportError(request.method, request.url, attempts) from e.last_attempt.exception()
        except requests.exceptions.RequestException as e:
            raise TransportError(request.method, request.url, attempt, f"{request.describe()} failed: {e}") from e


def _describe_body(body: Body) -> str:
    if isinstance(body, bytes):
        return f"{len(body)}-byte body"
    return f"streamed from {getattr(body, 'name', 'file')}"


class LoggingTransport:
    """
    Log every exchange.

    At INFO only the request and status lines are logged. At DEBUG headers
    and (truncated) bodies are logged too. The API token header is always
    redacted.
    """

    def __init__(self, inner: Transport, max_body: int = 2048, redact: tuple[str, ...] = (API_TOKEN_HEADER,)):
        self.inner = inner
        self.max_body = max_body
        self._redact = {name.lower() for name in redact}

    def _headers(self, headers: dict[str, str]) -> dict[str, str]:
        return {k: ("██" if k.lower() in self._redact else v) for k, v in headers.items()}

    def _body(self, request: HttpRequest) -> str:
        if request.json is not None:
            return json.dumps(request.json)
        if request.files:
            parts = [f"{name}={file_name} ({_describe_body(content)})" for name, (file_name, content) in request.files.items()]
            return "multipart: " + ", ".join(parts)
        if request.data is not None:
            return f"({_describe_body(request.data)} omitted)"
        return ""

    def _response_body(self, response: HttpResponse) -> str:
        text = response.content[: self.max_body].decode("utf-8", errors="replace")
        if len(response.content) > self.max_body:
            text += f"... ({len(response.content)} bytes)"
        return text

    def execute(self, request: HttpRequest) -> HttpResponse:
        debug = logger.isEnabledFor(logging.DEBUG)

        logger.info("[AppCenter] - --> %s", request.describe())
        if debug:
            logger.debug("[AppCenter] - headers: %s", self._headers(request.headers))
            body = self._body(request)
            if body:
                logger.debug("[AppCenter] - body: %s", body)

        start = time.monotonic()
        response = self.inner.execute(request)
        elapsed_ms = (time.monotonic() - start) * 1000

        logger.info("[AppCenter] - <-- %d %s (%.0fms)", response.status_code, request.url, elapsed_ms)
        if debug and response.content:
            logger.debug("[AppCenter] - response: %s", self._response_body(response))
        return response


def build_transport(max_retries: int, timeout: float = 60.0, backoff_base: float = 1.0) -> Transport:
    """Assemble the default transport stack: requests, logging when enabled, retry outermost."""
    transport: Transport = RequestsTransport(timeout=timeout)
    if logger.isEnabledFor(logging.INFO):
        transport = LoggingTransport(transport)
    return RetryingTransport(transport, max_retries=max_retries, backoff_base=backoff_base)
