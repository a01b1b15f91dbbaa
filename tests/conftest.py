"""Shared fixtures: a scripted transport and App Center responses."""

import dataclasses
import json
import logging

import pytest

from appcenter_upload.api.transport import HttpRequest, HttpResponse
from appcenter_upload.models.request import UploadRequest

BASE_URL = "https://api.appcenter.ms/v0.1/apps/"
APP_URL = BASE_URL + "my-org/my-app/"
UPLOAD_URL = "https://x/up"
SYMBOL_URL = "https://blob.example.com/symbols/s1?sig=abc"
TOKEN = "secret-token-123"


def json_response(status_code: int, body, url: str = "") -> HttpResponse:
    return HttpResponse(status_code=status_code, url=url, content=json.dumps(body).encode("utf-8"))


def empty_response(status_code: int, url: str = "") -> HttpResponse:
    return HttpResponse(status_code=status_code, url=url)


def _read_body(body):
    if isinstance(body, bytes):
        return body
    body.seek(0)
    return body.read()


def _snapshot(request: HttpRequest) -> HttpRequest:
    """Copy file bodies into bytes so assertions still work after the file is closed."""
    files = request.files and {k: (name, _read_body(body)) for k, (name, body) in request.files.items()}
    data = request.data if request.data is None else _read_body(request.data)
    return dataclasses.replace(request, files=files, data=data)


class FakeTransport:
    """
    Transport that answers from a routing table instead of the network.

    Routes map (method, url) to an HttpResponse, an exception to raise, or a
    list of those consumed one call at a time.
    """

    def __init__(self, routes: dict | None = None):
        self.routes = dict(routes or {})
        self.requests: list[HttpRequest] = []

    def execute(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(_snapshot(request))
        outcome = self.routes[(request.method, request.url)]
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, r.url) for r in self.requests]

    def find(self, method: str, url: str) -> HttpRequest:
        for r in self.requests:
            if (r.method, r.url) == (method, url):
                return r
        raise AssertionError(f"No {method} {url} call was made. Calls: {self.calls()}")


def success_routes() -> dict:
    """Every call of both flows succeeding."""
    return {
        ("POST", APP_URL + "release_uploads"): json_response(
            201, {"upload_id": "u1", "upload_url": UPLOAD_URL}
        ),
        ("POST", UPLOAD_URL): empty_response(204),
        ("PATCH", APP_URL + "release_uploads/u1"): json_response(
            200, {"release_id": 42, "release_url": "v0.1/apps/my-org/my-app/releases/42"}
        ),
        ("PATCH", APP_URL + "releases/42"): json_response(200, {"id": 42}),
        ("POST", APP_URL + "symbol_uploads"): json_response(
            200,
            {
                "symbol_upload_id": "s1",
                "upload_url": SYMBOL_URL,
                "expiration_date": "2026-10-18T00:00:00Z",
            },
        ),
        ("PUT", SYMBOL_URL): empty_response(201),
        ("PATCH", APP_URL + "symbol_uploads/s1"): json_response(200, {"status": "committed"}),
    }


@pytest.fixture
def artifact(tmp_path):
    path = tmp_path / "app-release.apk"
    path.write_bytes(b"PK\x03\x04 fake apk")
    return path


@pytest.fixture
def mapping(tmp_path):
    path = tmp_path / "mapping.txt"
    path.write_text("com.example.Foo -> a.a:\n")
    return path


@pytest.fixture
def make_request(artifact):
    """Build an UploadRequest with sensible defaults."""

    def _make(**overrides) -> UploadRequest:
        values = {
            "artifact_file": artifact,
            "mapping_file": None,
            "build_number": 17,
            "build_version": "1.4.0",
            "flavor": "release",
            "owner": "my-org",
            "app_name": "my-app",
            "api_token": TOKEN,
            "distribution_targets": ["Collaborators", "Beta Testers"],
            "notify_testers": True,
            "release_notes": "Bug fixes",
            "max_retries": 2,
        }
        values.update(overrides)
        return UploadRequest(**values)

    return _make


@pytest.fixture(autouse=True)
def reset_package_logger():
    """configure_logging detaches the package logger from root; undo that between tests."""
    yield
    package_logger = logging.getLogger("appcenter_upload")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
