"""Shared pytest fixtures used across the test modules."""

from unittest.mock import MagicMock

import pytest

from s3client.auth import Authenticator
from s3client.config import S3Config
from s3client.signing import Credentials
from vectors import ACCESS_KEY, EXAMPLE_HEADERS, SECRET_KEY


def make_response(status: int = 200, content: bytes = b"", headers=None) -> MagicMock:
    """Stand-in for requests.Response with just what the client reads."""
    resp = MagicMock()
    resp.status_code = status
    resp.content = content
    resp.text = content.decode("utf-8", errors="replace")
    resp.reason = "Reason"
    resp.headers = headers or {}
    resp.iter_content.return_value = [content] if content else []
    return resp


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        access_key=ACCESS_KEY,
        secret_key=SECRET_KEY,
        region="us-east-1",
        service="s3",
    )


@pytest.fixture
def example_headers() -> dict:
    return dict(EXAMPLE_HEADERS)


@pytest.fixture
def config() -> S3Config:
    return S3Config(
        access_key_id=ACCESS_KEY,
        secret_access_key=SECRET_KEY,
        region="us-east-1",
        endpoint="http://localhost:9000",
    )


@pytest.fixture
def auth(config: S3Config) -> Authenticator:
    return Authenticator(config)


@pytest.fixture
def response():
    """Factory for fake responses: ``response(status, content, headers)``."""
    return make_response


@pytest.fixture
def http() -> MagicMock:
    """Mock session whose ``request`` returns an empty 200."""
    session = MagicMock()
    session.request.return_value = make_response()
    return session
