"""
Shared fixtures for the SDK tests
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pytest

from splunk_sdk.config import SplunkConfig
from splunk_sdk.context import Context, Response

DATA_DIR = Path(__file__).parent / "data"


class FakeContext(Context):
    """Context answering requests from a queue of canned responses"""

    def __init__(self):
        super().__init__("https", "test-splunk.com", 8089)
        self.responses: List[Response] = []
        self.requests: List[Tuple[str, str, Dict[str, str], bytes]] = []

    def respond(
        self,
        status: int = 200,
        body: Union[str, bytes] = b"",
        reason: str = "OK",
        headers: Optional[List[Tuple[str, str]]] = None,
    ) -> None:
        data = body.encode("utf-8") if isinstance(body, str) else body
        self.responses.append(Response(status, reason, headers or [], data))

    def respond_with(self, name: str, status: int = 200) -> None:
        self.respond(status, load_data(name))

    async def _send(self, method: str, url: str, headers: Dict[str, str], body: bytes) -> Response:
        self.requests.append((method, url, headers, body))
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        return self.responses.pop(0)


def load_data(name: str) -> str:
    return (DATA_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def data():
    """Read a file from tests/data"""
    return load_data


@pytest.fixture
def context():
    return FakeContext()


@pytest.fixture
def mock_config():
    """Create a mock Splunk configuration"""
    return SplunkConfig(
        host="test-splunk.com",
        port=8089,
        scheme="https",
        token="test-token",
        verify_ssl=False,
        timeout=30
    )


@pytest.fixture
def mock_config_userpass():
    """Create a mock Splunk configuration with username/password"""
    return SplunkConfig(
        host="test-splunk.com",
        port=8089,
        scheme="https",
        username="testuser",
        password="testpass",
        verify_ssl=False,
        timeout=30
    )
