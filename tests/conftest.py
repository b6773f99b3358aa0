import pytest

from snackmoney.core.config import ClientConfig


@pytest.fixture
def config():
    return ClientConfig(resource_server_url="https://api.test", timeout_seconds=5)
