"""
Root conftest.py - sys.path, env vars, shared fixtures.

No test reaches the network: services get a RecordingTransport that
replays canned responses.
"""

import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from infrastructure.transport import TransportResponse  # noqa: E402
from wfs.capabilities import clear_capabilities_cache  # noqa: E402
from wfs.config import WFSProxyConfig  # noqa: E402
from tests.factories.service_factories import RecordingTransport  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True, scope="session")
def set_minimal_env_vars():
    """Pin settings that would otherwise come from the environment."""
    defaults = {
        "DEBUG_LOGGING": "false",
        "WFS_VERSION": "1.1.0",
        "WFS_ARCGIS_URL_MARKER": "/arcgis/",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


@pytest.fixture(autouse=True)
def empty_capabilities_cache():
    clear_capabilities_cache()
    yield
    clear_capabilities_cache()


# ============================================================================
# XML FIXTURES
# ============================================================================

def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def load_fixture():
    """Factory fixture: text of a file under tests/fixtures."""
    return read_fixture


@pytest.fixture
def xml_response():
    """Factory fixture: TransportResponse wrapping a fixture file."""
    def _make(name: str, status_code: int = 200) -> TransportResponse:
        return TransportResponse(status_code=status_code, body=read_fixture(name), content_type="text/xml")
    return _make


# ============================================================================
# SERVICE DOUBLES
# ============================================================================

@pytest.fixture
def make_transport():
    """Factory fixture: RecordingTransport(*responses)."""
    return RecordingTransport


@pytest.fixture
def wfs_config():
    return WFSProxyConfig(
        wfs_version="1.1.0",
        default_srs=None,
        arcgis_url_marker="/arcgis/",
        capabilities_ttl_seconds=3600,
        http_timeout_seconds=60
    )
