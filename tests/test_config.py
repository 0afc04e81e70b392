"""Application and WFS configuration."""

import pytest
from pydantic import ValidationError

from config import AppConfig
from wfs.config import WFSProxyConfig


class TestAppConfig:

    def test_defaults(self, monkeypatch):
        for name in ("DEBUG_LOGGING", "HTTP_TIMEOUT_SECONDS", "USER_AGENT", "CSW_DEFAULT_MAX_RECORDS"):
            monkeypatch.delenv(name, raising=False)
        config = AppConfig(_env_file=None)
        assert config.http_timeout_seconds == 30.0
        assert config.user_agent == "geoportal-proxy/1.0"
        assert config.csw_default_max_records == 20

    def test_debug_switch_belongs_to_logger(self, monkeypatch):
        monkeypatch.setenv("DEBUG_LOGGING", "true")
        config = AppConfig(_env_file=None)
        assert "debug_logging" not in AppConfig.model_fields
        assert config.http_timeout_seconds == 30.0

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "12.5")
        monkeypatch.setenv("csw_default_max_records", "50")
        config = AppConfig(_env_file=None)
        assert config.http_timeout_seconds == 12.5
        assert config.csw_default_max_records == 50

    @pytest.mark.parametrize("name,value", [
        ("HTTP_TIMEOUT_SECONDS", "0"),
        ("CSW_DEFAULT_MAX_RECORDS", "0"),
        ("CSW_DEFAULT_MAX_RECORDS", "5000"),
    ])
    def test_invalid(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            AppConfig(_env_file=None)


class TestWFSProxyConfig:

    def test_environment_defaults(self, monkeypatch):
        for name in ("WFS_VERSION", "WFS_DEFAULT_SRS", "WFS_ARCGIS_URL_MARKER", "WFS_CAPABILITIES_TTL", "WFS_HTTP_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)
        config = WFSProxyConfig()
        assert config.wfs_version == "1.1.0"
        assert config.default_srs is None
        assert config.arcgis_url_marker == "/arcgis/"
        assert config.capabilities_ttl_seconds == 3600

    def test_marker_normalised(self, monkeypatch):
        monkeypatch.setenv("WFS_ARCGIS_URL_MARKER", " /ArcGIS/Services/ ")
        assert WFSProxyConfig().arcgis_url_marker == "/arcgis/services/"

    @pytest.mark.parametrize("name,value", [
        ("WFS_VERSION", "2.0.0"),
        ("WFS_ARCGIS_URL_MARKER", "   "),
        ("WFS_HTTP_TIMEOUT", "0"),
    ])
    def test_invalid(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            WFSProxyConfig()
