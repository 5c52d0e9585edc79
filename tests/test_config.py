"""
Environment-driven configuration.
Run:  python -m pytest tests/test_config.py -v
"""
import pytest

from solarsymmetry.config import APP_VERSION, Config, load_config
from solarsymmetry.dates import can_go_to_next_month
from solarsymmetry.models import NavigationPolicy


class TestConfig:

    def test_defaults(self, monkeypatch):
        for name in (
            "SOLARSYMMETRY_REQUEST_TIMEOUT",
            "SOLARSYMMETRY_BATCH_SIZE",
            "SOLARSYMMETRY_NAVIGATION",
            "SOLARSYMMETRY_LOG_LEVEL",
            "SOLARSYMMETRY_USER_AGENT",
        ):
            monkeypatch.delenv(name, raising=False)
        config = load_config()
        assert config.request_timeout == 10.0
        assert config.batch_size == 2
        assert config.navigation_policy is NavigationPolicy.SINGLE_YEAR
        assert config.log_level == "INFO"
        assert APP_VERSION in config.user_agent

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SOLARSYMMETRY_REQUEST_TIMEOUT", "3.5")
        monkeypatch.setenv("SOLARSYMMETRY_CACHE_HOURS", "1")
        monkeypatch.setenv("SOLARSYMMETRY_BATCH_SIZE", "4")
        monkeypatch.setenv("SOLARSYMMETRY_NAVIGATION", "unbounded")
        monkeypatch.setenv("SOLARSYMMETRY_LOG_LEVEL", "debug")
        monkeypatch.setenv("SOLARSYMMETRY_TWILIGHT_URL", "https://sun.test/json")
        config = load_config()
        assert config.request_timeout == 3.5
        assert config.cache_hours == 1.0
        assert config.batch_size == 4
        assert config.navigation_policy is NavigationPolicy.UNBOUNDED
        assert config.log_level == "DEBUG"
        assert config.twilight_url == "https://sun.test/json"

    def test_bad_navigation_policy(self, monkeypatch):
        monkeypatch.setenv("SOLARSYMMETRY_NAVIGATION", "sideways")
        with pytest.raises(ValueError):
            load_config()

    def test_pipeline_options(self):
        options = Config(batch_size=3, batch_pause=0, chunk_pause=0.5).pipeline_options()
        assert options.batch_size == 3
        assert options.batch_pause == 0
        assert options.chunk_pause == 0.5
        assert options.mirror_chunk_size == 5
        assert options.comparison_chunk_size == 10
        assert options.navigation is NavigationPolicy.SINGLE_YEAR

    def test_navigation_reaches_pipeline_options(self, monkeypatch):
        monkeypatch.setenv("SOLARSYMMETRY_NAVIGATION", "unbounded")
        options = load_config().pipeline_options()
        assert options.navigation is NavigationPolicy.UNBOUNDED
        assert can_go_to_next_month(12, options.navigation)
        assert not can_go_to_next_month(12, Config().pipeline_options().navigation)
