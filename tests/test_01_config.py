"""
Tests for configuration loading and validation.

Tests cover:
- Defaults class values
- Settings.from_raw() - all sections, missing sections
- ConfigValidationError on invalid values
- Environment overrides (PORT, DEEPGRAM_API_KEY, SESSION_SECRET, mode)
- load_settings() with and without a file
- require_api_key()
"""
import pytest

from tts_gateway.core.config import (
    ConfigValidationError,
    Defaults,
    MissingApiKeyError,
    Settings,
    apply_env_overrides,
    load_settings,
)


class TestDefaults:
    """Tests for Defaults class values."""

    def test_session_defaults(self):
        assert Defaults.SESSION_TOKEN_TTL_SECONDS == 3600
        assert Defaults.SESSION_NONCE_TTL_SECONDS == 300
        assert Defaults.SESSION_SWEEP_INTERVAL_SECONDS == 60

    def test_provider_defaults(self):
        assert Defaults.PROVIDER_DEFAULT_MODEL == "aura-2-thalia-en"
        assert Defaults.PROVIDER_BASE_URL == "https://api.deepgram.com"

    def test_server_defaults(self):
        assert Defaults.SERVER_PORT == 8081
        assert Defaults.SERVER_HOST == "0.0.0.0"


class TestSettingsFromRaw:
    """Tests for Settings.from_raw()."""

    def test_empty_raw_uses_defaults(self):
        """All sections fall back to defaults."""
        s = Settings.from_raw({})
        assert s.server.port == Defaults.SERVER_PORT
        assert s.provider.api_key is None
        assert s.session.enabled is True
        assert s.session.secret is None
        assert s.cors.allow_origin == "*"
        assert s.metadata.path == "deepgram.toml"
        assert s.logging.level == 2

    def test_sections_are_read(self):
        s = Settings.from_raw({
            "server": {"host": "127.0.0.1", "port": "9000"},
            "provider": {"api_key": "k", "base_url": "http://dg.local/", "timeout_s": 5},
            "session": {"secret": "s", "token_ttl_seconds": 60},
            "cors": {"allow_origin": "http://localhost:8080"},
        })
        assert s.server.host == "127.0.0.1"
        assert s.server.port == 9000
        assert s.provider.base_url == "http://dg.local"
        assert s.provider.timeout_s == 5.0
        assert s.session.token_ttl_seconds == 60
        assert s.cors.allow_origin == "http://localhost:8080"

    def test_require_nonce_follows_secret(self):
        assert Settings.from_raw({}).session.require_nonce is False
        assert Settings.from_raw({"session": {"secret": "x"}}).session.require_nonce is True

    def test_mode(self):
        assert Settings.from_raw({}).mode == "session"
        assert Settings.from_raw({"session": {"enabled": False}}).mode == "open"
        assert Settings.from_raw({"session": {"enabled": "false"}}).mode == "open"

    def test_string_log_level(self):
        s = Settings.from_raw({"logging": {"level": "debug"}})
        assert s.logging.level == 4

    def test_settings_are_immutable(self):
        s = Settings.from_raw({})
        with pytest.raises(Exception):
            s.server = None  # type: ignore[misc]


class TestValidation:
    """Invalid values raise ConfigValidationError."""

    def test_port_out_of_range(self):
        with pytest.raises(ConfigValidationError):
            Settings.from_raw({"server": {"port": 70000}})

    def test_port_not_a_number(self):
        with pytest.raises(ConfigValidationError):
            Settings.from_raw({"server": {"port": "http"}})

    def test_negative_token_ttl(self):
        with pytest.raises(ConfigValidationError):
            Settings.from_raw({"session": {"token_ttl_seconds": -1}})

    def test_zero_timeout(self):
        with pytest.raises(ConfigValidationError):
            Settings.from_raw({"provider": {"timeout_s": 0}})

    @pytest.mark.parametrize("value", ["soon", None, [5]])
    def test_timeout_not_a_number(self, value):
        with pytest.raises(ConfigValidationError):
            Settings.from_raw({"provider": {"timeout_s": value}})

    def test_log_level_range(self):
        with pytest.raises(ConfigValidationError):
            Settings.from_raw({"logging": {"level": 7}})


class TestEnvOverrides:
    """Environment variables take precedence over file values."""

    def test_overrides(self):
        raw = apply_env_overrides(
            {"server": {"port": 1234}},
            {
                "PORT": "8090",
                "HOST": "127.0.0.1",
                "DEEPGRAM_API_KEY": "dg",
                "SESSION_SECRET": "sec",
                "TTS_GATEWAY_CORS_ORIGIN": "http://localhost:8080",
            },
        )
        s = Settings.from_raw(raw)
        assert s.server.port == 8090
        assert s.server.host == "127.0.0.1"
        assert s.provider.api_key == "dg"
        assert s.session.secret == "sec"
        assert s.cors.allow_origin == "http://localhost:8080"

    def test_open_mode_env(self):
        s = Settings.from_raw(apply_env_overrides({}, {"TTS_GATEWAY_MODE": "open"}))
        assert s.session.enabled is False

    def test_empty_values_ignored(self):
        s = Settings.from_raw(apply_env_overrides({}, {"SESSION_SECRET": ""}))
        assert s.session.secret is None


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_load_from_file(self, tmp_path):
        p = tmp_path / "settings.yaml"
        p.write_text("server:\n  port: 9999\nprovider:\n  default_model: aura-2-theia-en\n")
        s = load_settings(str(p), environ={}, dotenv=False)
        assert s.server.port == 9999
        assert s.provider.default_model == "aura-2-theia-en"

    def test_explicit_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "nope.yaml"), environ={}, dotenv=False)

    def test_default_missing_file_uses_defaults(self, tmp_path):
        env = {"TTS_GATEWAY_SETTINGS": str(tmp_path / "absent.yaml")}
        s = load_settings(environ=env, dotenv=False)
        assert s.server.port == Defaults.SERVER_PORT

    def test_env_beats_file(self, tmp_path):
        p = tmp_path / "settings.yaml"
        p.write_text("server:\n  port: 9999\n")
        s = load_settings(str(p), environ={"PORT": "7000"}, dotenv=False)
        assert s.server.port == 7000


class TestRequireApiKey:
    def test_missing_key_raises(self):
        with pytest.raises(MissingApiKeyError):
            Settings.from_raw({}).require_api_key()

    def test_present_key_returned(self):
        assert Settings.from_raw({"provider": {"api_key": "k"}}).require_api_key() == "k"
