"""
Configuration Management for tts-gateway.

All runtime configuration is resolved once at startup into an immutable
Settings object and passed down to the application factory. Nothing else
in the package reads the environment directly.

Configuration Hierarchy (highest priority first):
    1. Environment variables (PORT, DEEPGRAM_API_KEY, SESSION_SECRET, ...)
    2. YAML config file (config/settings.yaml)
    3. Defaults class values

A `.env` file in the working directory is loaded into the environment
before overrides are applied.

Example settings.yaml:
    server:
      port: 8081

    provider:
      default_model: aura-2-thalia-en
      timeout_s: 60

    session:
      enabled: true
      token_ttl_seconds: 3600
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import find_dotenv, load_dotenv


class ConfigValidationError(Exception):
    """Raised when a configuration value is outside acceptable bounds."""
    pass


class MissingApiKeyError(Exception):
    """Raised when no speech provider API key is configured."""
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - Server: listen address
        - Provider: upstream speech synthesis API
        - Session: nonce and token lifetimes
        - CORS / Frontend / Metadata: file locations and origins
        - Logging: numeric level
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Server
    # ─────────────────────────────────────────────────────────────────────────
    SERVER_HOST = "0.0.0.0"
    SERVER_PORT = 8081

    # ─────────────────────────────────────────────────────────────────────────
    # Speech provider
    # ─────────────────────────────────────────────────────────────────────────
    PROVIDER_BASE_URL = "https://api.deepgram.com"
    PROVIDER_DEFAULT_MODEL = "aura-2-thalia-en"
    PROVIDER_TIMEOUT_S = 60.0

    # ─────────────────────────────────────────────────────────────────────────
    # Session auth
    # ─────────────────────────────────────────────────────────────────────────
    SESSION_ENABLED = True
    SESSION_TOKEN_TTL_SECONDS = 3600    # 1 hour
    SESSION_NONCE_TTL_SECONDS = 300     # 5 minutes
    SESSION_SWEEP_INTERVAL_SECONDS = 60

    # ─────────────────────────────────────────────────────────────────────────
    # CORS / files
    # ─────────────────────────────────────────────────────────────────────────
    CORS_ALLOW_ORIGIN = "*"
    FRONTEND_INDEX_PATH = "frontend/dist/index.html"
    METADATA_PATH = "deepgram.toml"

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_LEVEL = 2                   # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG

    SETTINGS_PATH = "config/settings.yaml"


@dataclass(frozen=True)
class ServerConfig:
    """Listen address for the HTTP server."""
    host: str = Defaults.SERVER_HOST
    port: int = Defaults.SERVER_PORT


@dataclass(frozen=True)
class ProviderConfig:
    """
    Upstream speech synthesis provider.

    api_key is optional here so that settings can be built for tooling and
    tests; require_api_key() enforces it where a live provider is needed.
    """
    api_key: Optional[str] = None
    base_url: str = Defaults.PROVIDER_BASE_URL
    default_model: str = Defaults.PROVIDER_DEFAULT_MODEL
    timeout_s: float = Defaults.PROVIDER_TIMEOUT_S


@dataclass(frozen=True)
class SessionConfig:
    """
    Session auth configuration.

    enabled=False selects the open deployment mode (no tokens, no nonces).
    A configured secret means nonce-gated token issuance.
    """
    enabled: bool = Defaults.SESSION_ENABLED
    secret: Optional[str] = None
    token_ttl_seconds: int = Defaults.SESSION_TOKEN_TTL_SECONDS
    nonce_ttl_seconds: int = Defaults.SESSION_NONCE_TTL_SECONDS
    sweep_interval_seconds: int = Defaults.SESSION_SWEEP_INTERVAL_SECONDS

    @property
    def require_nonce(self) -> bool:
        return bool(self.secret)


@dataclass(frozen=True)
class CorsConfig:
    allow_origin: str = Defaults.CORS_ALLOW_ORIGIN


@dataclass(frozen=True)
class FrontendConfig:
    index_path: str = Defaults.FRONTEND_INDEX_PATH


@dataclass(frozen=True)
class MetadataConfig:
    path: str = Defaults.METADATA_PATH


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, errors only
        2 = NORMAL: Request lifecycle (default)
        3 = VERBOSE: Per-stage timing
        4 = DEBUG: Internal state
    """
    level: int = Defaults.LOGGING_LEVEL
    log_dir: Optional[str] = None
    jsonl_file: str = "tts-gateway.jsonl"


@dataclass(frozen=True)
class Settings:
    """
    Immutable, validated gateway configuration.

    Built once at startup by load_settings() or, in tests, directly from a
    dictionary with Settings.from_raw().

    Usage:
        settings = load_settings("config/settings.yaml")
        print(settings.session.token_ttl_seconds)
    """
    server: ServerConfig = field(default_factory=ServerConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    cors: CorsConfig = field(default_factory=CorsConfig)
    frontend: FrontendConfig = field(default_factory=FrontendConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def mode(self) -> str:
        """Deployment mode name: "session" or "open"."""
        return "session" if self.session.enabled else "open"

    def require_api_key(self) -> str:
        """
        Return the provider API key.

        Raises:
            MissingApiKeyError: If no key was configured.
        """
        if not self.provider.api_key:
            raise MissingApiKeyError("Deepgram API key not found")
        return self.provider.api_key

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "Settings":
        """
        Build Settings from a raw configuration dictionary.

        Missing sections and keys fall back to Defaults.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        # ─────────────────────────────────────────────────────────────────────
        # Server
        # ─────────────────────────────────────────────────────────────────────
        server_raw = raw.get("server") or {}
        server = ServerConfig(
            host=str(server_raw.get("host", Defaults.SERVER_HOST)),
            port=cls._as_int("server.port", server_raw.get("port", Defaults.SERVER_PORT)),
        )
        cls._validate_range("server.port", server.port, 1, 65535)

        # ─────────────────────────────────────────────────────────────────────
        # Provider
        # ─────────────────────────────────────────────────────────────────────
        provider_raw = raw.get("provider") or {}
        provider = ProviderConfig(
            api_key=provider_raw.get("api_key") or None,
            base_url=str(provider_raw.get("base_url", Defaults.PROVIDER_BASE_URL)).rstrip("/"),
            default_model=str(provider_raw.get("default_model", Defaults.PROVIDER_DEFAULT_MODEL)),
            timeout_s=cls._as_float(
                "provider.timeout_s",
                provider_raw.get("timeout_s", Defaults.PROVIDER_TIMEOUT_S),
            ),
        )
        cls._validate_positive("provider.timeout_s", provider.timeout_s)
        if not provider.default_model:
            raise ConfigValidationError("provider.default_model must not be empty")

        # ─────────────────────────────────────────────────────────────────────
        # Session
        # ─────────────────────────────────────────────────────────────────────
        session_raw = raw.get("session") or {}
        session = SessionConfig(
            enabled=cls._as_bool(session_raw.get("enabled", Defaults.SESSION_ENABLED)),
            secret=session_raw.get("secret") or None,
            token_ttl_seconds=cls._as_int(
                "session.token_ttl_seconds",
                session_raw.get("token_ttl_seconds", Defaults.SESSION_TOKEN_TTL_SECONDS),
            ),
            nonce_ttl_seconds=cls._as_int(
                "session.nonce_ttl_seconds",
                session_raw.get("nonce_ttl_seconds", Defaults.SESSION_NONCE_TTL_SECONDS),
            ),
            sweep_interval_seconds=cls._as_int(
                "session.sweep_interval_seconds",
                session_raw.get("sweep_interval_seconds", Defaults.SESSION_SWEEP_INTERVAL_SECONDS),
            ),
        )
        cls._validate_positive("session.token_ttl_seconds", session.token_ttl_seconds)
        cls._validate_positive("session.nonce_ttl_seconds", session.nonce_ttl_seconds)
        cls._validate_positive("session.sweep_interval_seconds", session.sweep_interval_seconds)

        # ─────────────────────────────────────────────────────────────────────
        # CORS, frontend, metadata
        # ─────────────────────────────────────────────────────────────────────
        cors = CorsConfig(
            allow_origin=str((raw.get("cors") or {}).get("allow_origin", Defaults.CORS_ALLOW_ORIGIN)),
        )
        frontend = FrontendConfig(
            index_path=str((raw.get("frontend") or {}).get("index_path", Defaults.FRONTEND_INDEX_PATH)),
        )
        metadata = MetadataConfig(
            path=str((raw.get("metadata") or {}).get("path", Defaults.METADATA_PATH)),
        )

        # ─────────────────────────────────────────────────────────────────────
        # Logging
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging") or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)

        # Accept level names as well as numbers
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)

        logging_cfg = LoggingConfig(
            level=log_level,
            log_dir=logging_raw.get("log_dir") or None,
            jsonl_file=str(logging_raw.get("jsonl_file", "tts-gateway.jsonl")),
        )
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(
            server=server,
            provider=provider,
            session=session,
            cors=cors,
            frontend=frontend,
            metadata=metadata,
            logging=logging_cfg,
        )

    @staticmethod
    def _as_int(name: str, value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigValidationError(f"{name} must be an integer, got {value!r}")

    @staticmethod
    def _as_float(name: str, value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigValidationError(f"{name} must be a number, got {value!r}")

    @staticmethod
    def _as_bool(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() not in ("0", "false", "no", "off", "")
        return bool(value)

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


def apply_env_overrides(raw: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to a raw configuration dict.

    Environment variables:
        - PORT, HOST: server listen address
        - DEEPGRAM_API_KEY: provider API key
        - SESSION_SECRET: persistent token secret (enables nonce gating)
        - TTS_GATEWAY_MODE: "session" or "open"
        - TTS_GATEWAY_CORS_ORIGIN: allowed CORS origin
        - TTS_GATEWAY_LOG_LEVEL: numeric or named log level
    """
    if environ.get("PORT"):
        raw.setdefault("server", {})["port"] = environ["PORT"]
    if environ.get("HOST"):
        raw.setdefault("server", {})["host"] = environ["HOST"]
    if environ.get("DEEPGRAM_API_KEY"):
        raw.setdefault("provider", {})["api_key"] = environ["DEEPGRAM_API_KEY"]
    if environ.get("SESSION_SECRET"):
        raw.setdefault("session", {})["secret"] = environ["SESSION_SECRET"]
    mode = environ.get("TTS_GATEWAY_MODE")
    if mode:
        raw.setdefault("session", {})["enabled"] = mode.strip().lower() != "open"
    if environ.get("TTS_GATEWAY_CORS_ORIGIN"):
        raw.setdefault("cors", {})["allow_origin"] = environ["TTS_GATEWAY_CORS_ORIGIN"]
    if environ.get("TTS_GATEWAY_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = environ["TTS_GATEWAY_LOG_LEVEL"]
    return raw


def load_settings(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    dotenv: bool = True,
) -> Settings:
    """
    Load settings from a YAML file plus environment overrides.

    Args:
        path: Settings file. When omitted, TTS_GATEWAY_SETTINGS or
            config/settings.yaml is used and a missing file means defaults.
        environ: Environment mapping (defaults to os.environ).
        dotenv: Load a `.env` file into os.environ first.

    Returns:
        Validated Settings.

    Raises:
        FileNotFoundError: If an explicitly given settings file doesn't exist.
        ConfigValidationError: If validation fails.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))
    env = os.environ if environ is None else environ

    explicit = path is not None
    p = Path(path if explicit else env.get("TTS_GATEWAY_SETTINGS", Defaults.SETTINGS_PATH))

    raw: Dict[str, Any] = {}
    if p.exists():
        with p.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    elif explicit:
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    return Settings.from_raw(apply_env_overrides(raw, env))
