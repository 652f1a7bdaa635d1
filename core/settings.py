"""
Runtime configuration for the collector and the heartbeat agent.

Values are resolved in increasing precedence:
  1. built-in defaults (the timing constants below)
  2. optional YAML file (``HB_CONFIG_PATH`` or ``--config``)
  3. ``HB_*`` environment variables
  4. explicit overrides (command-line flags)

Expected YAML structure (every key optional):
  port: 8080
  https: false
  pubkey: /etc/liveness/collector.pub.pem
  privkey: /etc/liveness/agent.pem
  digest: sha256
  timing:
    heartbeat_interval: 60
    timeout: 5
    offline_timeout: 300
    zombie_timeout: 3600
"""

import logging
import os
import socket
from dataclasses import dataclass, fields, replace
from typing import Optional

import yaml

from core.errors import ConfigurationError
from core.utils import truthy

logger = logging.getLogger("liveness.settings")

DEFAULT_PORT = 8080
HEARTBEAT_INTERVAL = 60  # 1 minute
TIMEOUT = 5
OFFLINE_TIMEOUT = 300  # 5 minutes
ZOMBIE_TIMEOUT = 3600  # 1 hour

SUPPORTED_DIGESTS = ("sha224", "sha256", "sha384", "sha512", "sha1")
LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")

_TIMING_FIELDS = ("heartbeat_interval", "timeout", "offline_timeout", "zombie_timeout")
_BOOL_FIELDS = {"server", "https", "skip_when_locked", "trust_forwarded_for"}
_INT_FIELDS = {"port", *_TIMING_FIELDS}

_ENV_VARS = {
    "port": "HB_PORT",
    "https": "HB_HTTPS",
    "pubkey": "HB_PUBKEY",
    "privkey": "HB_PRIVKEY",
    "privkey_passphrase": "HB_PRIVKEY_PASSPHRASE",
    "bind_host": "HB_BIND_HOST",
    "digest": "HB_DIGEST",
    "heartbeat_interval": "HB_HEARTBEAT_INTERVAL",
    "timeout": "HB_TIMEOUT",
    "offline_timeout": "HB_OFFLINE_TIMEOUT",
    "zombie_timeout": "HB_ZOMBIE_TIMEOUT",
    "skip_when_locked": "HB_SKIP_WHEN_LOCKED",
    "trust_forwarded_for": "HB_TRUST_FORWARDED_FOR",
    "log_level": "HB_LOG_LEVEL",
    "tls_certfile": "HB_TLS_CERTFILE",
    "tls_keyfile": "HB_TLS_KEYFILE",
}


@dataclass(frozen=True)
class Settings:
    server: bool = False
    client: Optional[str] = None
    port: Optional[int] = None
    https: bool = False
    pubkey: Optional[str] = None
    privkey: Optional[str] = None
    privkey_passphrase: Optional[str] = None
    bind_host: str = "0.0.0.0"
    digest: str = "sha256"
    heartbeat_interval: int = HEARTBEAT_INTERVAL
    timeout: int = TIMEOUT
    offline_timeout: int = OFFLINE_TIMEOUT
    zombie_timeout: int = ZOMBIE_TIMEOUT
    skip_when_locked: bool = True
    trust_forwarded_for: bool = False
    log_level: str = "INFO"
    tls_certfile: Optional[str] = None
    tls_keyfile: Optional[str] = None

    @property
    def scheme(self):
        return "https" if self.https else "http"

    @property
    def heartbeat_url(self):
        return f"{self.scheme}://{self.client}:{self.port}/heartbeat"


def _coerce(name, value):
    if value is None:
        return None
    if name in _BOOL_FIELDS:
        if isinstance(value, bool):
            return value
        return truthy(value)
    if name in _INT_FIELDS:
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e
    return str(value)


def load_yaml_config(config_path):
    """Read a YAML settings file into a flat dict of known field names."""
    if not config_path:
        return {}
    if not os.path.exists(config_path):
        raise ConfigurationError(f"Config file does not exist: {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            payload = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not read config file {config_path}: {e}") from e
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    known = {f.name for f in fields(Settings)}
    parsed = {}
    timing = payload.get("timing", {})
    if isinstance(timing, dict):
        for key in _TIMING_FIELDS:
            if key in timing:
                parsed[key] = _coerce(key, timing[key])
    for key, value in payload.items():
        if key == "timing":
            continue
        if key not in known:
            logger.warning("Ignoring unknown config key %r in %s", key, config_path)
            continue
        parsed[key] = _coerce(key, value)
    return parsed


def _env_overrides(environ):
    parsed = {}
    for name, env_name in _ENV_VARS.items():
        raw = environ.get(env_name)
        if raw is None or str(raw).strip() == "":
            continue
        parsed[name] = _coerce(name, raw.strip())
    return parsed


def load_settings(overrides=None, config_path=None, environ=None):
    """Build a ``Settings`` from defaults, YAML, environment and overrides.

    ``overrides`` entries set to ``None`` are treated as "not given" so that
    argparse namespaces can be passed through unchanged.
    """
    environ = os.environ if environ is None else environ
    config_path = config_path or environ.get("HB_CONFIG_PATH")

    values = {}
    values.update(load_yaml_config(config_path))
    values.update(_env_overrides(environ))
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        # Flags default to False; only an explicit True overrides lower layers.
        if key in _BOOL_FIELDS and value is False:
            continue
        values[key] = _coerce(key, value)
    return Settings(**values)


def validate_settings(settings):
    """Check option combinations and fill in the default port.

    Returns a (possibly updated) ``Settings``; raises ``ConfigurationError``.
    """
    if settings.server and settings.client:
        raise ConfigurationError("Cannot specify both server and client mode")
    if not settings.server and not settings.client:
        raise ConfigurationError("Must specify either server or client mode")
    if settings.pubkey and not os.path.exists(settings.pubkey):
        raise ConfigurationError("Public key file does not exist")
    if settings.privkey and not os.path.exists(settings.privkey):
        raise ConfigurationError("Private key file does not exist")

    if settings.port is None:
        settings = replace(settings, port=DEFAULT_PORT)
        logger.info("Port not specified, using default port %d", DEFAULT_PORT)
    if not 1 <= settings.port <= 65535:
        raise ConfigurationError(f"Port must be between 1 and 65535, got {settings.port}")

    for name in _TIMING_FIELDS:
        if getattr(settings, name) <= 0:
            raise ConfigurationError(f"{name} must be a positive number of seconds")
    if settings.offline_timeout > settings.zombie_timeout:
        raise ConfigurationError("offline_timeout must not exceed zombie_timeout")

    if settings.digest.lower() not in SUPPORTED_DIGESTS:
        raise ConfigurationError(
            f"Unsupported digest {settings.digest!r}; use one of {', '.join(SUPPORTED_DIGESTS)}"
        )
    if str(settings.log_level).lower() not in LOG_LEVELS:
        raise ConfigurationError(
            f"Unsupported log level {settings.log_level!r}; use one of {', '.join(LOG_LEVELS)}"
        )

    if settings.client:
        try:
            addrs = socket.getaddrinfo(settings.client, settings.port)
        except (socket.gaierror, UnicodeError) as e:
            raise ConfigurationError(f"Invalid client address: {e}") from e
        if not addrs:
            raise ConfigurationError("Invalid client address")

    if settings.server and settings.privkey:
        logger.warning("Private key will not be used in server mode")
    if settings.client and settings.pubkey:
        logger.warning("Public key will not be used in client mode")
    return settings
