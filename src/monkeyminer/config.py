"""
Configuration for MonkeyMiner.

``MinerConfig`` carries the Verification Service instance, the credentials
used for the authenticated ``mine`` route, transport and difficulty settings,
and the logging level. Environment variables override constructor values.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .crypto.hashing import HASH_HEX_LENGTH
from .errors.exceptions import ConfigurationError
from .logging.core import LogConfig, LogLevel

DEFAULT_INSTANCE = "https://crypto.monkeyflip.io"

# Default log level for each runtime environment.
LOG_LEVELS = {
    "test": LogLevel.ERROR,
    "development": LogLevel.DEBUG,
    "production": LogLevel.INFO,
}


@dataclass
class AuthConfig:
    """Credentials injected into authenticated requests."""

    id: str
    key: str

    def to_dict(self, mask_key: bool = True) -> Dict[str, str]:
        return {"id": self.id, "key": "***" if mask_key else self.key}


@dataclass
class MinerConfig:
    """Comprehensive miner configuration."""

    instance: str = DEFAULT_INSTANCE
    auth: Optional[AuthConfig] = None
    environment: str = "development"
    log_level: Optional[LogLevel] = None
    log_format: str = "text"
    timeout: float = 30.0
    initial_difficulty: int = 4
    max_difficulty: int = HASH_HEX_LENGTH
    seed: Optional[int] = None
    apply_environment: bool = True

    environment_overrides: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.apply_environment:
            self._apply_environment_overrides()
        self._validate()

    def _apply_environment_overrides(self):
        """Apply environment variable overrides."""
        env_mappings = {
            "MONKEYMINER_INSTANCE": ("instance", str),
            "MONKEYMINER_ENV": ("environment", str),
            "MONKEYMINER_LOG_LEVEL": ("log_level", LogLevel.from_name),
            "MONKEYMINER_LOG_FORMAT": ("log_format", str),
            "MONKEYMINER_TIMEOUT": ("timeout", float),
            "MONKEYMINER_MAX_DIFFICULTY": ("max_difficulty", int),
            "MONKEYMINER_SEED": ("seed", int),
        }

        for env_var, (attr_name, attr_type) in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                try:
                    value = attr_type(env_value)
                except (ValueError, TypeError) as e:
                    raise ConfigurationError(
                        f"Invalid environment variable {env_var}={env_value}: {e}",
                        config_key=attr_name,
                        config_value=env_value,
                        cause=e,
                    ) from e
                setattr(self, attr_name, value)
                self.environment_overrides[env_var] = value

        auth_id = os.getenv("MONKEYMINER_AUTH_ID")
        auth_key = os.getenv("MONKEYMINER_AUTH_KEY")
        if auth_id is not None or auth_key is not None:
            self.update_auth(auth_id, auth_key)
            self.environment_overrides["MONKEYMINER_AUTH_ID"] = self.auth.id

    def update_auth(self, auth_id: Optional[str] = None, auth_key: Optional[str] = None) -> None:
        """Replace the credential fields that are given, keeping the others."""
        current = self.auth or AuthConfig(id="", key="")
        self.auth = AuthConfig(
            id=auth_id if auth_id is not None else current.id,
            key=auth_key if auth_key is not None else current.key,
        )

    def _validate(self):
        if not self.instance or not self.instance.startswith(("http://", "https://")):
            raise ConfigurationError(
                "Instance must be an http(s) URL",
                config_key="instance",
                config_value=self.instance,
            )
        if self.environment not in LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown environment '{self.environment}'",
                config_key="environment",
                config_value=self.environment,
            )
        if self.log_format not in ("text", "json"):
            raise ConfigurationError(
                "Log format must be 'text' or 'json'",
                config_key="log_format",
                config_value=self.log_format,
            )
        if self.timeout <= 0:
            raise ConfigurationError(
                "Timeout must be positive", config_key="timeout", config_value=self.timeout
            )
        if self.initial_difficulty < 0:
            raise ConfigurationError(
                "Initial difficulty must be non-negative",
                config_key="initial_difficulty",
                config_value=self.initial_difficulty,
            )
        if not 0 <= self.max_difficulty <= HASH_HEX_LENGTH:
            raise ConfigurationError(
                f"Max difficulty must be within [0, {HASH_HEX_LENGTH}]",
                config_key="max_difficulty",
                config_value=self.max_difficulty,
            )

    @property
    def effective_log_level(self) -> LogLevel:
        return self.log_level or LOG_LEVELS[self.environment]

    @property
    def has_credentials(self) -> bool:
        return self.auth is not None and bool(self.auth.id) and bool(self.auth.key)

    def to_log_config(self) -> LogConfig:
        """Logging configuration matching this miner configuration."""
        return LogConfig(level=self.effective_log_level, format_type=self.log_format)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view with the credential secret masked."""
        return {
            "instance": self.instance,
            "auth": self.auth.to_dict() if self.auth else None,
            "environment": self.environment,
            "log_level": self.effective_log_level.value,
            "log_format": self.log_format,
            "timeout": self.timeout,
            "initial_difficulty": self.initial_difficulty,
            "max_difficulty": self.max_difficulty,
            "seed": self.seed,
        }

    @staticmethod
    def _normalize(values: Dict[str, Any]) -> Dict[str, Any]:
        values = dict(values)

        auth = values.get("auth")
        if isinstance(auth, dict):
            values["auth"] = AuthConfig(
                id=str(auth.get("id", "")), key=str(auth.get("key", ""))
            )

        log_level = values.get("log_level")
        if isinstance(log_level, str):
            try:
                values["log_level"] = LogLevel.from_name(log_level)
            except ValueError as e:
                raise ConfigurationError(
                    str(e), config_key="log_level", config_value=log_level, cause=e
                ) from e

        unknown = set(values) - _CONFIG_KEYS
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}",
                config_key=sorted(unknown)[0],
            )
        return values

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **overrides: Any) -> "MinerConfig":
        """
        Build a configuration from a mapping shaped like the JSON config file.

        Values in ``data`` are overridden by ``MONKEYMINER_*`` environment
        variables, which are in turn overridden by non-None ``overrides``.
        """
        config = cls(**cls._normalize(data))

        explicit = cls._normalize({k: v for k, v in overrides.items() if v is not None})
        for attr_name, value in explicit.items():
            setattr(config, attr_name, value)
        if explicit:
            config._validate()
        return config


_CONFIG_KEYS = {
    "instance",
    "auth",
    "environment",
    "log_level",
    "log_format",
    "timeout",
    "initial_difficulty",
    "max_difficulty",
    "seed",
    "apply_environment",
}


def load_config(path: str, **overrides: Any) -> MinerConfig:
    """Load a JSON configuration file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}", cause=e) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file {path}: {e}", cause=e) from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    return MinerConfig.from_dict(data, **overrides)
