from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError as SchemaValidationError

from valoris.errors import ConfigError
from valoris.excel.numbers import NumberLocale

"""Config loader.

Responsibilities:
- Load the YAML config (default ``config/valoris.yml``)
- Validate it against the bundled JSON schema
- Apply defaults
- Apply environment overrides (credentials normally come from ``.env``)
"""

__all__ = [
    "ConfigError",
    "AnalysisServiceConfig",
    "ChatConfig",
    "ValorisConfig",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "apply_env_overrides",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/valoris.yml")

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_SCHEMA_VERSION = "1"
DEFAULT_CACHE_CAPACITY = 10
DEFAULT_HISTORY_LIMIT = 10

# env var -> (section, key)
ENV_OVERRIDES = {
    "VALORIS_API_KEY": ("analysis_service", "api_key"),
    "VALORIS_NORMALIZE_URL": ("analysis_service", "normalize_url"),
    "VALORIS_ENRICH_URL": ("analysis_service", "enrich_url"),
    "VALORIS_CHAT_URL": ("chat", "url"),
    "VALORIS_CHAT_API_KEY": ("chat", "api_key"),
}


@dataclass(frozen=True)
class AnalysisServiceConfig:
    normalize_url: str
    enrich_url: str
    api_key: str | None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    schema_version: str = DEFAULT_SCHEMA_VERSION

    def require_credentials(self) -> None:
        """Fail fast when the remote stages cannot possibly be called."""
        if not self.api_key:
            raise ConfigError("analysis service api_key is not configured (set VALORIS_API_KEY)")
        if not self.normalize_url:
            raise ConfigError("analysis service normalize_url is not configured")
        if not self.enrich_url:
            raise ConfigError("analysis service enrich_url is not configured")


@dataclass(frozen=True)
class ChatConfig:
    url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    history_limit: int = DEFAULT_HISTORY_LIMIT

    @property
    def enabled(self) -> bool:
        return bool(self.url)


@dataclass(frozen=True)
class ValorisConfig:
    analysis_service: AnalysisServiceConfig
    chat: ChatConfig
    cache_capacity: int = DEFAULT_CACHE_CAPACITY
    number_locale: NumberLocale = NumberLocale.NONE
    error_log_dir: str = "./logs"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or not valid JSON, or the data fails
            validation (missing required keys, wrong types, unknown keys)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except SchemaValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def apply_env_overrides(config: ValorisConfig, environ: dict[str, str] | None = None) -> ValorisConfig:
    """Return a copy of ``config`` with non-empty environment values applied."""
    env = os.environ if environ is None else environ
    service = config.analysis_service
    chat = config.chat
    for var, (section, key) in ENV_OVERRIDES.items():
        value = env.get(var)
        if not value:
            continue
        if section == "analysis_service":
            service = replace(service, **{key: value})
        else:
            chat = replace(chat, **{key: value})
    return replace(config, analysis_service=service, chat=chat)


def load_config(path: Path, environ: dict[str, str] | None = None) -> ValorisConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    svc_raw = data["analysis_service"]
    service = AnalysisServiceConfig(
        normalize_url=svc_raw["normalize_url"],
        enrich_url=svc_raw["enrich_url"],
        api_key=svc_raw.get("api_key"),
        timeout_seconds=float(svc_raw.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
        schema_version=svc_raw.get("schema_version", DEFAULT_SCHEMA_VERSION),
    )
    chat_raw = data.get("chat") or {}
    chat = ChatConfig(
        url=chat_raw.get("url"),
        api_key=chat_raw.get("api_key"),
        timeout_seconds=float(chat_raw.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
        history_limit=chat_raw.get("history_limit", DEFAULT_HISTORY_LIMIT),
    )
    config = ValorisConfig(
        analysis_service=service,
        chat=chat,
        cache_capacity=data.get("cache_capacity", DEFAULT_CACHE_CAPACITY),
        number_locale=NumberLocale(data.get("number_locale", NumberLocale.NONE.value)),
        error_log_dir=data.get("error_log_dir", "./logs"),
    )
    return apply_env_overrides(config, environ)
