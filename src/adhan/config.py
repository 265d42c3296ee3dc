from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from adhan.logging_utils import LoggerFactory
from adhan.prayer_api import DEFAULT_AUDIO_URL, DEFAULT_BASE_URL


class ConfigError(ValueError):
    """Raised when configuration loading or validation fails."""


@dataclass(frozen=True)
class ApiConfig:
    base_url: str
    audio_url: str
    timeout_seconds: float


@dataclass(frozen=True)
class StorageConfig:
    documents_dir: Path
    cache_dir: Path


@dataclass(frozen=True)
class AudioConfig:
    download: bool


@dataclass(frozen=True)
class LoggingConfig:
    file_path: Optional[str]
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    api: ApiConfig
    storage: StorageConfig
    audio: AudioConfig
    logging: LoggingConfig


def _default_documents_dir() -> Path:
    return Path.home() / "Documents" / "adhan"


def _default_cache_dir() -> Path:
    xdg_cache = os.getenv("XDG_CACHE_HOME")
    base = Path(xdg_cache) if xdg_cache else Path.home() / ".cache"
    return base / "adhan"


def _defaults() -> Dict[str, Any]:
    return {
        "api": {
            "base_url": DEFAULT_BASE_URL,
            "audio_url": DEFAULT_AUDIO_URL,
            "timeout_seconds": 30,
        },
        "storage": {
            "documents_dir": str(_default_documents_dir()),
            "cache_dir": str(_default_cache_dir()),
        },
        "audio": {"download": True},
        "logging": {"file_path": None, "level": "INFO"},
    }


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(value, dict)
        ):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Failed to read config file: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config file: {path}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected mapping at root of config file: {path}")
    return data


class ConfigLoader:
    def __init__(self, root_dir: Path | None = None) -> None:
        self._root_dir = root_dir

    def load(self) -> AppConfig:
        root_dir = self._resolve_root_dir()

        # Unlike a service install, a missing config file just means defaults.
        merged = _defaults()
        config_path = root_dir / "config.yml"
        if config_path.exists():
            merged = _deep_merge(merged, _load_yaml(config_path))

        config_d = root_dir / "config.d"
        if config_d.exists():
            for path in sorted(config_d.glob("*.yml")):
                merged = _deep_merge(merged, _load_yaml(path))

        merged = _deep_merge(merged, self._env_overrides())
        config = self._build_config(merged)
        self._validate(config)
        return config

    def _resolve_root_dir(self) -> Path:
        if self._root_dir is not None:
            return self._root_dir
        env_dir = os.getenv("ADHAN_CONFIG_DIR")
        if env_dir:
            return Path(env_dir)
        return Path.home() / ".config" / "adhan"

    def _env_overrides(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        documents_dir = os.getenv("ADHAN_DOCUMENTS_DIR")
        cache_dir = os.getenv("ADHAN_CACHE_DIR")
        log_path = os.getenv("ADHAN_LOG_PATH")
        log_level = os.getenv("ADHAN_LOG_LEVEL")
        if documents_dir:
            overrides.setdefault("storage", {})["documents_dir"] = documents_dir
        if cache_dir:
            overrides.setdefault("storage", {})["cache_dir"] = cache_dir
        if log_path:
            overrides.setdefault("logging", {})["file_path"] = log_path
        if log_level:
            overrides.setdefault("logging", {})["level"] = log_level
        return overrides

    def _build_config(self, data: Dict[str, Any]) -> AppConfig:
        try:
            api_data = data["api"]
            storage_data = data["storage"]
            audio_data = data["audio"]
            logging_data = data["logging"]
            api = ApiConfig(
                base_url=str(api_data["base_url"]),
                audio_url=str(api_data["audio_url"]),
                timeout_seconds=float(api_data["timeout_seconds"]),
            )
            storage = StorageConfig(
                documents_dir=Path(storage_data["documents_dir"]).expanduser(),
                cache_dir=Path(storage_data["cache_dir"]).expanduser(),
            )
            audio = AudioConfig(download=bool(audio_data["download"]))
            file_path = logging_data.get("file_path")
            log_level = str(logging_data.get("level") or "INFO").upper()
        except KeyError as exc:
            raise ConfigError(f"Missing config key: {exc.args[0]}") from exc
        except (TypeError, ValueError, AttributeError) as exc:
            raise ConfigError(f"Invalid config value: {exc}") from exc

        return AppConfig(
            api=api,
            storage=storage,
            audio=audio,
            logging=LoggingConfig(
                file_path=str(file_path) if file_path else None, level=log_level
            ),
        )

    def _validate(self, config: AppConfig) -> None:
        if config.api.timeout_seconds <= 0:
            raise ConfigError(
                f"api.timeout_seconds must be positive: {config.api.timeout_seconds}"
            )
        for name in ("base_url", "audio_url"):
            url = getattr(config.api, name)
            if not url.startswith(("http://", "https://")):
                raise ConfigError(f"api.{name} must be an http(s) URL: {url}")
        try:
            LoggerFactory.resolve_level(config.logging.level)
        except ValueError as exc:
            raise ConfigError(f"logging.level: {exc}") from exc
