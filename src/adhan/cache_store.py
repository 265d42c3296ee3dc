from __future__ import annotations

import logging
from pathlib import Path
import shutil
from typing import Any, Optional

import yaml

from adhan.prayer_times import AdhanError


class CacheError(AdhanError):
    """Raised when a cached document cannot be serialized or is unusable."""


class CacheStore:
    """YAML documents and raw files kept under a single directory."""

    def __init__(self, root_dir: Path) -> None:
        self._root_dir = Path(root_dir)
        self._logger = logging.getLogger(f"adhan.{self.__class__.__name__}")

    def path_for(self, name: str) -> Path:
        return self._root_dir / name

    def read(self, name: str) -> Optional[Any]:
        path = self.path_for(name)
        if not path.exists():
            return None
        try:
            return yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            # A corrupt cache is a miss, never a crash.
            self._logger.warning("Cache read failed for %s: %s", path, exc)
            return None

    def write(self, name: str, payload: Any) -> Path:
        try:
            data = yaml.safe_dump(payload, sort_keys=False)
        except yaml.YAMLError as exc:
            raise CacheError(f"Failed to serialize {name}: {exc}") from exc
        self._logger.info("Serializing data to %s", self.path_for(name))
        return self._write_atomic(name, data.encode("utf-8"))

    def write_bytes(self, name: str, data: bytes) -> Path:
        self._logger.info("Writing file to %s", self.path_for(name))
        return self._write_atomic(name, data)

    def clear(self) -> None:
        if not self._root_dir.exists():
            return
        self._logger.info("Removing %s", self._root_dir)
        shutil.rmtree(self._root_dir)

    def _write_atomic(self, name: str, data: bytes) -> Path:
        path = self.path_for(name)
        tmp_path = path.with_name(f"{path.name}.tmp")
        try:
            self._root_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            tmp_path.replace(path)
        except OSError as exc:
            self._logger.error("Cache write failed for %s: %s", path, exc)
            tmp_path.unlink(missing_ok=True)
            raise
        return path
