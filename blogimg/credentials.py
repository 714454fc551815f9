from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)

CREDENTIAL_KEY = "gemini-api-key"


def default_config_dir() -> Path:
    override = os.getenv("BLOGIMG_CONFIG_DIR")
    if override:
        return Path(override)
    return Path.home() / ".config" / "blogimg"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Flat string->string store persisted as one JSON object."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path else default_config_dir() / "settings.json"

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("ignoring unreadable settings file %s", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=".settings.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class CredentialHolder:
    """Process-wide holder for the Gemini API key.

    The stored key is read once at construction. When nothing is stored the
    GEMINI_API_KEY environment variable is used instead.
    """

    def __init__(self, store: Optional[KeyValueStore] = None, *, env_fallback: bool = True) -> None:
        self._store: KeyValueStore = store if store is not None else JsonFileStore()
        self._env_fallback = env_fallback
        self._key: Optional[str] = self._store.get(CREDENTIAL_KEY) or None

    def get(self) -> Optional[str]:
        if self._key:
            return self._key
        if self._env_fallback:
            return os.getenv("GEMINI_API_KEY") or None
        return None

    def set(self, key: str) -> None:
        key = (key or "").strip()
        if key:
            self._key = key
            self._store.set(CREDENTIAL_KEY, key)
        else:
            self._key = None
            self._store.delete(CREDENTIAL_KEY)
