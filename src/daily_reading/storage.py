"""Local key-value persistence.

Each logical store (cache, history, settings) is one JSON file under the
data directory, holding ``{key: record}``. Writes go to a temp file and are
moved into place, so a crash never leaves a half-written store.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .errors import PersistenceError

logger = logging.getLogger(__name__)

# Logical store names
CACHE_STORE = "reading_cache"
HISTORY_STORE = "reading_history"
SETTINGS_STORE = "user_settings"


class JsonStore:
    """JSON-file-backed store of records keyed by string.

    The file is re-read on every operation; there is a single writer per
    device, and this keeps separate store objects on the same file
    consistent with each other.
    """

    def __init__(self, name: str, data_dir: str | Path = "data") -> None:
        self.name = name
        self.path = Path(data_dir) / f"{name}.json"

    # ── Internal file I/O ────────────────────────────────────────────────

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"cannot read store {self.name!r}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceError(f"store {self.name!r} is not a JSON object")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"cannot write store {self.name!r}: {exc}") from exc

    # ── Public API ───────────────────────────────────────────────────────

    def get(self, key: str) -> Any | None:
        return self._load().get(key)

    def put(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)
        logger.debug("Store %s: put %s", self.name, key)

    def delete(self, key: str) -> bool:
        """Remove ``key``; returns whether it existed."""
        data = self._load()
        if key not in data:
            return False
        del data[key]
        self._save(data)
        logger.debug("Store %s: deleted %s", self.name, key)
        return True

    def all(self) -> dict[str, Any]:
        return self._load()

    def clear(self) -> None:
        self._save({})
        logger.info("Store %s: cleared", self.name)

    def __repr__(self) -> str:
        return f"<JsonStore name={self.name!r} path={str(self.path)!r}>"


def clear_all(data_dir: str | Path) -> None:
    """Empty every store under ``data_dir``."""
    for name in (CACHE_STORE, HISTORY_STORE, SETTINGS_STORE):
        JsonStore(name, data_dir).clear()
