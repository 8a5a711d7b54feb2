"""User settings persistence.

Settings are a single record. Reads merge whatever was stored over the
defaults; updates shallow-merge a partial dict and persist the full result.
"""

import logging
from typing import Any

from pydantic import ValidationError

from .errors import PersistenceError
from .models import UserSettings
from .storage import SETTINGS_STORE, JsonStore

logger = logging.getLogger(__name__)

SETTINGS_KEY = "user_settings"


def _merge(base: UserSettings, partial: dict[str, Any]) -> UserSettings:
    return UserSettings.model_validate({**base.model_dump(mode="json"), **partial})


class SettingsStore:
    """Holds the current settings in memory, backed by a JsonStore."""

    def __init__(self, store: JsonStore) -> None:
        self.store = store
        self._current: UserSettings | None = None

    @classmethod
    def open(cls, data_dir: str) -> "SettingsStore":
        return cls(JsonStore(SETTINGS_STORE, data_dir))

    def get(self) -> UserSettings:
        if self._current is None:
            stored = self.store.get(SETTINGS_KEY) or {}
            try:
                self._current = _merge(UserSettings(), stored)
            except ValidationError as exc:
                raise PersistenceError(f"corrupt settings record: {exc}") from exc
            logger.debug("Loaded settings (%d stored fields)", len(stored))
        return self._current

    def update(self, partial: dict[str, Any]) -> UserSettings:
        """Shallow-merge ``partial`` into the current settings and persist it.

        Raises pydantic's ValidationError if a value has the wrong type.
        """
        merged = _merge(self.get(), partial)
        self.store.put(SETTINGS_KEY, merged.model_dump(mode="json"))
        self._current = merged
        logger.info("Updated settings: %s", ", ".join(sorted(partial)) or "(nothing)")
        return merged

    def reset(self) -> UserSettings:
        self.store.delete(SETTINGS_KEY)
        self._current = UserSettings()
        return self._current
