import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)


class JsonStore:
    """Durable key-value storage: one JSON document per namespace key.

    Each key lives in its own file under ``directory`` so a write to one
    namespace never touches another.
    """

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    def load(self, key: str, fallback: Any) -> Any:
        """Return the stored value for ``key``, or ``fallback`` if absent or unreadable."""
        path = self._path(key)
        if not os.path.exists(path):
            return fallback
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Discarding unreadable state for {key!r}: {e}")
            return fallback

    def save(self, key: str, value: Any) -> bool:
        """Persist ``value`` under ``key``. Returns False if the write failed."""
        try:
            os.makedirs(self.directory, exist_ok=True)
            data = json.dumps(value, ensure_ascii=False)
            with open(self._path(key), "w", encoding="utf-8") as f:
                f.write(data)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to persist {key!r}: {e}")
            return False
