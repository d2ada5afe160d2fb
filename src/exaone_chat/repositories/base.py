"""Base storage interface for persisted client state."""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog

logger = structlog.get_logger()


class StateStorage(ABC):
    """Abstract key/value store holding serialized JSON blobs."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the raw value stored under key, or None."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a raw value under key."""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete key if present."""
        pass

    def get_json(self, key: str, default: Any = None) -> Any:
        """Load a JSON value, falling back to default when absent or corrupt."""
        try:
            raw = self.get_item(key)
            if raw is None:
                return default
            return json.loads(raw)
        except (OSError, ValueError) as e:
            logger.warning("storage_read_failed", key=key, error=str(e))
            return default

    def set_json(self, key: str, value: Any) -> None:
        """Serialize and store a JSON value; write failures are logged."""
        try:
            self.set_item(key, json.dumps(value))
        except (OSError, TypeError, ValueError) as e:
            logger.error("storage_write_failed", key=key, error=str(e))
