"""Named circuit storage on disk.

Each saved circuit is one JSON file in the data directory:

    {
        "name": "half adder demo",
        "description": "",
        "timestamp": "2026-01-01T12:00:00+00:00",
        "version": "1.0",
        "data": {"version": "1.0", "cellSize": 20, "components": [...]}
    }

File stems are derived from the circuit name; the autosave slot is an
ordinary entry under a reserved name.
"""

import json
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from circuplay.config.server import AUTOSAVE_NAME, DEFAULT_DATA_DIR
from circuplay.contracts import CIRCUIT_FORMAT_VERSION
from circuplay.exceptions import PersistenceError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def default_data_dir() -> Path:
    return Path(os.getenv("CIRCUPLAY_DATA_DIR", DEFAULT_DATA_DIR))


def sanitize_name(name: str) -> str:
    """Turn a circuit name into a safe file stem.

    Raises:
        PersistenceError: If nothing usable remains of the name
    """
    stem = _UNSAFE_CHARS.sub("_", name.strip()).strip("_").lower()
    if not stem:
        raise PersistenceError(f"Invalid circuit name: {name!r}")
    return stem


class CircuitStore:
    """Saves and loads circuit documents as JSON files."""

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else default_data_dir()

    def _path(self, name: str) -> Path:
        return self.data_dir / f"{sanitize_name(name)}.json"

    def save(self, name: str, data: Dict[str, Any], description: str = "") -> Path:
        """Write a circuit document under ``name``, replacing any previous save.

        Raises:
            PersistenceError: If the file cannot be written
        """
        record = {
            "name": name,
            "description": description,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": CIRCUIT_FORMAT_VERSION,
            "data": data,
        }
        path = self._path(name)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            with open(tmp_path, "w") as f:
                json.dump(record, f, indent=2)
            tmp_path.replace(path)
        except OSError as e:
            raise PersistenceError(f"Failed to save circuit {name!r}: {e}") from e

        logger.info(
            f"Saved circuit {name!r} to {path.name} "
            f"({len(data.get('components', []))} components)"
        )
        return path

    def load(self, name: str) -> Optional[Dict[str, Any]]:
        """Load a saved record, or None if there is no circuit by that name.

        Raises:
            PersistenceError: If the file exists but cannot be read
        """
        path = self._path(name)
        if not path.exists():
            return None
        try:
            with open(path) as f:
                record = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to load circuit {name!r}: {e}") from e
        if not isinstance(record, dict) or "data" not in record:
            raise PersistenceError(f"Saved circuit {name!r} is malformed")
        return record

    def list_circuits(self, include_autosave: bool = False) -> List[Dict[str, Any]]:
        """Summaries of saved circuits, newest first. Unreadable files are skipped."""
        if not self.data_dir.exists():
            return []

        summaries = []
        for path in self.data_dir.glob("*.json"):
            if path.stem == AUTOSAVE_NAME and not include_autosave:
                continue
            try:
                with open(path) as f:
                    record = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable circuit file {path.name}: {e}")
                continue
            data = record.get("data") or {}
            summaries.append(
                {
                    "name": record.get("name", path.stem),
                    "description": record.get("description", ""),
                    "timestamp": record.get("timestamp", ""),
                    "component_count": len(data.get("components", [])),
                }
            )
        summaries.sort(key=lambda s: s["timestamp"], reverse=True)
        return summaries

    def delete(self, name: str) -> bool:
        """Delete a saved circuit. Returns False if it did not exist."""
        path = self._path(name)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise PersistenceError(f"Failed to delete circuit {name!r}: {e}") from e
        logger.info(f"Deleted circuit {name!r}")
        return True

    def autosave(self, data: Dict[str, Any]) -> Path:
        return self.save(AUTOSAVE_NAME, data, description="Autosave")

    def load_autosave(self) -> Optional[Dict[str, Any]]:
        record = self.load(AUTOSAVE_NAME)
        return record["data"] if record else None
