"""
JSON file store for saved games.

Each profile is one file, ``<base_dir>/<profile_id>.json``. Writes go to a
temporary file in the same directory and are moved into place with
os.replace, so a crash mid-save leaves the previous save intact.
"""

import json
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

PROFILE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageError(Exception):
    """Raised when a save cannot be read or written."""
    pass


class JsonSaveStore:
    """
    Profile-keyed saved-game store.

    Attributes:
        base_dir: Directory holding one JSON file per profile
    """

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, profile_id: str) -> Path:
        if not profile_id or not PROFILE_ID_PATTERN.match(profile_id):
            raise StorageError(f"Invalid profile id: {profile_id!r}")
        return self.base_dir / f"{profile_id}.json"

    def load_game(self, profile_id: str) -> Optional[Dict[str, Any]]:
        """
        Load a saved game.

        Args:
            profile_id: Profile to load

        Returns:
            The saved-game dict, or None if the profile has no save

        Raises:
            StorageError: If the file exists but cannot be read or parsed
        """
        path = self._path(profile_id)
        if not path.exists():
            return None
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load save for '{profile_id}': {e}")
            raise StorageError(f"Failed to load save for '{profile_id}': {e}") from e
        logger.debug(f"Loaded save for '{profile_id}' from {path}")
        return data

    def save_game(self, saved: Dict[str, Any]) -> None:
        """
        Write a saved game atomically.

        Args:
            saved: Saved-game dict; its "profile_id" key selects the file

        Raises:
            StorageError: If the profile id is missing or the write fails
        """
        profile_id = saved.get("profile_id")
        path = self._path(profile_id)
        document = dict(saved)
        document["savedAt"] = datetime.now(timezone.utc).isoformat()

        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=f".{profile_id}.", suffix=".tmp", dir=self.base_dir)
            with os.fdopen(fd, "w") as f:
                json.dump(document, f)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            logger.error(f"Failed to save game for '{profile_id}': {e}")
            raise StorageError(f"Failed to save game for '{profile_id}': {e}") from e
        logger.debug(f"Saved game for '{profile_id}' to {path}")

    def list_profiles(self) -> List[str]:
        """Profile ids with a save, sorted."""
        return sorted(p.stem for p in self.base_dir.glob("*.json"))

    def delete_game(self, profile_id: str) -> bool:
        """
        Delete a profile's save.

        Returns:
            True if a save was deleted
        """
        path = self._path(profile_id)
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"Deleted save for '{profile_id}'")
        return True
