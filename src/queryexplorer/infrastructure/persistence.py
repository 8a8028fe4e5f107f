"""
JSON-file persistence for saved explorers.

Each saved explorer is stored as `<id>.json` in a directory. All operations
report through callback(error, result) and never raise for I/O failures.
"""

import json
import re
import uuid
from pathlib import Path
from typing import Callable

from .logging_config import get_logger
from .paths import ensure_directory

logger = get_logger(__name__)


_SAFE_ID = re.compile(r'^[A-Za-z0-9_\-]+$')


class FileExplorerPersistence:
    """
    Store saved explorers as JSON files.
    """

    def __init__(self, directory: Path):
        """
        Initialize the persistence backend.

        Args:
            directory: Directory holding one JSON file per saved explorer.
        """
        self.directory = Path(directory)

    def _path_for(self, explorer_id) -> Path:
        explorer_id = str(explorer_id)
        if not _SAFE_ID.match(explorer_id):
            raise ValueError(f"Invalid explorer id: {explorer_id}")
        return self.directory / f"{explorer_id}.json"

    def _read(self, path: Path) -> dict:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _write(self, path: Path, data: dict) -> None:
        ensure_directory(path.parent)
        # Atomic write: write to temp file, then rename
        temp_file = path.with_suffix('.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        temp_file.replace(path)

    def get(self, explorer_id, callback: Callable) -> None:
        """
        Fetch one saved explorer, or all of them when explorer_id is None.

        Records are returned in file name order. Files that cannot be decoded
        or do not hold a JSON object are logged and skipped.

        Args:
            explorer_id: Id to fetch, or None for all.
            callback: Called with (error, record) or (error, records).
        """
        try:
            if explorer_id is not None:
                result = self._read(self._path_for(explorer_id))
            else:
                result = []
                if self.directory.exists():
                    for path in sorted(self.directory.glob('*.json')):
                        try:
                            record = self._read(path)
                        except ValueError as e:
                            logger.warning(f"Skipping unreadable saved explorer {path.name}: {e}")
                            continue
                        if not isinstance(record, dict):
                            logger.warning(f"Skipping saved explorer {path.name}: not a JSON object")
                            continue
                        result.append(record)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read saved explorers: {e}")
            callback(e, None)
            return
        callback(None, result)

    def create(self, attrs: dict, callback: Callable) -> None:
        """
        Save a new explorer under a freshly generated id.

        Args:
            attrs: Explorer attributes; any given id is replaced.
            callback: Called with (error, created_record).
        """
        record = dict(attrs)
        record['id'] = uuid.uuid4().hex
        try:
            self._write(self._path_for(record['id']), record)
        except OSError as e:
            logger.error(f"Failed to save explorer: {e}")
            callback(e, None)
            return
        logger.info(f"Saved explorer {record['id']} ({record.get('name', '')})")
        callback(None, record)

    def update(self, explorer_id, attrs: dict, callback: Callable) -> None:
        """
        Overwrite an existing saved explorer.

        Args:
            explorer_id: Id of the saved explorer.
            attrs: New attributes.
            callback: Called with (error, updated_record).
        """
        try:
            path = self._path_for(explorer_id)
            if not path.exists():
                raise FileNotFoundError(f"No saved explorer with id: {explorer_id}")
            record = dict(attrs)
            record['id'] = explorer_id
            self._write(path, record)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to update explorer {explorer_id}: {e}")
            callback(e, None)
            return
        callback(None, record)

    def destroy(self, explorer_id, callback: Callable) -> None:
        """
        Delete a saved explorer.

        Args:
            explorer_id: Id of the saved explorer.
            callback: Called with (error, None).
        """
        try:
            self._path_for(explorer_id).unlink()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to delete explorer {explorer_id}: {e}")
            callback(e, None)
            return
        logger.info(f"Deleted explorer {explorer_id}")
        callback(None, None)

