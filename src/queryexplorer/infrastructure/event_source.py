"""
Event collection loading utilities.

An event collection named `clicks` lives in a data directory as one of
`clicks.jsonl` (one JSON object per line), `clicks.json` (a JSON array) or
`clicks.csv` (header row plus one event per row).
"""

import csv
import json
from pathlib import Path
from typing import Optional

from .logging_config import get_logger

logger = get_logger(__name__)


SUPPORTED_EXTENSIONS = ('.jsonl', '.json', '.csv')


def find_collection_file(data_dir: Path, collection: str) -> Optional[Path]:
    """
    Find the file holding an event collection.

    Args:
        data_dir: Directory containing event collection files.
        collection: Collection name.

    Returns:
        Path to the first matching file, None if there is none.
    """
    for extension in SUPPORTED_EXTENSIONS:
        candidate = data_dir / f"{collection}{extension}"
        if candidate.exists():
            return candidate
    return None


def list_collections(data_dir: Path) -> list[str]:
    """
    List the event collections available in a directory.

    Returns:
        Sorted collection names.
    """
    if not data_dir.exists():
        return []
    names = {
        path.stem for path in data_dir.iterdir()
        if path.is_file() and path.suffix in SUPPORTED_EXTENSIONS
    }
    return sorted(names)


def load_csv_events(file_path: Path) -> list[dict]:
    """
    Load events from a CSV file.

    Each row becomes a dictionary mapping column names to values.
    Whitespace is stripped from keys and values.
    """
    events = []
    with open(file_path, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)
        for row in reader:
            events.append({k.strip(): (v.strip() if isinstance(v, str) else v) for k, v in row.items()})
    return events


def load_json_events(file_path: Path) -> list[dict]:
    """
    Load events from a .json array or a .jsonl file.

    Raises:
        ValueError: If the file does not contain a list of objects.
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        if file_path.suffix == '.jsonl':
            events = [json.loads(line) for line in f if line.strip()]
        else:
            events = json.load(f)

    if not isinstance(events, list) or not all(isinstance(e, dict) for e in events):
        raise ValueError(f"Expected a list of event objects in {file_path}")
    return events


def load_events(data_dir: Path, collection: str) -> list[dict]:
    """
    Load every event of a collection.

    Args:
        data_dir: Directory containing event collection files.
        collection: Collection name.

    Returns:
        List of event dictionaries.

    Raises:
        FileNotFoundError: If the collection does not exist.
        ValueError: If the file content is malformed.
    """
    file_path = find_collection_file(data_dir, collection)
    if file_path is None:
        raise FileNotFoundError(f"Event collection not found: {collection}")

    if file_path.suffix == '.csv':
        events = load_csv_events(file_path)
    else:
        try:
            events = load_json_events(file_path)
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed event file {file_path.name}: {e}") from e

    logger.debug(f"Loaded {len(events)} events from {file_path.name}")
    return events
