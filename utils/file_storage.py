"""
Local JSON storage for development and tests.
One JSON file per collection under a base directory, written atomically.
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

from clients.document_store import DocumentStore, generate_uuid
from utils.exceptions import StorageError

logger = logging.getLogger(__name__)


def read_json_file(filepath: Path) -> Optional[Dict[str, Any]]:
    """Read JSON file, return None if not found or invalid"""
    try:
        if not filepath.exists():
            return None
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {filepath}: {e}")
        return None
    except OSError as e:
        logger.error(f"Error reading {filepath}: {e}")
        return None


def write_json_file(filepath: Path, data: Dict[str, Any]) -> bool:
    """Write data to JSON file atomically"""
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        temp_file = filepath.with_suffix('.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, default=str)
        temp_file.replace(filepath)
        return True
    except (OSError, TypeError) as e:
        logger.error(f"Error writing {filepath}: {e}")
        return False


class JsonFileStore(DocumentStore):
    """DocumentStore backed by {base_dir}/{collection}.json files"""

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)
        self._lock = threading.Lock()

    def _path(self, collection: str) -> Path:
        return self.base_dir / f"{collection}.json"

    def _load(self, collection: str) -> Dict[str, Dict[str, Any]]:
        data = read_json_file(self._path(collection)) or {}
        return data.get("items", {})

    def _save(self, collection: str, items: Dict[str, Dict[str, Any]]) -> None:
        if not write_json_file(self._path(collection), {"items": items}):
            raise StorageError(f"Failed to write {collection} collection")

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return self._load(collection).get(doc_id)

    def insert(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = data.get("id") or generate_uuid()
        with self._lock:
            items = self._load(collection)
            items[doc_id] = {**data, "id": doc_id}
            self._save(collection, items)
        return doc_id

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            items = self._load(collection)
            if doc_id not in items:
                logger.warning(f"Update skipped, {collection}/{doc_id} does not exist")
                return
            items[doc_id].update(fields)
            self._save(collection, items)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            items = self._load(collection)
            if items.pop(doc_id, None) is not None:
                self._save(collection, items)

    def query(self, collection: str, **equals: Any) -> List[Dict[str, Any]]:
        return [
            item for item in self._load(collection).values()
            if all(item.get(field) == value for field, value in equals.items())
        ]
