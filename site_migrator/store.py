"""
On-disk stores for raw and clean documents.

Documents are kept one file per ``source_id``. Each store also keeps a
JSON index next to the documents (``manifest.json`` for raw pages,
``classifications.json`` for clean ones) so a later stage, or a later run,
can pick up where the previous one stopped.
"""

import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import ClassificationVerdict, CleanDocument, RawDocument
from .utils.paths import ensure_dir


MANIFEST_FILE = "manifest.json"
CLASSIFICATIONS_FILE = "classifications.json"
ERRORS_FILE = "errors.json"


def read_json(path: str, default: Any = None) -> Any:
    """Read a JSON file, returning ``default`` when it does not exist."""
    if not os.path.exists(path):
        return default
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(path: str, data: Any) -> None:
    """Write ``data`` as indented UTF-8 JSON, creating parent directories."""
    parent = os.path.dirname(path)
    if parent:
        ensure_dir(parent)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def write_error_log(directory: str, errors: List[Dict]) -> Optional[str]:
    """
    Write ``errors.json`` into a stage directory if there are errors.

    Args:
        directory: Stage output directory
        errors: Error dicts collected by the stage

    Returns:
        Path of the written file, or None when nothing was written
    """
    if not errors:
        return None
    path = os.path.join(directory, ERRORS_FILE)
    write_json(path, errors)
    return path


class RawStore:
    """Raw-content store: rendered page markup keyed by source id."""

    def __init__(self, directory: str):
        self.directory = directory
        self._manifest: Optional[Dict[str, Dict[str, str]]] = None

    @property
    def manifest_path(self) -> str:
        return os.path.join(self.directory, MANIFEST_FILE)

    def _load_manifest(self) -> Dict[str, Dict[str, str]]:
        if self._manifest is None:
            self._manifest = read_json(self.manifest_path, {}) or {}
        return self._manifest

    def path_for(self, source_id: str) -> str:
        return os.path.join(self.directory, source_id)

    def exists(self, source_id: str) -> bool:
        return os.path.exists(self.path_for(source_id))

    def save(self, document: RawDocument) -> str:
        """
        Persist a raw document and record it in the manifest.

        Args:
            document: Document to store

        Returns:
            Path of the written file
        """
        ensure_dir(self.directory)
        path = self.path_for(document.source_id)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(document.html)

        manifest = self._load_manifest()
        manifest[document.source_id] = {
            'url': document.url or '',
            'fetched_at': document.fetched_at,
        }
        write_json(self.manifest_path, manifest)
        return path

    def load(self, source_id: str) -> RawDocument:
        with open(self.path_for(source_id), 'r', encoding='utf-8', errors='replace') as f:
            html = f.read()

        entry = self._load_manifest().get(source_id, {})
        fetched_at = entry.get('fetched_at')
        if not fetched_at:
            mtime = os.path.getmtime(self.path_for(source_id))
            fetched_at = datetime.fromtimestamp(mtime).isoformat()

        return RawDocument(
            source_id=source_id,
            html=html,
            fetched_at=fetched_at,
            url=entry.get('url') or None,
        )

    def source_ids(self) -> List[str]:
        """List stored source ids in sorted order."""
        if not os.path.isdir(self.directory):
            return []
        return sorted(
            name for name in os.listdir(self.directory)
            if name.endswith('.html') and os.path.isfile(self.path_for(name))
        )

    def load_all(self) -> List[RawDocument]:
        return [self.load(source_id) for source_id in self.source_ids()]


class CleanStore:
    """Clean-content store: sanitized markup plus a verdict index."""

    def __init__(self, directory: str):
        self.directory = directory
        self._index: Optional[Dict[str, Dict[str, Any]]] = None

    @property
    def index_path(self) -> str:
        return os.path.join(self.directory, CLASSIFICATIONS_FILE)

    def _load_index(self) -> Dict[str, Dict[str, Any]]:
        if self._index is None:
            self._index = read_json(self.index_path, {}) or {}
        return self._index

    def path_for(self, source_id: str) -> str:
        return os.path.join(self.directory, source_id)

    def save(self, document: CleanDocument) -> str:
        ensure_dir(self.directory)
        path = self.path_for(document.source_id)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(document.html)

        index = self._load_index()
        index[document.source_id] = document.verdict.to_dict()
        write_json(self.index_path, index)
        return path

    def load(self, source_id: str) -> CleanDocument:
        entry = self._load_index().get(source_id)
        if entry is None:
            raise KeyError(f"No classification recorded for {source_id}")

        with open(self.path_for(source_id), 'r', encoding='utf-8') as f:
            html = f.read()

        return CleanDocument(
            source_id=source_id,
            html=html,
            verdict=ClassificationVerdict.from_dict(entry),
        )

    def source_ids(self) -> List[str]:
        return sorted(
            source_id for source_id in self._load_index()
            if os.path.exists(self.path_for(source_id))
        )

    def load_all(self) -> List[CleanDocument]:
        return [self.load(source_id) for source_id in self.source_ids()]
