"""
JSON Document Store: Infrastructure adapter for a single JSON file.

Implements StudyStore by reading the whole document on every access and
writing it back wholesale. Writers in other processes are last-write-wins;
within one process every store opened on the same path shares one lock,
held by ``update_section`` around the read-modify-write, so concurrent
requests cannot drop each other's updates.
"""

import copy
import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rememberer.domain.constants import SECTION_META
from rememberer.domain.exceptions import StoreError
from rememberer.domain.ports import StudyStore

from .memory_store import default_document

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# One lock per document path, shared by every store instance in the process.
_path_locks: dict[Path, threading.RLock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = path.expanduser().resolve()
    with _path_locks_guard:
        if key not in _path_locks:
            _path_locks[key] = threading.RLock()
        return _path_locks[key]


class JsonDocumentStore(StudyStore):
    """
    Persists the study document as one JSON file.

    A missing file reads as an empty document. A corrupt file raises
    StoreError rather than being silently replaced.
    """

    def __init__(self, path: Path, clock: Callable[[], datetime] = _utcnow):
        """
        Args:
            path: Location of the JSON document. Parent directories are created on write.
            clock: Source of the ``meta.lastUpdated`` stamp.
        """
        self.path = Path(path)
        self._clock = clock
        self._lock = _lock_for(self.path)

    def get_section(self, name: str, default: Any = None) -> Any:
        doc = self._read()
        if name not in doc:
            return copy.deepcopy(default)
        return doc[name]

    def set_section(self, name: str, value: Any) -> None:
        with self._lock:
            doc = self._read()
            doc[name] = value
            self._write(doc)

    def update_section(self, name: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        with self._lock:
            doc = self._read()
            current = doc[name] if name in doc else copy.deepcopy(default)
            updated = fn(current)
            doc[name] = updated
            self._write(doc)
            return copy.deepcopy(updated)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            logger.debug(f"No study document at {self.path}; starting empty")
            return default_document()

        try:
            with self.path.open(encoding="utf-8") as f:
                doc = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"Study document {self.path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StoreError(f"Could not read study document {self.path}: {e}") from e

        if not isinstance(doc, dict):
            raise StoreError(f"Study document {self.path} must contain a JSON object")
        return doc

    def _write(self, doc: dict[str, Any]) -> None:
        meta = doc.get(SECTION_META)
        if not isinstance(meta, dict):
            if meta is not None:
                logger.warning(f"Replacing malformed meta section in {self.path}")
            meta = {"version": 1}
        meta["lastUpdated"] = self._clock().isoformat()
        doc[SECTION_META] = meta

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(doc, f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StoreError(f"Could not write study document {self.path}: {e}") from e
