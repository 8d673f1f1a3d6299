"""
PrepForge - Document Store.

Minimal document-store interface plus two implementations:

- JsonDocumentStore: one JSON file per document, written atomically
- InMemoryDocumentStore: process-local, for tests and the CLI demo

Usage:
    store = JsonDocumentStore("data/store")

    store.set("sessions", session_id, document)
    docs = store.query("sessions", {"userId": user_id})
"""

import copy
import json
import logging
import os
import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from src.core.exceptions import DocumentExistsError, PersistenceError

logger = logging.getLogger(__name__)

Document = dict[str, Any]


def _matches(document: Document, filters: Mapping[str, Any] | None) -> bool:
    if not filters:
        return True
    return all(document.get(field) == value for field, value in filters.items())


class DocumentStore(ABC):
    """Collections of JSON-compatible documents addressed by key."""

    @abstractmethod
    def get(self, collection: str, key: str) -> Optional[Document]:
        ...

    @abstractmethod
    def query(self, collection: str, filters: Mapping[str, Any] | None = None) -> list[Document]:
        """Documents whose fields equal every filter value."""

    @abstractmethod
    def set(self, collection: str, key: str, document: Document) -> None:
        """Write a whole document, replacing any previous one."""

    @abstractmethod
    def create(self, collection: str, key: str, document: Document) -> None:
        """Write a document only if the key is free; raises DocumentExistsError."""

    @abstractmethod
    def delete(self, collection: str, key: str) -> bool:
        ...


# -----------------------------------------------------------------------------
# JSON Files
# -----------------------------------------------------------------------------

class JsonDocumentStore(DocumentStore):
    """
    Directory-of-JSON-files store.

    Each document is serialized to a temp file first and then moved into
    place, so readers never observe a partially written document.
    """

    def __init__(self, data_dir: str | Path = "data/store"):
        self._data_dir = Path(data_dir)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError("Cannot create data directory", str(e)) from e
        logger.info(f"Document store initialized at: {self._data_dir}")

    @staticmethod
    def _safe(name: str) -> str:
        # Sanitize to prevent path traversal
        safe = "".join(c for c in name if c.isalnum() or c in "-_")
        if not safe:
            raise PersistenceError("Invalid document key", repr(name))
        return safe

    def _collection_dir(self, collection: str) -> Path:
        path = self._data_dir / self._safe(collection)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _document_path(self, collection: str, key: str) -> Path:
        return self._collection_dir(collection) / f"{self._safe(key)}.json"

    def _write_temp(self, path: Path, document: Document) -> Path:
        temp_path = path.with_name(f".{path.stem}.{uuid.uuid4().hex}.tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, default=str)
            f.flush()
            os.fsync(f.fileno())
        return temp_path

    def _read(self, path: Path) -> Document:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read document {path.name}: {e}")
            raise PersistenceError(f"Cannot read document {path.stem}", str(e)) from e

    def get(self, collection: str, key: str) -> Optional[Document]:
        path = self._document_path(collection, key)
        if not path.exists():
            logger.debug(f"Document {collection}/{key} not found")
            return None
        return self._read(path)

    def query(self, collection: str, filters: Mapping[str, Any] | None = None) -> list[Document]:
        results = []
        for path in sorted(self._collection_dir(collection).glob("*.json")):
            try:
                document = self._read(path)
            except PersistenceError:
                # Removed between glob and read
                if path.exists():
                    raise
                continue
            if _matches(document, filters):
                results.append(document)
        return results

    def set(self, collection: str, key: str, document: Document) -> None:
        path = self._document_path(collection, key)
        temp_path = None
        try:
            temp_path = self._write_temp(path, document)
            temp_path.replace(path)
            logger.debug(f"Saved document {collection}/{key}")
        except OSError as e:
            logger.error(f"Failed to save document {collection}/{key}: {e}")
            raise PersistenceError(f"Cannot write document {collection}/{key}", str(e)) from e
        finally:
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()

    def create(self, collection: str, key: str, document: Document) -> None:
        path = self._document_path(collection, key)
        temp_path = None
        try:
            temp_path = self._write_temp(path, document)
            # link() fails if the target exists, unlike replace()
            os.link(temp_path, path)
            logger.debug(f"Created document {collection}/{key}")
        except FileExistsError:
            raise DocumentExistsError(collection, key) from None
        except OSError as e:
            logger.error(f"Failed to create document {collection}/{key}: {e}")
            raise PersistenceError(f"Cannot write document {collection}/{key}", str(e)) from e
        finally:
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()

    def delete(self, collection: str, key: str) -> bool:
        path = self._document_path(collection, key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(f"Cannot delete document {collection}/{key}", str(e)) from e
        logger.debug(f"Deleted document {collection}/{key}")
        return True


# -----------------------------------------------------------------------------
# In Memory
# -----------------------------------------------------------------------------

class InMemoryDocumentStore(DocumentStore):
    """Thread-safe dict-backed store; documents are copied in and out."""

    def __init__(self):
        self._collections: dict[str, dict[str, Document]] = {}
        self._lock = threading.Lock()

    def get(self, collection: str, key: str) -> Optional[Document]:
        with self._lock:
            document = self._collections.get(collection, {}).get(key)
            return copy.deepcopy(document) if document is not None else None

    def query(self, collection: str, filters: Mapping[str, Any] | None = None) -> list[Document]:
        with self._lock:
            return [
                copy.deepcopy(document)
                for document in self._collections.get(collection, {}).values()
                if _matches(document, filters)
            ]

    def set(self, collection: str, key: str, document: Document) -> None:
        with self._lock:
            self._collections.setdefault(collection, {})[key] = copy.deepcopy(document)

    def create(self, collection: str, key: str, document: Document) -> None:
        with self._lock:
            documents = self._collections.setdefault(collection, {})
            if key in documents:
                raise DocumentExistsError(collection, key)
            documents[key] = copy.deepcopy(document)

    def delete(self, collection: str, key: str) -> bool:
        with self._lock:
            return self._collections.get(collection, {}).pop(key, None) is not None
