"""Key/Value Stores - The flat persistence substrate.

Every record is one JSON string under one key. Three backends share the
same get/put/delete surface: in-memory, a local JSON file, and Firestore.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

from google.cloud import firestore


logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal repository interface over string keys and values."""

    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store, used for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore:
    """All keys in a single JSON object on disk.

    Writes go to a temp file in the same directory and are moved into place
    with os.replace, so a crash never leaves a half-written file.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize file store.

        Args:
            path: JSON file location (created on first write)
        """
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Unreadable store file %s, treating as empty: %s", self.path, str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("Store file %s is not a JSON object, treating as empty", self.path)
            return {}
        return data

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def put(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


@dataclass
class FirestoreConfig:
    """Configuration for the Firestore store.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        collection: Collection holding one document per key
    """

    project_id: str | None = None
    database: str | None = None
    collection: str = "zodiacCipher"


class FirestoreStore:
    """One Firestore document per key; the JSON string lives in "value".

    Document structure:
        {collection}/{percent-encoded key}: { value: "<json>" }
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _doc_ref(self, key: str) -> firestore.DocumentReference:
        # Keys embed emails; a "/" would otherwise split the document path.
        return self.client.collection(self.config.collection).document(quote(key, safe="@"))

    def get(self, key: str) -> str | None:
        doc = self._doc_ref(key).get()
        if not doc.exists:
            return None
        value = (doc.to_dict() or {}).get("value")
        return value if isinstance(value, str) else None

    def put(self, key: str, value: str) -> None:
        self._doc_ref(key).set({"value": value})

    def delete(self, key: str) -> None:
        self._doc_ref(key).delete()
