"""Configuration - Storage backend selection from the environment."""

import logging
import os
from dataclasses import dataclass

from .storage import FirestoreConfig, FirestoreStore, JsonFileStore, KeyValueStore, MemoryStore


logger = logging.getLogger(__name__)

BACKENDS = ("memory", "json", "firestore")


@dataclass
class StorageConfig:
    """Configuration for the persistence substrate.

    Attributes:
        backend: One of memory, json, firestore
        path: JSON file location for the json backend
        project_id: GCP project ID for the firestore backend
        database: Firestore database name
        collection: Firestore collection holding the records
    """

    backend: str = "json"
    path: str = "zodiac_cipher_data.json"
    project_id: str | None = None
    database: str | None = None
    collection: str = "zodiacCipher"

    @classmethod
    def from_env(cls) -> "StorageConfig":
        """Read ZODIAC_STORAGE, ZODIAC_DATA_PATH, GOOGLE_CLOUD_PROJECT,
        FIRESTORE_DATABASE and ZODIAC_COLLECTION."""
        return cls(
            backend=os.environ.get("ZODIAC_STORAGE", cls.backend).lower(),
            path=os.environ.get("ZODIAC_DATA_PATH", cls.path),
            project_id=os.environ.get("GOOGLE_CLOUD_PROJECT"),
            database=os.environ.get("FIRESTORE_DATABASE"),
            collection=os.environ.get("ZODIAC_COLLECTION", cls.collection),
        )


def build_store(config: StorageConfig) -> KeyValueStore:
    """Create the store selected by config.

    Raises:
        ValueError: If the backend name is unknown
    """
    logger.info("Using %s storage backend", config.backend)
    if config.backend == "memory":
        return MemoryStore()
    if config.backend == "json":
        return JsonFileStore(config.path)
    if config.backend == "firestore":
        return FirestoreStore(FirestoreConfig(
            project_id=config.project_id,
            database=config.database,
            collection=config.collection,
        ))
    raise ValueError(f"Unknown storage backend {config.backend!r}; expected one of {', '.join(BACKENDS)}")
