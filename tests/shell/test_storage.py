"""Tests for key/value stores, configuration and the typed repository."""

import json
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from zodiac_cipher.core.models import AccountLedger, PendingPuzzle, Profile
from zodiac_cipher.shell.config import StorageConfig, build_store
from zodiac_cipher.shell.repository import (
    LIKES_KEY,
    PROFILES_KEY,
    SESSION_KEY,
    GameRepository,
    ledger_key,
)
from zodiac_cipher.shell.storage import FirestoreConfig, FirestoreStore, JsonFileStore, MemoryStore


@pytest.fixture
def mock_firestore():
    """Mock Firestore client for testing."""
    with patch("zodiac_cipher.shell.storage.firestore") as mock_fs:
        mock_client = MagicMock()
        mock_fs.Client.return_value = mock_client
        yield mock_fs, mock_client


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_put_get_delete(self):
        store = MemoryStore()
        store.put("k", "v")
        assert store.get("k") == "v"
        store.delete("k")
        assert store.get("k") is None

    def test_delete_missing_is_noop(self):
        MemoryStore().delete("missing")


class TestJsonFileStore:
    """Tests for JsonFileStore."""

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "data.json"
        JsonFileStore(path).put("k", '{"a": 1}')
        assert JsonFileStore(path).get("k") == '{"a": 1}'

    def test_missing_file_reads_empty(self, tmp_path):
        assert JsonFileStore(tmp_path / "none.json").get("k") is None

    def test_corrupt_file_reads_empty(self, tmp_path):
        """An unparseable file behaves like an empty store."""
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")
        store = JsonFileStore(path)

        assert store.get("k") is None
        store.put("k", "v")
        assert json.loads(path.read_text(encoding="utf-8")) == {"k": "v"}

    def test_delete(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")
        store.put("a", "1")
        store.put("b", "2")
        store.delete("a")
        assert store.get("a") is None
        assert store.get("b") == "2"

    def test_no_temp_files_left(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")
        store.put("a", "1")
        assert [p.name for p in tmp_path.iterdir()] == ["data.json"]


class TestFirestoreStore:
    """Tests for FirestoreStore against a mocked client."""

    def test_lazy_client_config(self, mock_firestore):
        """Client is created once, with project and database."""
        mock_fs, _ = mock_firestore
        store = FirestoreStore(FirestoreConfig(project_id="proj", database="db"))
        mock_fs.Client.assert_not_called()

        store.client
        store.client
        mock_fs.Client.assert_called_once_with(project="proj", database="db")

    def test_put_writes_value_field(self, mock_firestore):
        _, client = mock_firestore
        FirestoreStore().put("zodiacCipherLikes", "{}")

        client.collection.assert_called_with("zodiacCipher")
        client.collection.return_value.document.assert_called_with("zodiacCipherLikes")
        client.collection.return_value.document.return_value.set.assert_called_once_with({"value": "{}"})

    def test_key_with_slash_is_one_document(self, mock_firestore):
        """Emails may contain "/", which must not split the document path."""
        _, client = mock_firestore
        FirestoreStore().put(ledger_key("a/b@x.com"), "{}")

        client.collection.return_value.document.assert_called_with("zodiacCipherUserData_a%2Fb@x.com")

    def test_get_existing(self, mock_firestore):
        _, client = mock_firestore
        doc = client.collection.return_value.document.return_value.get.return_value
        doc.exists = True
        doc.to_dict.return_value = {"value": '{"points": 3}'}

        assert FirestoreStore().get("k") == '{"points": 3}'

    def test_get_missing(self, mock_firestore):
        _, client = mock_firestore
        client.collection.return_value.document.return_value.get.return_value.exists = False
        assert FirestoreStore().get("k") is None

    def test_delete(self, mock_firestore):
        _, client = mock_firestore
        FirestoreStore().delete("k")
        client.collection.return_value.document.return_value.delete.assert_called_once()


class TestStorageConfig:
    """Tests for StorageConfig and build_store."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ZODIAC_STORAGE", "MEMORY")
        monkeypatch.setenv("ZODIAC_DATA_PATH", "/tmp/x.json")
        monkeypatch.setenv("FIRESTORE_DATABASE", "zodiac")
        config = StorageConfig.from_env()

        assert config.backend == "memory"
        assert config.path == "/tmp/x.json"
        assert config.database == "zodiac"

    def test_defaults(self, monkeypatch):
        for name in ("ZODIAC_STORAGE", "ZODIAC_DATA_PATH", "GOOGLE_CLOUD_PROJECT", "FIRESTORE_DATABASE"):
            monkeypatch.delenv(name, raising=False)
        config = StorageConfig.from_env()
        assert config.backend == "json"
        assert config.project_id is None

    def test_build_each_backend(self, tmp_path):
        assert isinstance(build_store(StorageConfig(backend="memory")), MemoryStore)
        assert isinstance(build_store(StorageConfig(backend="json", path=str(tmp_path / "d.json"))), JsonFileStore)
        assert isinstance(build_store(StorageConfig(backend="firestore")), FirestoreStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_store(StorageConfig(backend="redis"))


class TestGameRepository:
    """Tests for GameRepository encoding and degraded reads."""

    def test_missing_records_use_defaults(self):
        repo = GameRepository(MemoryStore())
        assert repo.get_profiles() == []
        assert repo.get_likes() == {}
        assert repo.get_ledger("a@b.com") == AccountLedger()
        assert repo.get_session_profile() is None
        assert repo.get_pending_puzzle("a@b.com") is None

    def test_round_trip(self):
        repo = GameRepository(MemoryStore())
        profile = Profile(email="a@b.com", password="h", username="a", birthday=date(1990, 1, 1))
        ledger = AccountLedger(points=6, streak=1, last_deed_date=date(2026, 1, 1))
        puzzle = PendingPuzzle(sentence="s s s", encoded="t t t", shift=1, issued_on=date(2026, 1, 1))

        repo.save_profiles([profile])
        repo.set_session_profile(profile)
        repo.save_ledger("a@b.com", ledger)
        repo.save_likes({"e": ["a@b.com"]})
        repo.save_pending_puzzle("a@b.com", puzzle)

        assert repo.get_profiles() == [profile]
        assert repo.get_session_profile() == profile
        assert repo.get_ledger("a@b.com") == ledger
        assert repo.get_likes() == {"e": ["a@b.com"]}
        assert repo.get_pending_puzzle("a@b.com") == puzzle

    @pytest.mark.parametrize("key, read", [
        (ledger_key("a@b.com"), lambda r: r.get_ledger("a@b.com") == AccountLedger()),
        (PROFILES_KEY, lambda r: r.get_profiles() == []),
        (LIKES_KEY, lambda r: r.get_likes() == {}),
        (SESSION_KEY, lambda r: r.get_session_profile() is None),
    ])
    def test_corrupt_record_degrades(self, key, read):
        """Unparseable JSON never raises on read."""
        store = MemoryStore({key: "{oops"})
        assert read(GameRepository(store))

    def test_wrong_shape_degrades(self):
        """Valid JSON with the wrong shape also falls back."""
        store = MemoryStore({ledger_key("a@b.com"): '{"points": -4}', LIKES_KEY: '["x"]'})
        repo = GameRepository(store)
        assert repo.get_ledger("a@b.com") == AccountLedger()
        assert repo.get_likes() == {}
