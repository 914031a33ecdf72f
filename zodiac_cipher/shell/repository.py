"""Game Repository - Typed records on top of a key/value store.

Key layout:
    zodiacCipherProfile              -> active session profile
    zodiacCipherProfiles             -> [Profile, ...]
    zodiacCipherUserData_{email}     -> AccountLedger
    zodiacCipherLikes                -> { entry_id: [email, ...] }
    zodiacCipherPuzzle_{email}       -> PendingPuzzle

Corrupt or unparseable records never raise on read: they degrade to the
empty default for their type and a warning is logged.
"""

import logging
from typing import Any, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..core.models import AccountLedger, LikeBook, PendingPuzzle, Profile
from .storage import KeyValueStore


logger = logging.getLogger(__name__)

SESSION_KEY = "zodiacCipherProfile"
PROFILES_KEY = "zodiacCipherProfiles"
LEDGER_KEY_PREFIX = "zodiacCipherUserData_"
LIKES_KEY = "zodiacCipherLikes"
PUZZLE_KEY_PREFIX = "zodiacCipherPuzzle_"

T = TypeVar("T")

_profiles_adapter = TypeAdapter(list[Profile])
_likes_adapter = TypeAdapter(LikeBook)
_session_adapter = TypeAdapter(Optional[Profile])
_ledger_adapter = TypeAdapter(AccountLedger)
_puzzle_adapter = TypeAdapter(Optional[PendingPuzzle])


def ledger_key(email: str) -> str:
    return f"{LEDGER_KEY_PREFIX}{email}"


def puzzle_key(email: str) -> str:
    return f"{PUZZLE_KEY_PREFIX}{email}"


class GameRepository:
    """Reads and writes every persisted record of the game."""

    def __init__(self, store: KeyValueStore) -> None:
        """Initialize repository.

        Args:
            store: Backing key/value store
        """
        self.store = store

    def _read(self, key: str, adapter: TypeAdapter[T], default: T) -> T:
        raw = self.store.get(key)
        if raw is None:
            return default
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Corrupt record under %s, using default: %d error(s)", key, e.error_count())
            return default

    def _write(self, key: str, adapter: TypeAdapter[Any], value: Any) -> None:
        self.store.put(key, adapter.dump_json(value).decode())

    # ==================== Session ====================

    def get_session_profile(self) -> Profile | None:
        return self._read(SESSION_KEY, _session_adapter, None)

    def set_session_profile(self, profile: Profile) -> None:
        logger.debug("Session set to %s", profile.email[:8])
        self._write(SESSION_KEY, _session_adapter, profile)

    def clear_session(self) -> None:
        self.store.delete(SESSION_KEY)

    # ==================== Profiles ====================

    def get_profiles(self) -> list[Profile]:
        return self._read(PROFILES_KEY, _profiles_adapter, [])

    def save_profiles(self, profiles: list[Profile]) -> None:
        logger.debug("Saving %d profile(s)", len(profiles))
        self._write(PROFILES_KEY, _profiles_adapter, profiles)

    # ==================== Ledgers ====================

    def get_ledger(self, email: str) -> AccountLedger:
        return self._read(ledger_key(email), _ledger_adapter, AccountLedger())

    def save_ledger(self, email: str, ledger: AccountLedger) -> None:
        logger.debug("Saving ledger for %s: %d points", email[:8], ledger.points)
        self._write(ledger_key(email), _ledger_adapter, ledger)

    def delete_ledger(self, email: str) -> None:
        self.store.delete(ledger_key(email))

    # ==================== Likes ====================

    def get_likes(self) -> LikeBook:
        return self._read(LIKES_KEY, _likes_adapter, {})

    def save_likes(self, book: LikeBook) -> None:
        self._write(LIKES_KEY, _likes_adapter, book)

    # ==================== Pending puzzles ====================

    def get_pending_puzzle(self, email: str) -> PendingPuzzle | None:
        return self._read(puzzle_key(email), _puzzle_adapter, None)

    def save_pending_puzzle(self, email: str, puzzle: PendingPuzzle) -> None:
        self._write(puzzle_key(email), _puzzle_adapter, puzzle)

    def clear_pending_puzzle(self, email: str) -> None:
        self.store.delete(puzzle_key(email))
