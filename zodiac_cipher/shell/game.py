"""Game Service - Puzzles, daily deeds, photos, likes and the public views.

Every mutation reads the current record, applies a pure core function and
writes the result back once. Failures raise before the write.
"""

import logging
import random
from datetime import date
from typing import Callable, Protocol

from ..core import cipher, feed, leaderboard, ledger, likes
from ..core.errors import AlreadyCompleted, InvalidInput, NotFound, ValidationFailure
from ..core.models import (
    AccountLedger,
    EncodedPuzzle,
    FeedEntry,
    LeaderboardEntry,
    LikeBook,
    PendingPuzzle,
    Profile,
    Session,
    SolveResult,
)
from ..core.zodiac import zodiac_sign
from .repository import GameRepository


logger = logging.getLogger(__name__)

FEED_ORDERS = ("recent", "likes")


class PuzzleGenerator(Protocol):
    """Produces a deed sentence themed on a zodiac sign."""

    def generate_deed_sentence(self, sign: str) -> str: ...


class StaticPuzzleGenerator:
    """Picks from a fixed sentence list; the sign is ignored."""

    SENTENCES = [
        "The quick brown fox jumps over the lazy dog",
        "I love programming in JavaScript",
        "OpenAI creates amazing AI models",
        "Today is a beautiful day",
        "Learning is fun and rewarding",
        "Keep pushing your limits",
        "Practice makes perfect",
        "Never give up on your dreams",
    ]

    def __init__(self, sentences: list[str] | None = None, rng: random.Random | None = None) -> None:
        self.sentences = sentences or list(self.SENTENCES)
        self._rng = rng or random.Random()

    def generate_deed_sentence(self, sign: str) -> str:
        return self._rng.choice(self.sentences)


class GameService:
    """Game operations for an explicit session."""

    def __init__(
        self,
        repository: GameRepository,
        generator: PuzzleGenerator | None = None,
        today: Callable[[], date] = date.today,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize game service.

        Args:
            repository: Persistence for all game records
            generator: Sentence source (static list when omitted)
            today: Clock returning the current calendar date
            rng: Random source for cipher shifts
        """
        self._repo = repository
        self._generator = generator or StaticPuzzleGenerator(rng=rng)
        self._today = today
        self._rng = rng

    def _require_profile(self, session: Session) -> Profile:
        for profile in self._repo.get_profiles():
            if profile.email == session.email:
                return profile
        raise NotFound("No account for this session. Please sign in again.")

    def _ledger_of(self, profile: Profile) -> AccountLedger:
        return self._repo.get_ledger(profile.email)

    # ==================== Puzzles ====================

    def new_puzzle(self, session: Session, sign: str | None = None) -> EncodedPuzzle:
        """Issue today's puzzle for the session's account.

        Args:
            session: Active session
            sign: Zodiac sign for the sentence (derived from birthday if omitted)

        Returns:
            The encoded puzzle; the plain sentence stays server-side

        Raises:
            NotFound: Session account no longer exists
            AlreadyCompleted: Today's deed is done
            ValidationFailure: Generator failed or returned an unusable sentence
        """
        profile = self._require_profile(session)
        today = self._today()
        current = self._repo.get_ledger(profile.email)
        if ledger.has_completed_today(current, today):
            raise AlreadyCompleted("Today's deed is already completed. Come back tomorrow!")

        sign = sign or zodiac_sign(profile.birthday)
        try:
            raw = self._generator.generate_deed_sentence(sign)
        except Exception as e:
            logger.error("Puzzle generator failed for %s: %s", sign, str(e))
            raise ValidationFailure("Could not generate a puzzle sentence. Please try again.") from e

        sentence = cipher.validate_sentence(raw)
        puzzle = cipher.encode(sentence, rng=self._rng)
        self._repo.save_pending_puzzle(profile.email, PendingPuzzle(
            sentence=sentence,
            encoded=puzzle.encoded,
            shift=puzzle.shift,
            issued_on=today,
        ))
        logger.info("Issued puzzle to %s with shift %d", profile.email[:8], puzzle.shift)
        return puzzle

    def _require_puzzle(self, session: Session) -> PendingPuzzle:
        puzzle = self._repo.get_pending_puzzle(session.email)
        if puzzle is None:
            raise NotFound("No puzzle in progress. Start a new puzzle first.")
        return puzzle

    def hint(self, session: Session) -> int:
        """Rotation that decodes the pending puzzle."""
        return cipher.decode_hint(self._require_puzzle(session).shift)

    def submit_answer(self, session: Session, answer: str) -> SolveResult:
        """Check an answer and record the deed when it is right.

        A wrong answer is not an error; the puzzle stays open.

        Raises:
            NotFound: No pending puzzle or no account
            AlreadyCompleted: Today's deed is done
        """
        self._require_profile(session)
        puzzle = self._require_puzzle(session)
        current = self._repo.get_ledger(session.email)

        if not cipher.verify(answer, puzzle.sentence):
            logger.info("Incorrect answer from %s", session.email[:8])
            return SolveResult(correct=False, ledger=current)

        updated = ledger.record_solve(current, puzzle.sentence, self._today())
        self._repo.save_ledger(session.email, updated)
        self._repo.clear_pending_puzzle(session.email)
        logger.info(
            "Deed recorded for %s: streak %d, %d points",
            session.email[:8], updated.streak, updated.points,
        )
        return SolveResult(correct=True, ledger=updated)

    # ==================== Ledger & photos ====================

    def get_ledger(self, session: Session) -> AccountLedger:
        return self._repo.get_ledger(self._require_profile(session).email)

    def attach_photo(self, session: Session, deed_date: date, image: str) -> AccountLedger:
        """Attach a photo to a deed and award upload points."""
        self._require_profile(session)
        updated = ledger.attach_photo(self._repo.get_ledger(session.email), deed_date, image)
        self._repo.save_ledger(session.email, updated)
        logger.info("Photo attached for %s on %s", session.email[:8], deed_date)
        return updated

    def retract_photo(self, session: Session, deed_date: date) -> AccountLedger:
        """Remove a deed's photo and its upload points."""
        self._require_profile(session)
        updated = ledger.retract_photo(self._repo.get_ledger(session.email), deed_date)
        self._repo.save_ledger(session.email, updated)
        logger.info("Photo retracted for %s on %s", session.email[:8], deed_date)
        return updated

    def replace_photo(self, session: Session, deed_date: date, image: str) -> AccountLedger:
        """Swap a deed's photo, retracting the old award before the new one."""
        self._require_profile(session)
        current = self._repo.get_ledger(session.email)
        updated = ledger.attach_photo(ledger.retract_photo(current, deed_date), deed_date, image)
        self._repo.save_ledger(session.email, updated)
        logger.info("Photo replaced for %s on %s", session.email[:8], deed_date)
        return updated

    # ==================== Likes ====================

    def toggle_like(self, session: Session, entry_id: str) -> LikeBook:
        """Like or unlike a feed entry."""
        self._require_profile(session)
        book = likes.toggle(self._repo.get_likes(), entry_id, session.email)
        self._repo.save_likes(book)
        logger.info("Like toggled on %s by %s", entry_id, session.email[:8])
        return book

    def like_count(self, entry_id: str) -> int:
        return likes.count(self._repo.get_likes(), entry_id)

    def has_liked(self, session: Session, entry_id: str) -> bool:
        return likes.has_liked(self._repo.get_likes(), entry_id, session.email)

    # ==================== Public views ====================

    def leaderboard(self, query: str | None = None) -> list[LeaderboardEntry]:
        """Ranked leaderboard, optionally filtered by name."""
        entries = leaderboard.build_leaderboard(self._repo.get_profiles(), self._ledger_of)
        return leaderboard.search_leaderboard(entries, query)

    def feed(self, order: str = "recent") -> list[FeedEntry]:
        """Photo-backed deeds, newest first or most liked first.

        Raises:
            InvalidInput: Unknown order
        """
        entries = feed.list_public_entries(self._repo.get_profiles(), self._ledger_of)
        if order == "recent":
            return feed.sort_by_recent(entries)
        if order == "likes":
            return feed.sort_by_likes(entries, self._repo.get_likes())
        raise InvalidInput(f"Unknown feed order {order!r}; expected one of {', '.join(FEED_ORDERS)}")
