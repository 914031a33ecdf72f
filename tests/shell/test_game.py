"""Tests for GameService against an in-memory store with a fixed clock."""

import random
from datetime import date, timedelta

import pytest

from zodiac_cipher.core.cipher import decode, decode_hint
from zodiac_cipher.core.errors import AlreadyCompleted, InvalidInput, NotFound, ValidationFailure
from zodiac_cipher.core.ledger import find_deed
from zodiac_cipher.core.models import PendingPuzzle, Session
from zodiac_cipher.shell.auth import AccountStore
from zodiac_cipher.shell.game import GameService, StaticPuzzleGenerator
from zodiac_cipher.shell.repository import GameRepository
from zodiac_cipher.shell.storage import MemoryStore


SENTENCE = "Keep pushing your limits"


class Clock:
    def __init__(self, today: date) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


class FailingGenerator:
    def generate_deed_sentence(self, sign: str) -> str:
        raise TimeoutError("text service unavailable")


class RecordingGenerator:
    def __init__(self, sentence: str) -> None:
        self.sentence = sentence
        self.signs: list[str] = []

    def generate_deed_sentence(self, sign: str) -> str:
        self.signs.append(sign)
        return self.sentence


@pytest.fixture
def repo():
    return GameRepository(MemoryStore())


@pytest.fixture
def clock():
    return Clock(date(2026, 3, 15))


@pytest.fixture
def service(repo, clock):
    return GameService(
        repo,
        generator=StaticPuzzleGenerator([SENTENCE]),
        today=clock,
        rng=random.Random(3),
    )


@pytest.fixture
def amy(repo):
    AccountStore(repo).register("amy@x.com", "pass", "1990-08-01")
    return Session(email="amy@x.com")


@pytest.fixture
def bob(repo):
    AccountStore(repo).register("bob@x.com", "pass", "1991-02-01")
    return Session(email="bob@x.com")


def solve(service: GameService, session: Session):
    service.new_puzzle(session)
    return service.submit_answer(session, SENTENCE.upper() + "  ")


class TestPuzzles:
    """Tests for new_puzzle, hint and submit_answer."""

    def test_hint_decodes_puzzle(self, service, amy):
        """The hint rotation turns the encoded text back into the sentence."""
        puzzle = service.new_puzzle(amy)
        assert decode(puzzle.encoded, service.hint(amy)) == SENTENCE
        assert service.hint(amy) == decode_hint(puzzle.shift)

    def test_sign_from_birthday(self, repo, clock, amy):
        """Without an explicit sign the account's zodiac sign is used."""
        generator = RecordingGenerator(SENTENCE)
        GameService(repo, generator=generator, today=clock).new_puzzle(amy)
        assert generator.signs == ["Leo"]

    def test_explicit_sign(self, repo, clock, amy):
        generator = RecordingGenerator(SENTENCE)
        GameService(repo, generator=generator, today=clock).new_puzzle(amy, "Pisces")
        assert generator.signs == ["Pisces"]

    def test_wrong_answer_keeps_puzzle(self, service, repo, amy):
        service.new_puzzle(amy)
        result = service.submit_answer(amy, "keep pushing your luck")

        assert result.correct is False
        assert result.ledger.points == 0
        assert repo.get_pending_puzzle("amy@x.com") is not None

    def test_correct_answer_records_deed(self, service, repo, amy):
        result = solve(service, amy)

        assert result.correct is True
        assert result.ledger.points == 6
        assert result.ledger.streak == 1
        assert repo.get_ledger("amy@x.com") == result.ledger
        assert repo.get_pending_puzzle("amy@x.com") is None

    def test_once_per_day(self, service, repo, amy):
        """After solving, no new puzzle is issued the same day."""
        solve(service, amy)
        before = repo.get_ledger("amy@x.com")

        with pytest.raises(AlreadyCompleted):
            service.new_puzzle(amy)
        assert repo.get_ledger("amy@x.com") == before

    def test_stale_puzzle_after_solve(self, service, repo, amy, clock):
        """A leftover puzzle cannot record a second deed on the same day."""
        solve(service, amy)
        repo.save_pending_puzzle("amy@x.com", PendingPuzzle(
            sentence=SENTENCE, encoded="x x x", shift=1, issued_on=clock.today,
        ))

        with pytest.raises(AlreadyCompleted):
            service.submit_answer(amy, SENTENCE)

    def test_streak_over_days(self, service, amy, clock):
        solve(service, amy)
        clock.today += timedelta(days=1)
        result = solve(service, amy)
        assert result.ledger.streak == 2
        assert result.ledger.points == 6 + 7

    def test_no_pending_puzzle(self, service, amy):
        with pytest.raises(NotFound):
            service.submit_answer(amy, SENTENCE)
        with pytest.raises(NotFound):
            service.hint(amy)

    def test_generator_failure(self, repo, clock, amy):
        """Collaborator errors surface as ValidationFailure."""
        with pytest.raises(ValidationFailure):
            GameService(repo, generator=FailingGenerator(), today=clock).new_puzzle(amy)
        assert repo.get_pending_puzzle("amy@x.com") is None

    def test_unusable_sentence(self, repo, clock, amy):
        generator = RecordingGenerator("Hi")
        with pytest.raises(ValidationFailure):
            GameService(repo, generator=generator, today=clock).new_puzzle(amy)

    def test_unknown_session(self, service):
        with pytest.raises(NotFound):
            service.new_puzzle(Session(email="ghost@x.com"))


class TestPhotos:
    """Tests for photo attach, retract and replace."""

    def test_attach_retract_attach(self, service, amy, clock):
        """Upload points are counted once after a retract and re-attach."""
        solve(service, amy)
        service.attach_photo(amy, clock.today, "first")
        service.retract_photo(amy, clock.today)
        ledger = service.attach_photo(amy, clock.today, "second")

        assert ledger.points == 6 + 6
        assert find_deed(ledger, clock.today).upload_points == 6

    def test_replace_counts_once(self, service, amy, clock):
        solve(service, amy)
        service.attach_photo(amy, clock.today, "first")
        ledger = service.replace_photo(amy, clock.today, "second")

        assert ledger.points == 12
        assert find_deed(ledger, clock.today).image == "second"

    def test_failed_attach_writes_nothing(self, service, repo, amy, clock):
        solve(service, amy)
        before = repo.get_ledger("amy@x.com")
        with pytest.raises(NotFound):
            service.attach_photo(amy, clock.today - timedelta(days=9), "img")
        assert repo.get_ledger("amy@x.com") == before


class TestCommunity:
    """Tests for likes, leaderboard and feed through the service."""

    def test_toggle_like(self, service, amy, bob):
        entry = "amy@x.com_2026-03-15"
        service.toggle_like(bob, entry)
        assert service.like_count(entry) == 1
        assert service.has_liked(bob, entry) is True

        service.toggle_like(bob, entry)
        assert service.like_count(entry) == 0
        assert service.has_liked(bob, entry) is False

    def test_leaderboard_and_search(self, service, amy, bob, clock):
        solve(service, amy)
        service.attach_photo(amy, clock.today, "img")
        solve(service, bob)

        board = service.leaderboard()
        assert [(e.rank, e.display_name, e.points) for e in board] == [(1, "amy", 12), (2, "bob", 6)]
        assert [(e.rank, e.display_name) for e in service.leaderboard("BO")] == [(2, "bob")]

    def test_feed_orders(self, service, amy, bob, clock):
        solve(service, amy)
        service.attach_photo(amy, clock.today, "amy-img")
        clock.today += timedelta(days=1)
        solve(service, bob)
        service.attach_photo(bob, clock.today, "bob-img")
        service.toggle_like(bob, "amy@x.com_2026-03-15")

        assert [e.email for e in service.feed("recent")] == ["bob@x.com", "amy@x.com"]
        assert [e.email for e in service.feed("likes")] == ["amy@x.com", "bob@x.com"]

    def test_feed_unknown_order(self, service):
        with pytest.raises(InvalidInput):
            service.feed("random")

    def test_deleted_account_leaves_views(self, service, repo, amy, clock):
        """Deleting an account removes it from leaderboard and feed."""
        solve(service, amy)
        service.attach_photo(amy, clock.today, "img")
        AccountStore(repo).delete_account("amy@x.com")

        assert service.leaderboard() == []
        assert service.feed() == []
