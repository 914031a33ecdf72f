"""Core Data Models - Pydantic models for type safety.

All models are value objects; the core never mutates one in place; every
operation returns a new instance built with model_copy.
"""

from datetime import date as DateType
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


MAX_PAST_DEEDS = 100


class Theme(str, Enum):
    """Display theme stored on a profile."""

    DARK = "dark"
    LIGHT = "light"


class Profile(BaseModel):
    """A registered account, keyed by email."""

    email: str = Field(description="Globally unique account key")
    password: str = Field(description="Salted password hash - never plaintext")
    username: str = Field(min_length=1, description="Unique, compared case-insensitively")
    birthday: DateType
    theme: Theme = Theme.DARK


class Session(BaseModel):
    """The active account, passed explicitly to game operations."""

    email: str


class Deed(BaseModel):
    """One calendar day's solved puzzle and optional photo."""

    date: DateType
    text: str
    solve_points: int = Field(default=0, ge=0)
    upload_points: int = Field(default=0, ge=0, description="Retracted to 0 when the photo is removed")
    total_points: int = Field(default=0, ge=0, description="solve_points + upload_points")
    streak_at_completion: int = Field(default=0, ge=0)
    image: Optional[str] = Field(default=None, description="Opaque image reference")


class AccountLedger(BaseModel):
    """Points, streak and deed history for one account."""

    points: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    last_deed_date: Optional[DateType] = None
    past_deeds: list[Deed] = Field(
        default_factory=list,
        description=f"Most recent first, at most {MAX_PAST_DEEDS}",
    )


# entry_id -> emails of accounts that liked it
LikeBook = dict[str, list[str]]


class LeaderboardEntry(BaseModel):
    """A ranked leaderboard row. Derived, never stored."""

    rank: int = Field(ge=1)
    display_name: str
    email: str
    points: int
    streak: int


class FeedEntry(BaseModel):
    """A photo-backed deed visible in the community feed."""

    entry_id: str
    email: str
    display_name: str
    text: str
    date: DateType
    image: str
    solve_points: int = 0
    upload_points: int = 0
    total_points: int = 0
    streak: int = 0


class EncodedPuzzle(BaseModel):
    """A Caesar-shifted sentence and the shift used to produce it."""

    encoded: str
    shift: int = Field(ge=1, le=25)


class PendingPuzzle(BaseModel):
    """The puzzle an account is currently solving."""

    sentence: str
    encoded: str
    shift: int = Field(ge=1, le=25)
    issued_on: DateType


class SolveResult(BaseModel):
    """Outcome of submitting an answer to the pending puzzle."""

    correct: bool
    ledger: AccountLedger
