"""Community Feed - Pure fold collecting photo-backed deeds.

Ordering is left to the caller; sort helpers for the two feed views live
here too.
"""

from typing import Iterable

from .leaderboard import LedgerLookup, display_name
from .likes import count, entry_id_for
from .models import FeedEntry, LikeBook, Profile


def list_public_entries(profiles: Iterable[Profile], ledger_of: LedgerLookup) -> list[FeedEntry]:
    """Collect every deed that has a photo.

    Args:
        profiles: All registered profiles
        ledger_of: Returns the ledger for a profile

    Returns:
        Feed entries in profile order, each account's deeds most recent first
    """
    entries: list[FeedEntry] = []
    for profile in profiles:
        name = display_name(profile)
        for deed in ledger_of(profile).past_deeds:
            if not deed.image:
                continue
            entries.append(FeedEntry(
                entry_id=entry_id_for(profile.email, deed.date),
                email=profile.email,
                display_name=name,
                text=deed.text,
                date=deed.date,
                image=deed.image,
                solve_points=deed.solve_points,
                upload_points=deed.upload_points,
                total_points=deed.total_points,
                streak=deed.streak_at_completion,
            ))
    return entries


def sort_by_recent(entries: list[FeedEntry]) -> list[FeedEntry]:
    return sorted(entries, key=lambda e: e.date, reverse=True)


def sort_by_likes(entries: list[FeedEntry], book: LikeBook) -> list[FeedEntry]:
    """Most liked first; equal counts fall back to most recent."""
    return sorted(entries, key=lambda e: (count(book, e.entry_id), e.date), reverse=True)
