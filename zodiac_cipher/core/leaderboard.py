"""Leaderboard - Pure fold over every account's ledger.

Ranks are assigned once, over the full de-duplicated ordering. Filtering
afterwards keeps those ranks.
"""

from typing import Callable, Iterable

from .accounts import local_part
from .models import AccountLedger, LeaderboardEntry, Profile


LedgerLookup = Callable[[Profile], AccountLedger]


def display_name(profile: Profile) -> str:
    """Username, falling back to the email local-part."""
    return profile.username or local_part(profile.email)


def build_leaderboard(profiles: Iterable[Profile], ledger_of: LedgerLookup) -> list[LeaderboardEntry]:
    """Build the ranked leaderboard.

    Accounts without points are left out. Display names that collide
    case-insensitively keep only the higher-scoring account; on a tie the
    first one seen wins.

    Args:
        profiles: All registered profiles
        ledger_of: Returns the ledger for a profile

    Returns:
        Entries sorted by points descending, ranked from 1
    """
    best: dict[str, tuple[str, str, AccountLedger]] = {}
    for profile in profiles:
        ledger = ledger_of(profile)
        if ledger.points <= 0:
            continue
        name = display_name(profile)
        key = name.lower()
        if key not in best or ledger.points > best[key][2].points:
            best[key] = (name, profile.email, ledger)

    ordered = sorted(best.values(), key=lambda item: item[2].points, reverse=True)

    return [
        LeaderboardEntry(
            rank=position,
            display_name=name,
            email=email,
            points=ledger.points,
            streak=ledger.streak,
        )
        for position, (name, email, ledger) in enumerate(ordered, start=1)
    ]


def search_leaderboard(entries: list[LeaderboardEntry], query: str | None) -> list[LeaderboardEntry]:
    """Filter by case-insensitive name substring; ranks are not renumbered."""
    if not query or not query.strip():
        return list(entries)
    needle = query.strip().lower()
    return [e for e in entries if needle in e.display_name.lower()]
