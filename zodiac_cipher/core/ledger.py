"""Deed Ledger - Pure functions for the daily streak and points rules.

All functions are pure: same input always produces same output, no side
effects. "Today" defaults to date.today() and can be passed explicitly.
"""

from datetime import date, timedelta

from .errors import AlreadyCompleted, InvalidInput, NotFound
from .models import MAX_PAST_DEEDS, AccountLedger, Deed


BASE_POINTS = 5


def find_deed(ledger: AccountLedger, deed_date: date) -> Deed | None:
    """Return the deed recorded on deed_date, if any."""
    return next((d for d in ledger.past_deeds if d.date == deed_date), None)


def has_completed_today(ledger: AccountLedger, today: date | None = None) -> bool:
    """Check the once-per-day lock.

    Both the last deed date and an actual deed for today must be present.
    """
    if today is None:
        today = date.today()
    return ledger.last_deed_date == today and find_deed(ledger, today) is not None


def next_streak(last_deed_date: date | None, current_streak: int, today: date | None = None) -> int:
    """Streak after completing a deed today.

    Args:
        last_deed_date: Date of the previous deed (None if never)
        current_streak: Streak before today's deed
        today: Completion date

    Returns:
        current_streak + 1 if the previous deed was yesterday, else 1
    """
    if today is None:
        today = date.today()
    if last_deed_date is not None and last_deed_date == today - timedelta(days=1):
        return current_streak + 1
    return 1


def solve_points(streak: int) -> int:
    return BASE_POINTS + streak


def upload_points(streak: int) -> int:
    return BASE_POINTS + streak


def _replace_deed(ledger: AccountLedger, deed: Deed) -> list[Deed]:
    return [deed if d.date == deed.date else d for d in ledger.past_deeds]


def _require_deed(ledger: AccountLedger, deed_date: date) -> Deed:
    deed = find_deed(ledger, deed_date)
    if deed is None:
        raise NotFound(f"No deed recorded on {deed_date.isoformat()}.")
    return deed


def record_solve(ledger: AccountLedger, text: str, today: date | None = None) -> AccountLedger:
    """Record today's solved puzzle.

    Args:
        ledger: Current ledger (not modified)
        text: The decoded sentence
        today: Completion date

    Returns:
        New ledger with the deed prepended and points/streak updated

    Raises:
        AlreadyCompleted: If a deed is already recorded for today
    """
    if today is None:
        today = date.today()
    if has_completed_today(ledger, today):
        raise AlreadyCompleted("Today's deed is already completed. Come back tomorrow!")

    streak = next_streak(ledger.last_deed_date, ledger.streak, today)
    earned = solve_points(streak)

    deed = Deed(
        date=today,
        text=text,
        solve_points=earned,
        upload_points=0,
        total_points=earned,
        streak_at_completion=streak,
    )
    # A stale deed for today (lock not set) is replaced, never duplicated
    history = [d for d in ledger.past_deeds if d.date != today]

    return ledger.model_copy(update={
        "points": ledger.points + earned,
        "streak": streak,
        "last_deed_date": today,
        "past_deeds": [deed, *history][:MAX_PAST_DEEDS],
    })


def attach_photo(ledger: AccountLedger, deed_date: date, image: str) -> AccountLedger:
    """Attach a photo to a deed and award upload points.

    Points are awarded unconditionally; when replacing a photo the caller
    must call retract_photo first or the award is counted twice.

    Raises:
        NotFound: If no deed exists on deed_date
        InvalidInput: If the image reference is empty
    """
    if not image:
        raise InvalidInput("An image reference is required.")
    deed = _require_deed(ledger, deed_date)

    award = upload_points(deed.streak_at_completion)
    updated = deed.model_copy(update={
        "image": image,
        "upload_points": award,
        "total_points": deed.solve_points + award,
    })
    return ledger.model_copy(update={
        "points": ledger.points + award,
        "past_deeds": _replace_deed(ledger, updated),
    })


def retract_photo(ledger: AccountLedger, deed_date: date) -> AccountLedger:
    """Remove a deed's photo and take back its upload points.

    Ledger points are floored at 0. A deed without upload points leaves
    the ledger unchanged.

    Raises:
        NotFound: If no deed exists on deed_date
    """
    deed = _require_deed(ledger, deed_date)
    if deed.upload_points == 0:
        return ledger

    updated = deed.model_copy(update={
        "image": None,
        "upload_points": 0,
        "total_points": deed.solve_points,
    })
    return ledger.model_copy(update={
        "points": max(0, ledger.points - deed.upload_points),
        "past_deeds": _replace_deed(ledger, updated),
    })
