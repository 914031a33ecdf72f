"""Like Registry - Pure functions over the global like book.

The book maps an entry id to the accounts that liked it. Each account
appears at most once per entry.
"""

from datetime import date

from .models import LikeBook


def entry_id_for(email: str, deed_date: date | str) -> str:
    """Deterministic feed entry id: <email>_<YYYY-MM-DD>."""
    if isinstance(deed_date, date):
        deed_date = deed_date.isoformat()
    return f"{email}_{deed_date}"


def toggle(book: LikeBook, entry_id: str, account_id: str) -> LikeBook:
    """Like the entry, or unlike it if the account already does.

    Args:
        book: Current like book (not modified)
        entry_id: Feed entry id
        account_id: Email of the liking account

    Returns:
        New like book
    """
    likers = list(dict.fromkeys(book.get(entry_id, [])))
    if account_id in likers:
        likers.remove(account_id)
    else:
        likers.append(account_id)
    return {**book, entry_id: likers}


def count(book: LikeBook, entry_id: str) -> int:
    return len(set(book.get(entry_id, [])))


def has_liked(book: LikeBook, entry_id: str, account_id: str) -> bool:
    return account_id in book.get(entry_id, [])
