"""Zodiac signs from birthdays, used to theme generated puzzle sentences."""

from datetime import date

from .errors import ValidationFailure


# (sign, month, day) of each sign's first day, in calendar order
_SIGN_STARTS = [
    ("Capricorn", 1, 1),
    ("Aquarius", 1, 20),
    ("Pisces", 2, 19),
    ("Aries", 3, 21),
    ("Taurus", 4, 20),
    ("Gemini", 5, 21),
    ("Cancer", 6, 21),
    ("Leo", 7, 23),
    ("Virgo", 8, 23),
    ("Libra", 9, 23),
    ("Scorpio", 10, 23),
    ("Sagittarius", 11, 22),
    ("Capricorn", 12, 22),
]


def zodiac_sign(birthday: date | str | None) -> str:
    """Resolve the tropical zodiac sign for a birthday.

    Args:
        birthday: A date or an ISO date string

    Returns:
        Sign name, e.g. "Leo"

    Raises:
        ValidationFailure: If the birthday is missing or not a valid date
    """
    if not birthday:
        raise ValidationFailure("A birthday is required to resolve a zodiac sign.")
    if isinstance(birthday, str):
        try:
            birthday = date.fromisoformat(birthday)
        except ValueError:
            raise ValidationFailure(f"Unrecognised birthday: {birthday!r}") from None

    sign = _SIGN_STARTS[0][0]
    for name, month, day in _SIGN_STARTS:
        if (birthday.month, birthday.day) >= (month, day):
            sign = name
    return sign
