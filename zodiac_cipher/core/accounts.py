"""Account Rules - Pure functions over the profile list.

Credential checks, username de-duplication and profile merges. Nothing here
reads or writes storage; the shell's AccountStore does that.
"""

import hashlib
import hmac
import secrets
from datetime import date
from typing import Any, Iterable

from pydantic import ValidationError

from .errors import InvalidCredential, InvalidInput, UsernameTaken
from .models import Profile, Theme


MIN_PASSWORD_LENGTH = 4
MIN_NEW_PASSWORD_LENGTH = 8

HASH_ALGORITHM = "pbkdf2_sha256"
HASH_ITERATIONS = 240_000
# Stored hashes above this are treated as corrupt rather than computed.
MAX_HASH_ITERATIONS = 2_000_000

DEFAULT_USERNAME = "user"
UPDATABLE_FIELDS = frozenset({"username", "theme", "birthday"})


def hash_password(password: str, salt: str | None = None, iterations: int | None = None) -> str:
    """Hash a password with a random salt.

    Args:
        password: Plaintext password
        salt: Hex salt (generated when omitted)
        iterations: PBKDF2 iteration count (HASH_ITERATIONS when omitted)

    Returns:
        String in format: pbkdf2_sha256$<iterations>$<salt>$<hex digest>
    """
    if iterations is None:
        iterations = HASH_ITERATIONS
    if salt is None:
        salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations)
    return f"{HASH_ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Check a plaintext password against a stored hash."""
    try:
        algorithm, iterations, salt, _ = stored.split("$")
    except ValueError:
        return False
    if algorithm != HASH_ALGORITHM or not iterations.isdigit():
        return False
    if not 1 <= int(iterations) <= MAX_HASH_ITERATIONS:
        return False
    candidate = hash_password(password or "", salt, int(iterations))
    return hmac.compare_digest(candidate, stored)


def local_part(email: str) -> str:
    """Part of an email before the "@"."""
    return email.split("@")[0]


def normalize_username(username: str) -> str:
    return username.lower()


def username_index(profiles: Iterable[Profile]) -> dict[str, Profile]:
    """Map lower-cased username to profile."""
    return {normalize_username(p.username): p for p in profiles}


def find_by_email(profiles: Iterable[Profile], email: str) -> Profile | None:
    return next((p for p in profiles if p.email == email), None)


def find_by_username(profiles: Iterable[Profile], username: str) -> Profile | None:
    if not isinstance(username, str) or not username:
        return None
    return username_index(profiles).get(normalize_username(username))


def find_by_identifier(profiles: list[Profile], identifier: str) -> Profile | None:
    """Look up by email when the identifier contains "@", else by username."""
    if "@" in identifier:
        return find_by_email(profiles, identifier)
    return find_by_username(profiles, identifier)


def unique_username(base: str, profiles: Iterable[Profile]) -> str:
    """Smallest free username of the form base, base1, base2, ...

    Args:
        base: Preferred username
        profiles: Existing profiles

    Returns:
        A username no existing profile holds case-insensitively
    """
    taken = set(username_index(profiles))
    candidate = base
    counter = 1
    while normalize_username(candidate) in taken:
        candidate = f"{base}{counter}"
        counter += 1
    return candidate


def parse_birthday(birthday: date | str | None) -> date:
    if not birthday:
        raise InvalidInput("Please select a complete birthday.")
    if isinstance(birthday, date):
        return birthday
    try:
        return date.fromisoformat(birthday)
    except ValueError:
        raise InvalidInput(f"Birthday must be an ISO date (YYYY-MM-DD), got {birthday!r}.") from None


def new_profile(
    email: str,
    password: str,
    birthday: date | str | None,
    profiles: list[Profile],
) -> Profile:
    """Validate registration input and build the new profile.

    Duplicate email checks are the caller's job; this only needs the
    existing profiles to pick a free username.

    Raises:
        InvalidInput: Bad email, short password or missing birthday
    """
    if not email or "@" not in email:
        raise InvalidInput("Please enter a valid email address.")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    born = parse_birthday(birthday)

    try:
        return Profile(
            email=email,
            password=hash_password(password),
            username=unique_username(local_part(email) or DEFAULT_USERNAME, profiles),
            birthday=born,
            theme=Theme.DARK,
        )
    except ValidationError as e:
        raise InvalidInput(f"Invalid registration: {e.errors()[0]['msg']}") from None


def check_credentials(profile: Profile, password: str) -> None:
    if not verify_password(password, profile.password):
        raise InvalidCredential("Incorrect password.")


def merge_profile(profile: Profile, fields: dict[str, Any], profiles: list[Profile]) -> Profile:
    """Apply a partial update to a profile.

    Args:
        profile: Current profile
        fields: Subset of username, theme, birthday
        profiles: All profiles, for the username check

    Returns:
        The merged profile

    Raises:
        InvalidInput: Unknown fields or invalid values
        UsernameTaken: Another account holds the requested username
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise InvalidInput(f"Cannot update field(s): {', '.join(sorted(unknown))}.")

    if "username" in fields:
        holder = find_by_username(profiles, fields["username"])
        if holder is not None and holder.email != profile.email:
            raise UsernameTaken("This username is already taken. Please choose another.")

    try:
        return Profile.model_validate({**profile.model_dump(), **fields})
    except ValidationError as e:
        raise InvalidInput(f"Invalid profile update: {e.errors()[0]['msg']}") from None


def check_new_password(new: str, confirm: str) -> None:
    """Shape checks done before the account is even looked up."""
    if not new or len(new) < MIN_NEW_PASSWORD_LENGTH:
        raise InvalidInput(f"New password must be at least {MIN_NEW_PASSWORD_LENGTH} characters long.")
    if new != confirm:
        raise InvalidInput("New passwords do not match.")


def change_password(profile: Profile, current: str, new: str) -> Profile:
    """Replace the stored hash after verifying the current password."""
    if not verify_password(current, profile.password):
        raise InvalidCredential("Current password is incorrect.")
    if new == current:
        raise InvalidInput("New password must be different from current password.")
    return profile.model_copy(update={"password": hash_password(new)})


def upsert_profile(profiles: list[Profile], profile: Profile) -> list[Profile]:
    """Replace the profile with the same email, or append it."""
    updated = [profile if p.email == profile.email else p for p in profiles]
    if find_by_email(profiles, profile.email) is None:
        updated.append(profile)
    return updated


def remove_profile(profiles: list[Profile], email: str) -> list[Profile]:
    return [p for p in profiles if p.email != email]
