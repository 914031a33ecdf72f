"""Authentication - Account registration, sign-in and profile changes.

Validation and merge rules live in core.accounts; this module loads the
profile list, applies a rule and writes the result back once. A failing
rule raises before anything is written.
"""

import logging
from datetime import date
from typing import Any

from ..core import accounts
from ..core.errors import DuplicateEmail, InvalidInput, NotFound
from ..core.models import Profile, Session
from .repository import GameRepository


logger = logging.getLogger(__name__)


class AccountStore:
    """Profile CRUD plus the single active session."""

    def __init__(self, repository: GameRepository) -> None:
        """Initialize account store.

        Args:
            repository: Persistence for profiles, ledgers and the session
        """
        self._repo = repository

    def _require_profile(self, profiles: list[Profile], email: str) -> Profile:
        profile = accounts.find_by_email(profiles, email)
        if profile is None:
            raise NotFound("Profile not found.")
        return profile

    def _persist(self, profiles: list[Profile], profile: Profile) -> None:
        """Save profile into the list and refresh the session if it is active."""
        self._repo.save_profiles(accounts.upsert_profile(profiles, profile))
        active = self._repo.get_session_profile()
        if active is not None and active.email == profile.email:
            self._repo.set_session_profile(profile)

    # ==================== Session ====================

    def current_profile(self) -> Profile | None:
        return self._repo.get_session_profile()

    def current_session(self) -> Session | None:
        """The active account, or None when signed out."""
        profile = self._repo.get_session_profile()
        if profile is None:
            return None
        return Session(email=profile.email)

    def get_profile(self, email: str) -> Profile | None:
        return accounts.find_by_email(self._repo.get_profiles(), email)

    # ==================== Registration & sign-in ====================

    def register(self, email: str, password: str, birthday: date | str | None) -> Profile:
        """Register a new account and make it the active session.

        Args:
            email: Account email, must contain "@"
            password: At least 4 characters
            birthday: Date or ISO date string

        Returns:
            The new profile

        Raises:
            InvalidInput: Bad email, short password or missing birthday
            DuplicateEmail: An account with this email exists
        """
        profiles = self._repo.get_profiles()
        profile = accounts.new_profile(email, password, birthday, profiles)
        if accounts.find_by_email(profiles, email) is not None:
            logger.warning("Registration rejected, email exists: %s", email[:8])
            raise DuplicateEmail("An account with this email already exists. Please sign in.")

        logger.info("Registering new user: %s as %s", email[:8], profile.username)
        self._repo.save_profiles(accounts.upsert_profile(profiles, profile))
        self._repo.set_session_profile(profile)
        return profile

    def sign_in(self, identifier: str, password: str) -> Profile:
        """Sign in by email or username.

        Raises:
            InvalidInput: Empty identifier
            NotFound: No matching account
            InvalidCredential: Wrong password
        """
        if not identifier:
            raise InvalidInput("Please enter your email or username.")

        profile = accounts.find_by_identifier(self._repo.get_profiles(), identifier)
        if profile is None:
            raise NotFound("No account found with this email or username. Please register.")
        accounts.check_credentials(profile, password)

        logger.info("Signed in: %s", profile.email[:8])
        self._repo.set_session_profile(profile)
        return profile

    def sign_out(self) -> None:
        """Clear the active session; profiles and ledgers are untouched."""
        self._repo.clear_session()

    # ==================== Profile changes ====================

    def update_profile(self, email: str, fields: dict[str, Any]) -> Profile:
        """Merge username, theme or birthday changes into a profile.

        Raises:
            NotFound: No such profile
            UsernameTaken: Username held by another account
            InvalidInput: Unknown field or invalid value
        """
        profiles = self._repo.get_profiles()
        profile = self._require_profile(profiles, email)
        updated = accounts.merge_profile(profile, fields, profiles)

        logger.info("Updating profile %s: %s", email[:8], ", ".join(sorted(fields)))
        self._persist(profiles, updated)
        return updated

    def reset_password(self, email: str, current: str, new: str, confirm: str) -> Profile:
        """Change a password after re-checking the current one.

        Raises:
            InvalidInput: New password too short, mismatched, or unchanged
            NotFound: No such profile
            InvalidCredential: Current password is wrong
        """
        accounts.check_new_password(new, confirm)
        profiles = self._repo.get_profiles()
        profile = self._require_profile(profiles, email)
        updated = accounts.change_password(profile, current, new)

        logger.info("Password changed for %s", email[:8])
        self._persist(profiles, updated)
        return updated

    def delete_account(self, email: str) -> None:
        """Remove a profile, its ledger and pending puzzle.

        Likes on the account's entries are left in place. Deleting an
        unknown account does nothing.
        """
        profiles = self._repo.get_profiles()
        if accounts.find_by_email(profiles, email) is not None:
            logger.info("Deleting account %s", email[:8])
            self._repo.save_profiles(accounts.remove_profile(profiles, email))
        self._repo.delete_ledger(email)
        self._repo.clear_pending_puzzle(email)

        active = self._repo.get_session_profile()
        if active is not None and active.email == email:
            self._repo.clear_session()
