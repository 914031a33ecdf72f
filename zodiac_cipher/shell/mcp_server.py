"""MCP Server - Tool definitions for playing the daily cipher game.

Exposes account, puzzle, photo, like and leaderboard operations as MCP
tools. The active session is the one persisted in the store; only one
player is signed in at a time.
"""

import logging
from datetime import date

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from ..core.errors import InvalidInput, NotFound, ZodiacCipherError
from ..core.likes import count, has_liked
from ..core.models import AccountLedger, Profile, Session
from .auth import AccountStore
from .config import StorageConfig, build_store
from .game import GameService
from .repository import GameRepository
from .storage import KeyValueStore


logger = logging.getLogger(__name__)

transport_security = TransportSecuritySettings(
    enable_dns_rebinding_protection=True,
    allowed_hosts=["localhost:*", "127.0.0.1:*"],
)

mcp = FastMCP(
    "zodiac-cipher",
    instructions="""Zodiac Cipher - decode one Caesar-shifted sentence a day.

Register or sign in first. Call new_puzzle to get today's encoded sentence,
get_hint if the player is stuck, and submit_answer with the decoded text.
Solving earns 5 + streak points; attaching a photo earns the same again.
Only one deed can be completed per day.""",
    stateless_http=True,
    transport_security=transport_security,
)

# Lazy-initialized services
_repository: GameRepository | None = None
_account_store: AccountStore | None = None
_game_service: GameService | None = None


def configure(store: KeyValueStore) -> None:
    """Point every tool at the given store (replaces existing services)."""
    global _repository, _account_store, _game_service
    _repository = GameRepository(store)
    _account_store = AccountStore(_repository)
    _game_service = GameService(_repository)


def get_repository() -> GameRepository:
    """Get or create the repository from environment configuration."""
    if _repository is None:
        configure(build_store(StorageConfig.from_env()))
    return _repository


def get_account_store() -> AccountStore:
    get_repository()
    return _account_store


def get_game_service() -> GameService:
    get_repository()
    return _game_service


def get_session() -> Session:
    """Get the signed-in session.

    Raises:
        NotFound: If nobody is signed in
    """
    session = get_account_store().current_session()
    if session is None:
        raise NotFound("Not signed in. Use sign_in or register first.")
    return session


def parse_date(date_str: str) -> date:
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        raise InvalidInput("Invalid date format. Use YYYY-MM-DD.") from None


def profile_view(profile: Profile) -> dict:
    """Profile fields safe to return (no password hash)."""
    return profile.model_dump(mode="json", exclude={"password"})


def ledger_view(ledger: AccountLedger) -> dict:
    return ledger.model_dump(mode="json")


# ==================== Account Tools ====================


@mcp.tool()
def register(email: str, password: str, birthday: str) -> dict:
    """Create an account and sign in.

    Args:
        email: Email address (must contain "@")
        password: At least 4 characters
        birthday: Birthday in YYYY-MM-DD format

    Returns:
        The new profile, or an error
    """
    try:
        profile = get_account_store().register(email, password, birthday)
    except ZodiacCipherError as e:
        return e.to_dict()
    return {"profile": profile_view(profile)}


@mcp.tool()
def sign_in(identifier: str, password: str) -> dict:
    """Sign in with an email or a username.

    Args:
        identifier: Email address or username (case-insensitive)
        password: Account password

    Returns:
        The signed-in profile, or an error
    """
    try:
        profile = get_account_store().sign_in(identifier, password)
    except ZodiacCipherError as e:
        return e.to_dict()
    return {"profile": profile_view(profile)}


@mcp.tool()
def sign_out() -> str:
    """Sign out the active account."""
    get_account_store().sign_out()
    return "Signed out."


@mcp.tool()
def whoami() -> dict:
    """Return the signed-in profile."""
    profile = get_account_store().current_profile()
    if profile is None:
        return {"signed_in": False}
    return {"signed_in": True, "profile": profile_view(profile)}


@mcp.tool()
def update_profile(
    username: str | None = None,
    theme: str | None = None,
    birthday: str | None = None,
) -> dict:
    """Update the signed-in profile. Only provided fields are changed.

    Args:
        username: New username (must be unique, case-insensitive)
        theme: "dark" or "light"
        birthday: New birthday in YYYY-MM-DD format

    Returns:
        The updated profile, or an error
    """
    updates = {}
    if username is not None:
        updates["username"] = username
    if theme is not None:
        updates["theme"] = theme
    if birthday is not None:
        updates["birthday"] = birthday

    if not updates:
        return {"error": "No updates provided.", "code": InvalidInput.error_code}

    try:
        profile = get_account_store().update_profile(get_session().email, updates)
    except ZodiacCipherError as e:
        return e.to_dict()
    return {"profile": profile_view(profile)}


@mcp.tool()
def reset_password(current_password: str, new_password: str, confirm_password: str) -> dict:
    """Change the signed-in account's password.

    Args:
        current_password: The current password
        new_password: At least 8 characters, different from the current one
        confirm_password: Must equal new_password

    Returns:
        Success flag, or an error
    """
    try:
        get_account_store().reset_password(
            get_session().email, current_password, new_password, confirm_password,
        )
    except ZodiacCipherError as e:
        return e.to_dict()
    return {"success": True}


@mcp.tool()
def delete_account() -> dict:
    """Delete the signed-in account, its ledger and history."""
    try:
        session = get_session()
    except ZodiacCipherError as e:
        return e.to_dict()
    get_account_store().delete_account(session.email)
    return {"success": True, "deleted": session.email}


# ==================== Puzzle Tools ====================


@mcp.tool()
def new_puzzle(zodiac_sign: str | None = None) -> dict:
    """Start today's puzzle.

    Args:
        zodiac_sign: Theme for the sentence (defaults to the player's sign)

    Returns:
        The encoded sentence, or an error if today's deed is done
    """
    try:
        puzzle = get_game_service().new_puzzle(get_session(), zodiac_sign)
    except ZodiacCipherError as e:
        return e.to_dict()
    return {"encoded": puzzle.encoded}


@mcp.tool()
def get_hint() -> dict:
    """Return the rotation (1-26) that decodes the current puzzle."""
    try:
        rotation = get_game_service().hint(get_session())
    except ZodiacCipherError as e:
        return e.to_dict()
    return {"rotate_forward_by": rotation}


@mcp.tool()
def submit_answer(answer: str) -> dict:
    """Submit a decoded sentence. Case and surrounding spaces are ignored.

    Args:
        answer: The player's decoded sentence

    Returns:
        Whether it was correct, plus points and streak
    """
    try:
        result = get_game_service().submit_answer(get_session(), answer)
    except ZodiacCipherError as e:
        return e.to_dict()
    return {
        "correct": result.correct,
        "points": result.ledger.points,
        "streak": result.ledger.streak,
    }


@mcp.tool()
def get_ledger() -> dict:
    """Return the signed-in player's points, streak and past deeds."""
    try:
        ledger = get_game_service().get_ledger(get_session())
    except ZodiacCipherError as e:
        return e.to_dict()
    return ledger_view(ledger)


# ==================== Photo Tools ====================


@mcp.tool()
def attach_photo(date_str: str, image: str) -> dict:
    """Attach a photo to a completed deed for bonus points.

    Args:
        date_str: Deed date in YYYY-MM-DD format
        image: Image reference (URL or data URI)

    Returns:
        Updated points, or an error
    """
    try:
        ledger = get_game_service().attach_photo(get_session(), parse_date(date_str), image)
    except ZodiacCipherError as e:
        return e.to_dict()
    return {"points": ledger.points}


@mcp.tool()
def replace_photo(date_str: str, image: str) -> dict:
    """Replace a deed's photo; the previous upload award is taken back first.

    Args:
        date_str: Deed date in YYYY-MM-DD format
        image: New image reference
    """
    try:
        ledger = get_game_service().replace_photo(get_session(), parse_date(date_str), image)
    except ZodiacCipherError as e:
        return e.to_dict()
    return {"points": ledger.points}


@mcp.tool()
def remove_photo(date_str: str) -> dict:
    """Remove a deed's photo and its upload points.

    Args:
        date_str: Deed date in YYYY-MM-DD format
    """
    try:
        ledger = get_game_service().retract_photo(get_session(), parse_date(date_str))
    except ZodiacCipherError as e:
        return e.to_dict()
    return {"points": ledger.points}


# ==================== Community Tools ====================


@mcp.tool()
def toggle_like(entry_id: str) -> dict:
    """Like a feed entry, or unlike it if already liked.

    Args:
        entry_id: Feed entry ID (<email>_<YYYY-MM-DD>)
    """
    try:
        session = get_session()
        book = get_game_service().toggle_like(session, entry_id)
    except ZodiacCipherError as e:
        return e.to_dict()
    return {"liked": has_liked(book, entry_id, session.email), "likes": count(book, entry_id)}


@mcp.tool()
def get_leaderboard(query: str | None = None) -> list[dict]:
    """Ranked players. Filtering by name keeps the original ranks.

    Args:
        query: Optional case-insensitive name filter
    """
    entries = get_game_service().leaderboard(query)
    return [e.model_dump(mode="json", exclude={"email"}) for e in entries]


@mcp.tool()
def get_feed(order: str = "recent") -> list[dict] | dict:
    """Community feed of deeds with photos.

    Args:
        order: "recent" or "likes"
    """
    service = get_game_service()
    try:
        entries = service.feed(order)
    except ZodiacCipherError as e:
        return e.to_dict()
    return [
        {**e.model_dump(mode="json"), "likes": service.like_count(e.entry_id)}
        for e in entries
    ]
