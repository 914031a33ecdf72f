"""Error taxonomy for account and ledger operations.

Core functions raise these; only the outer surfaces (MCP tools, HTTP routes)
turn them into error payloads.
"""


class ZodiacCipherError(Exception):
    """Base class for every expected failure."""

    error_code = "ZODIAC_CIPHER_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        """Error payload returned by tools and routes."""
        return {"error": self.message, "code": self.error_code}


class InvalidInput(ZodiacCipherError):
    """Malformed or out-of-range argument."""

    error_code = "INVALID_INPUT"


class DuplicateEmail(ZodiacCipherError):
    """An account with this email already exists."""

    error_code = "DUPLICATE_EMAIL"


class UsernameTaken(ZodiacCipherError):
    """Another account holds this username (case-insensitive)."""

    error_code = "USERNAME_TAKEN"


class NotFound(ZodiacCipherError):
    error_code = "NOT_FOUND"


class InvalidCredential(ZodiacCipherError):
    error_code = "INVALID_CREDENTIAL"


class AlreadyCompleted(ZodiacCipherError):
    """Today's deed is already recorded for this account."""

    error_code = "ALREADY_COMPLETED"


class ValidationFailure(ZodiacCipherError):
    """Collaborator output (sentence, zodiac sign) was unusable."""

    error_code = "VALIDATION_FAILURE"
