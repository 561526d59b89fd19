"""
Provider error type and the user-facing message table.
"""

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."

# Ordered: first matching substring wins
FRIENDLY_MESSAGES: tuple[tuple[str, str], ...] = (
    (
        "invalid login credentials",
        "Invalid email or password. Please check your credentials and try again.",
    ),
    (
        "email not confirmed",
        "Please check your email and click the confirmation link before signing in.",
    ),
    (
        "user already registered",
        "An account with this email already exists. Please sign in instead.",
    ),
    (
        "password should be at least",
        "Password must be at least 8 characters long.",
    ),
    (
        "signup is disabled",
        "New registrations are currently disabled. Please contact support.",
    ),
    (
        "email rate limit exceeded",
        "Too many email attempts. Please wait a few minutes before trying again.",
    ),
)


class AuthProviderError(Exception):
    """A failed call to the identity provider."""

    def __init__(self, message: str, status: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    @classmethod
    def from_exception(cls, exc: BaseException) -> "AuthProviderError":
        """Wrap whatever the supabase client raised (AuthApiError, httpx errors, ...)."""
        if isinstance(exc, cls):
            return exc
        message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
        return cls(message, status=getattr(exc, "status", None), code=getattr(exc, "code", None))


def get_auth_error_message(error: BaseException | str | None) -> str:
    """Convert a provider error into the message shown to the user."""
    if error is None:
        return GENERIC_ERROR_MESSAGE
    raw = error if isinstance(error, str) else (getattr(error, "message", None) or str(error))
    lowered = raw.lower()
    for needle, friendly in FRIENDLY_MESSAGES:
        if needle in lowered:
            return friendly
    return raw or GENERIC_ERROR_MESSAGE
