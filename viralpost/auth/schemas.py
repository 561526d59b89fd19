"""
Validation schemas for the auth forms and the OAuth callback.

Every schema is a pydantic model. ``validate()`` runs one against raw input and
returns a ValidationResult holding either the normalized model or a mapping of
field name to ordered, user-facing messages. Forms show those messages inline;
nothing here ever touches the network.
"""

import re
from dataclasses import dataclass, field
from typing import Generic, Literal, TypeVar

from email_validator import EmailNotValidError, validate_email
from pydantic import AnyHttpUrl, BaseModel, ValidationError, field_validator, model_validator
from pydantic_core import PydanticCustomError

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128

MSG_EMAIL_REQUIRED = "Email is required"
MSG_EMAIL_INVALID = "Please enter a valid email address"
MSG_PASSWORD_REQUIRED = "Password is required"
MSG_PASSWORD_TOO_SHORT = f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
MSG_PASSWORD_TOO_LONG = f"Password must be less than {PASSWORD_MAX_LENGTH} characters"
MSG_PASSWORD_COMPLEXITY = (
    "Password must contain at least one lowercase letter, one uppercase letter, and one number"
)
MSG_CONFIRM_REQUIRED = "Please confirm your password"
MSG_PASSWORDS_MISMATCH = "Passwords do not match"
MSG_CODE_REQUIRED = "Authorization code is required"
MSG_INVALID_PROVIDER = "Invalid OAuth provider"

_PASSWORD_COMPLEXITY_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)", re.DOTALL)

OAuthProvider = Literal["google"]
SUPPORTED_OAUTH_PROVIDERS = ("google",)

ModelT = TypeVar("ModelT", bound=BaseModel)


# ---------------------------------------------------------------------------
#  Field rules
# ---------------------------------------------------------------------------


def _field_error(code: str, messages: list[str]) -> PydanticCustomError:
    # ctx keeps every failing rule; msg carries the first for plain pydantic users
    return PydanticCustomError(code, "{first}", {"first": messages[0], "messages": messages})


def normalize_email(value: object) -> str:
    """Trim, lower-case and syntax-check an email address."""
    if not isinstance(value, str) or not value.strip():
        raise _field_error("email_required", [MSG_EMAIL_REQUIRED])
    email = value.strip().lower()
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise _field_error("email_invalid", [MSG_EMAIL_INVALID]) from None
    return email


def password_policy_issues(password: str) -> list[str]:
    """Every policy rule the password breaks, in display order."""
    issues = []
    if len(password) < PASSWORD_MIN_LENGTH:
        issues.append(MSG_PASSWORD_TOO_SHORT)
    if len(password) > PASSWORD_MAX_LENGTH:
        issues.append(MSG_PASSWORD_TOO_LONG)
    if not _PASSWORD_COMPLEXITY_RE.match(password):
        issues.append(MSG_PASSWORD_COMPLEXITY)
    return issues


def _check_policy_password(value: object) -> str:
    if not isinstance(value, str):
        raise _field_error("password_type", [MSG_PASSWORD_REQUIRED])
    issues = password_policy_issues(value)
    if issues:
        raise _field_error("password_policy", issues)
    return value


def _check_required(value: object, message: str, code: str) -> str:
    if not isinstance(value, str) or not value:
        raise _field_error(code, [message])
    return value


class _MismatchedConfirmation(str):
    """A confirmation already known to differ from the submitted password."""


def _flag_mismatch(data: object) -> object:
    # Compare raw input so the mismatch is reported even when the password breaks the policy
    if isinstance(data, dict):
        password, confirm = data.get("password"), data.get("confirm_password")
        if isinstance(password, str) and isinstance(confirm, str) and confirm and confirm != password:
            return {**data, "confirm_password": _MismatchedConfirmation(confirm)}
    return data


def _check_confirmation(value: object) -> str:
    confirm = _check_required(value, MSG_CONFIRM_REQUIRED, "confirm_required")
    if isinstance(confirm, _MismatchedConfirmation):
        raise _field_error("password_mismatch", [MSG_PASSWORDS_MISMATCH])
    return confirm


# ---------------------------------------------------------------------------
#  Schemas
# ---------------------------------------------------------------------------


class SignInInput(BaseModel):
    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, value):
        return normalize_email(value)

    @field_validator("password", mode="before")
    @classmethod
    def _password(cls, value):
        return _check_required(value, MSG_PASSWORD_REQUIRED, "password_required")


class SignUpInput(BaseModel):
    email: str
    password: str
    confirm_password: str

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, value):
        return normalize_email(value)

    @field_validator("password", mode="before")
    @classmethod
    def _password(cls, value):
        return _check_policy_password(value)

    @model_validator(mode="before")
    @classmethod
    def _compare_passwords(cls, data):
        return _flag_mismatch(data)

    @field_validator("confirm_password", mode="before")
    @classmethod
    def _confirm(cls, value):
        return _check_confirmation(value)


class PasswordResetInput(BaseModel):
    email: str

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, value):
        return normalize_email(value)


class PasswordUpdateInput(BaseModel):
    password: str
    confirm_password: str

    @field_validator("password", mode="before")
    @classmethod
    def _password(cls, value):
        return _check_policy_password(value)

    @model_validator(mode="before")
    @classmethod
    def _compare_passwords(cls, data):
        return _flag_mismatch(data)

    @field_validator("confirm_password", mode="before")
    @classmethod
    def _confirm(cls, value):
        return _check_confirmation(value)


class OAuthSignInOptions(BaseModel):
    provider: str
    redirect_to: AnyHttpUrl | None = None
    scopes: str | None = None

    @field_validator("provider", mode="before")
    @classmethod
    def _provider(cls, value):
        if value not in SUPPORTED_OAUTH_PROVIDERS:
            raise _field_error("invalid_provider", [MSG_INVALID_PROVIDER])
        return value


def safe_next_path(value: str | None, default: str = "/") -> str:
    """
    Restrict a post-login target to a same-origin relative path.

    Anything that could leave the site (absolute URLs, ``//host``, ``/\\host``,
    control characters) collapses to ``default``.
    """
    if not value or not value.startswith("/"):
        return default
    if value.startswith("//") or value.startswith("/\\"):
        return default
    if any(ord(ch) < 0x20 or ch == "\x7f" for ch in value):
        return default
    return value


class OAuthCallbackParams(BaseModel):
    code: str
    state: str | None = None
    next: str = "/"

    @field_validator("code", mode="before")
    @classmethod
    def _code(cls, value):
        return _check_required(value, MSG_CODE_REQUIRED, "code_required")

    @field_validator("next", mode="before")
    @classmethod
    def _next(cls, value):
        return safe_next_path(value)


# ---------------------------------------------------------------------------
#  Running a schema
# ---------------------------------------------------------------------------


@dataclass
class ValidationResult(Generic[ModelT]):
    value: ModelT | None = None
    field_errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.field_errors

    def first_error(self, field_name: str) -> str | None:
        messages = self.field_errors.get(field_name)
        return messages[0] if messages else None


def field_errors_from(exc: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by dotted field path, keeping rule order."""
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or "general"
        ctx = err.get("ctx") or {}
        if err["type"] == "missing":
            messages = [_MISSING_MESSAGES.get(path, "This field is required")]
        else:
            messages = list(ctx.get("messages") or [err["msg"]])
        errors.setdefault(path, []).extend(messages)
    return errors


_MISSING_MESSAGES = {
    "email": MSG_EMAIL_REQUIRED,
    "password": MSG_PASSWORD_REQUIRED,
    "confirm_password": MSG_CONFIRM_REQUIRED,
    "code": MSG_CODE_REQUIRED,
    "provider": MSG_INVALID_PROVIDER,
}


def validate(schema: type[ModelT], data: dict) -> ValidationResult[ModelT]:
    """Validate ``data`` against ``schema`` without raising."""
    try:
        return ValidationResult(value=schema.model_validate(data))
    except ValidationError as exc:
        return ValidationResult(field_errors=field_errors_from(exc))
