"""
Identity client adapter.

Thin wrapper around ``supabase.Client.auth``. Every call either returns the
provider's response object or raises AuthProviderError, so callers deal with a
single error type no matter what the supabase client raised underneath.
"""

from collections.abc import Callable
from typing import Any

from supabase import Client, ClientOptions, create_client

from viralpost.auth.errors import AuthProviderError
from viralpost.config.logging_config import mask_email, setup_logger
from viralpost.config.settings import EnvSettings

logger = setup_logger(__name__)

AuthChangeCallback = Callable[[str, Any], None]


def create_identity_client(settings: EnvSettings, storage=None, auto_refresh: bool = True) -> "IdentityClient":
    """
    Build a supabase client (PKCE flow) around ``storage`` and wrap it.

    ``auto_refresh=False`` is for short-lived server clients: the refresh timer
    would otherwise outlive the request and spend the browser's refresh token.
    """
    option_kwargs: dict[str, Any] = {
        "flow_type": "pkce",
        "persist_session": True,
        "auto_refresh_token": auto_refresh,
    }
    if storage is not None:
        option_kwargs["storage"] = storage
    options = ClientOptions(**option_kwargs)
    client = create_client(settings.supabase_url_str, settings.supabase_anon_key, options)
    return IdentityClient(client)


class IdentityClient:
    """Adapter over the provider's auth API."""

    def __init__(self, client: Client):
        self._client = client

    @property
    def auth(self):
        return self._client.auth

    def _call(self, operation: str, fn: Callable, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            error = AuthProviderError.from_exception(exc)
            logger.warning("Auth %s failed: %s", operation, error.message)
            raise error from exc

    # -- session ------------------------------------------------------------

    def get_session(self):
        """Current session or None."""
        return self._call("get_session", self.auth.get_session)

    def get_user(self):
        """Current user as verified by the provider, or None."""
        response = self._call("get_user", self.auth.get_user)
        return response.user if response else None

    def on_auth_state_change(self, callback: AuthChangeCallback):
        """Subscribe to session changes; the returned handle has ``unsubscribe()``."""
        return self.auth.on_auth_state_change(callback)

    def refresh_session(self):
        return self._call("refresh_session", self.auth.refresh_session)

    def sign_out(self) -> None:
        self._call("sign_out", self.auth.sign_out)

    # -- email / password ---------------------------------------------------

    def sign_in_with_password(self, email: str, password: str):
        logger.info("Password sign-in for %s", mask_email(email))
        return self._call(
            "sign_in_with_password",
            self.auth.sign_in_with_password,
            {"email": email, "password": password},
        )

    def sign_up(self, email: str, password: str, email_redirect_to: str | None = None):
        logger.info("Sign-up for %s", mask_email(email))
        credentials: dict[str, Any] = {"email": email, "password": password}
        if email_redirect_to:
            credentials["options"] = {"email_redirect_to": email_redirect_to}
        return self._call("sign_up", self.auth.sign_up, credentials)

    def reset_password_for_email(self, email: str, redirect_to: str | None = None) -> None:
        options = {"redirect_to": redirect_to} if redirect_to else {}
        self._call("reset_password_for_email", self.auth.reset_password_for_email, email, options)

    def update_password(self, password: str):
        return self._call("update_user", self.auth.update_user, {"password": password})

    # -- OAuth --------------------------------------------------------------

    def sign_in_with_oauth(self, provider: str, redirect_to: str, scopes: str | None = None):
        """Start a redirect-based OAuth flow. The response carries the consent ``url``."""
        options: dict[str, Any] = {"redirect_to": redirect_to}
        if scopes:
            options["query_params"] = {"scope": scopes}
        return self._call(
            "sign_in_with_oauth",
            self.auth.sign_in_with_oauth,
            {"provider": provider, "options": options},
        )

    def sign_in_with_id_token(self, provider: str, token: str, nonce: str | None = None):
        credentials: dict[str, Any] = {"provider": provider, "token": token}
        if nonce:
            credentials["nonce"] = nonce
        return self._call("sign_in_with_id_token", self.auth.sign_in_with_id_token, credentials)

    def exchange_code_for_session(self, code: str, redirect_to: str | None = None):
        params: dict[str, Any] = {"auth_code": code}
        if redirect_to:
            params["redirect_to"] = redirect_to
        return self._call("exchange_code_for_session", self.auth.exchange_code_for_session, params)
