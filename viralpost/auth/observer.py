"""
Auth observation: mirrors the provider's current user/session for the UI.

The provider calls us back on its own schedule (sign-in, sign-out, token
refresh from a timer thread, ...). Those callbacks only put an AuthEvent on a
queue; ``pump()`` applies queued events on the caller's thread, in delivery
order, each one overwriting user/session (last write wins).

Lifecycle::

    observer = AuthObserver(client, store)
    observer.start()        # subscribe + initial session fetch
    ...
    observer.pump()         # once per UI pass
    ...
    observer.close()        # unsubscribe, drop the channel
"""

import queue
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from viralpost.auth.client import IdentityClient
from viralpost.auth.errors import AuthProviderError
from viralpost.auth.store import AuthUIStore
from viralpost.config.logging_config import mask_email, setup_logger
from viralpost.config.settings import SIGN_IN_PATH

logger = setup_logger(__name__)

LOAD_STATE_FAILED = "Failed to load authentication state"
SIGN_OUT_FAILED = "Failed to sign out"
REFRESH_FAILED = "Failed to refresh session"

_LOGGED_EVENTS = {
    "SIGNED_IN": "User signed in",
    "SIGNED_OUT": "User signed out",
    "TOKEN_REFRESHED": "Token refreshed",
    "USER_UPDATED": "User updated",
}


@dataclass(frozen=True)
class AuthEvent:
    event: str
    session: Any = None


def _user_of(session) -> Any:
    return getattr(session, "user", None) if session is not None else None


def _metadata_role(user, attr: str) -> str | None:
    metadata = getattr(user, attr, None) or {}
    return metadata.get("role") if isinstance(metadata, dict) else None


def role_of(user) -> str:
    """Display role: user_metadata first, then app_metadata, else "user"."""
    if user is None:
        return "user"
    return _metadata_role(user, "user_metadata") or _metadata_role(user, "app_metadata") or "user"


class AuthObserver:
    def __init__(self, client: IdentityClient, store: AuthUIStore):
        self._client = client
        self._store = store
        self._channel: queue.Queue[AuthEvent] = queue.Queue()
        self._subscription = None
        self._closed = False
        self.user = None
        self.session = None
        self.is_loading = True

    # -- lifecycle ----------------------------------------------------------

    def start(self) -> None:
        """Subscribe to provider notifications, then load the current session once."""
        if self._subscription is None and not self._closed:
            self._subscription = self._client.on_auth_state_change(self._on_provider_event)
        self._load_initial_session()

    def _load_initial_session(self) -> None:
        try:
            session = self._client.get_session()
        except AuthProviderError as exc:
            logger.error("Error getting session: %s", exc.message)
            self._store.set_error(exc.message)
            self._apply(None)
        except Exception as exc:
            logger.error("Unexpected error getting session: %s", exc)
            self._store.set_error(LOAD_STATE_FAILED)
            self._apply(None)
        else:
            self._apply(session)

    def _on_provider_event(self, event, session) -> None:
        # May run on a provider thread: enqueue only
        if self._closed:
            return
        self._channel.put(AuthEvent(event=str(getattr(event, "value", event)), session=session))

    def pump(self) -> int:
        """Apply every queued provider event. Returns how many were applied."""
        applied = 0
        while True:
            try:
                message = self._channel.get_nowait()
            except queue.Empty:
                return applied
            self._apply(message.session)
            applied += 1
            description = _LOGGED_EVENTS.get(message.event)
            if description:
                logger.info("%s: %s", description, mask_email(self.user_email))
            else:
                logger.debug("Auth state changed: %s", message.event)

    def close(self) -> None:
        """Release the provider subscription. Later events are dropped."""
        self._closed = True
        if self._subscription is not None:
            try:
                self._subscription.unsubscribe()
            finally:
                self._subscription = None
        while not self._channel.empty():
            self._channel.get_nowait()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "AuthObserver":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _apply(self, session) -> None:
        self.session = session
        self.user = _user_of(session)
        self.is_loading = False

    # -- actions ------------------------------------------------------------

    def sign_out(self) -> None:
        """
        Ask the provider to end the session.

        Local user/session are not cleared here; they follow the provider's
        SIGNED_OUT notification, which is pumped right after a successful call.
        """
        self._store.set_loading(True)
        try:
            self._client.sign_out()
        except AuthProviderError as exc:
            logger.error("Sign out error: %s", exc.message)
            self._store.set_error(exc.message or SIGN_OUT_FAILED)
        else:
            self.pump()
        finally:
            self._store.set_loading(False)

    def refresh_session(self) -> None:
        """Fetch a fresh session and adopt it directly."""
        self._store.set_loading(True)
        try:
            response = self._client.refresh_session()
        except AuthProviderError as exc:
            logger.error("Refresh session error: %s", exc.message)
            self._store.set_error(exc.message or REFRESH_FAILED)
        else:
            self._apply(getattr(response, "session", None))
        finally:
            self._store.set_loading(False)

    # -- derived ------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> str | None:
        return getattr(self.user, "id", None)

    @property
    def user_email(self) -> str | None:
        return getattr(self.user, "email", None)

    def has_role(self, role: str) -> bool:
        if self.user is None:
            return False
        return _metadata_role(self.user, "user_metadata") == role or _metadata_role(self.user, "app_metadata") == role

    def is_admin(self) -> bool:
        return self.has_role("admin")

    def is_premium(self) -> bool:
        return self.has_role("premium") or self.is_admin()

    @property
    def user_role(self) -> str:
        return role_of(self.user)

    def require_auth(self, current_path: str, redirect_to: str = SIGN_IN_PATH) -> str | None:
        """Sign-in URL (carrying ``next``) when the session is known to be absent."""
        if self.is_loading or self.is_authenticated:
            return None
        return f"{redirect_to}?{urlencode({'next': current_path})}"
