"""
Shared test helpers. Used across unit tests to avoid duplication.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

TEST_USER_ID = "user-uuid-abc-123"
TEST_EMAIL = "jane@example.com"


def make_user(
    uid: str = TEST_USER_ID,
    email: str = TEST_EMAIL,
    user_metadata: dict | None = None,
    app_metadata: dict | None = None,
):
    """Build a stand-in for a Supabase user object."""
    return SimpleNamespace(
        id=uid,
        email=email,
        user_metadata=user_metadata or {},
        app_metadata=app_metadata or {},
    )


def make_session(user=None, access_token: str = "eyJ.test.access_token", refresh_token: str = "refresh_abc123"):
    """Build a stand-in for a Supabase session object."""
    return SimpleNamespace(
        user=user if user is not None else make_user(),
        access_token=access_token,
        refresh_token=refresh_token,
    )


def make_identity_client(session=None):
    """
    MagicMock identity client whose subscription callbacks can be fired by the test.

    Returns (client, emit, subscription); ``emit(event, session)`` plays the provider.
    """
    client = MagicMock()
    subscription = MagicMock()
    callbacks = []

    def _subscribe(callback):
        callbacks.append(callback)
        return subscription

    def emit(event: str, new_session=None) -> None:
        for callback in list(callbacks):
            callback(event, new_session)

    client.on_auth_state_change.side_effect = _subscribe
    client.get_session.return_value = session
    return client, emit, subscription
