"""
Per-browser-session auth objects for the ViralPost UI.

Built once per Streamlit session and reused on every rerun: the UI store, the
cookie storage shared with the supabase client, the identity client and the
auth observer. This is the composition root; components receive these objects
explicitly instead of reaching for globals.
"""

from dataclasses import dataclass

import streamlit as st

from viralpost.auth.client import IdentityClient, create_identity_client
from viralpost.auth.observer import AuthObserver
from viralpost.auth.storage import BrowserCookieStorage, CookieUIStateStorage
from viralpost.auth.store import AuthUIStore
from viralpost.config.logging_config import setup_logger
from viralpost.config.settings import EnvSettings
from viralpost.ui.browser import request_cookies, run_iframe_js

logger = setup_logger(__name__)

SESSION_KEY = "viralpost_auth"


@dataclass
class AuthSession:
    settings: EnvSettings
    cookies: BrowserCookieStorage
    store: AuthUIStore
    client: IdentityClient
    observer: AuthObserver

    def sync(self) -> None:
        """Once per rerun: apply provider events, then push cookie writes to the browser."""
        self.observer.pump()
        script = self.cookies.pending_script()
        if script:
            run_iframe_js(script)

    def close(self) -> None:
        self.observer.close()


def build_auth_session(settings: EnvSettings, cookies: dict[str, str] | None = None) -> AuthSession:
    cookie_storage = BrowserCookieStorage(
        cookies,
        secure=settings.uses_https(),
        max_age=settings.session_lifetime_seconds,
    )
    store = AuthUIStore(storage=CookieUIStateStorage(cookie_storage))
    client = create_identity_client(settings, storage=cookie_storage)
    observer = AuthObserver(client, store)
    observer.start()
    return AuthSession(settings=settings, cookies=cookie_storage, store=store, client=client, observer=observer)


def get_auth_session(settings: EnvSettings) -> AuthSession:
    """Get or create this browser session's auth objects."""
    if SESSION_KEY not in st.session_state:
        st.session_state[SESSION_KEY] = build_auth_session(settings, request_cookies())
        logger.debug("Created auth session objects")
    return st.session_state[SESSION_KEY]


def drop_auth_session() -> None:
    """Tear down this session's auth objects (releases the provider subscription)."""
    auth_session = st.session_state.pop(SESSION_KEY, None)
    if auth_session is not None:
        auth_session.close()
