"""
"Continue with Google" button (redirect-based OAuth).
"""

import streamlit as st

from viralpost.auth.errors import AuthProviderError
from viralpost.auth.oauth import callback_url, get_google_oauth_config, sign_in_with_google
from viralpost.config.logging_config import setup_logger
from viralpost.ui.browser import navigate_to
from viralpost.ui.session import AuthSession

logger = setup_logger(__name__)


def start_google_sign_in(auth_session: AuthSession, redirect_to: str = "/") -> str | None:
    """
    Ask the provider for Google's consent URL.

    Returns the URL, or None after reporting the failure to the store.
    """
    store = auth_session.store
    store.clear_error()
    store.set_loading(True)
    try:
        url = sign_in_with_google(
            auth_session.client,
            auth_session.settings,
            redirect_to=callback_url(auth_session.settings, redirect_to),
        )
    except AuthProviderError as exc:
        store.set_error(exc.message)
        return None
    store.set_loading(False)
    return url


def render_google_button(auth_session: AuthSession, mode: str = "signin", redirect_to: str = "/") -> None:
    config = get_google_oauth_config(auth_session.settings)
    label = "Continue with Google" if mode == "signin" else "Sign up with Google"
    if not config.is_enabled:
        st.button(label, key="auth_google", disabled=True, use_container_width=True, help="Google sign-in is not configured")
        return

    if st.button(label, key="auth_google", use_container_width=True, disabled=auth_session.store.is_loading):
        url = start_google_sign_in(auth_session, redirect_to)
        if url:
            logger.info("Redirecting to Google consent screen")
            # The PKCE verifier cookie must be written before the browser leaves
            navigate_to(url, prelude=auth_session.cookies.pending_script())
        else:
            st.rerun()
