"""
Streamlit app for ViralPost sign-in.
"""

import os
import sys
from pathlib import Path

os.environ.setdefault("LOG_FORMAT", "simple")

import streamlit as st

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from viralpost.auth.schemas import safe_next_path
from viralpost.config.settings import APP_NAME, DEFAULT_POST_LOGIN_PATH, PAGE_CONFIG, validate_env_for_app
from viralpost.ui.auth_page import render_auth_page
from viralpost.ui.browser import navigate_to, request_origin
from viralpost.ui.error_display import render_auth_error
from viralpost.ui.session import AuthSession, drop_auth_session, get_auth_session


ACCOUNT_VIEW = "account"


def _requested_mode() -> str:
    return "signup" if st.query_params.get("mode") == "sign-up" else "signin"


def post_login_url(origin: str, redirect_to: str, view: str | None = None) -> str | None:
    """Where a signed-in user is sent next. None keeps them on the account view."""
    if view == ACCOUNT_VIEW:
        return None
    return f"{origin}{redirect_to}"


def render_account_panel(auth_session: AuthSession) -> None:
    """Signed-in view: who the user is, their role, and session controls."""
    observer = auth_session.observer
    st.title(APP_NAME)
    render_auth_error(auth_session.store)

    st.markdown(f"Signed in as **{observer.user_email or 'unknown'}**")
    col_left, col_right = st.columns(2)
    with col_left:
        st.caption(f"Role: {observer.user_role}")
        st.caption(f"User ID: {(observer.user_id or '')[:8]}...")
    with col_right:
        st.caption(f"Admin: {'yes' if observer.is_admin() else 'no'}")
        st.caption(f"Premium: {'yes' if observer.is_premium() else 'no'}")

    busy = auth_session.store.is_loading
    if st.button("Refresh session", use_container_width=True, disabled=busy):
        observer.refresh_session()
        st.rerun()
    if st.button("Sign out", type="primary", use_container_width=True, disabled=busy):
        observer.sign_out()
        if not observer.is_authenticated:
            auth_session.store.reset()
        st.rerun()


def main() -> None:
    settings = validate_env_for_app()
    st.set_page_config(**PAGE_CONFIG)

    auth_session = get_auth_session(settings)
    auth_session.sync()

    redirect_to = safe_next_path(st.query_params.get("next"), DEFAULT_POST_LOGIN_PATH)
    origin = request_origin(settings.get_app_url())

    if not render_auth_page(auth_session, _requested_mode(), redirect_to, origin):
        return

    target = post_login_url(origin, redirect_to, st.query_params.get("view"))
    if target:
        navigate_to(target)
        return

    render_account_panel(auth_session)

    with st.sidebar:
        if st.button("Reset auth session", help="Drop local auth objects and reload"):
            drop_auth_session()
            st.rerun()


if __name__ == "__main__":
    main()
