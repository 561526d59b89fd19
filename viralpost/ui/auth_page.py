"""
Sign-in / sign-up page for ViralPost.

Combines the error banner, Google button and email form, and hands over to the
rest of the app once the observer reports a session.
"""

import datetime

import streamlit as st

from viralpost.config.settings import APP_NAME, APP_TAGLINE
from viralpost.ui.error_display import render_auth_error
from viralpost.ui.forms import (
    EmailAuthController,
    PasswordResetController,
    render_email_auth_form,
    render_password_reset_form,
    render_password_update_form,
)
from viralpost.ui.google_button import render_google_button
from viralpost.ui.session import AuthSession

_FORM_KEY = "auth_form_controller"
_RESET_KEY = "auth_reset_controller"


def _inject_auth_css() -> None:
    st.markdown(
        """
        <style>
            .stApp { background: linear-gradient(135deg, #eff6ff 0%, #e0e7ff 100%) !important; }
            [data-testid="stSidebar"],
            [data-testid="stSidebarCollapsedControl"] { display: none !important; }
            #MainMenu, footer { visibility: hidden; }
            .block-container {
                max-width: 460px !important;
                background: #ffffff !important;
                border-radius: 16px !important;
                box-shadow: 0 10px 40px rgba(30, 41, 95, 0.10) !important;
                padding: 2rem 2.25rem 1.5rem !important;
                margin-top: 2.5rem !important;
            }
            .auth-brand-name { text-align: center; font-size: 1.6rem; font-weight: 700; color: #111827; }
            .auth-brand-sub { text-align: center; color: #4b5563; font-size: 0.875rem; margin-bottom: 1rem; }
            .auth-divider { text-align: center; color: #6b7280; font-size: 0.75rem;
                            text-transform: uppercase; margin: 0.75rem 0; }
            .auth-footer { text-align: center; color: #9ca3af; font-size: 0.72rem; margin-top: 1.5rem; }
            @media (max-width: 640px) {
                .block-container { max-width: 100% !important; margin: 1rem 0.75rem !important; }
            }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_loading_placeholder() -> None:
    """Neutral placeholder while persisted UI state and the session are loading."""
    with st.spinner("Loading..."):
        st.empty()


def _get_controller(auth_session: AuthSession, mode: str, redirect_to: str, origin: str) -> EmailAuthController:
    controller = st.session_state.get(_FORM_KEY)
    if controller is None or controller.client is not auth_session.client:
        controller = EmailAuthController(
            auth_session.client,
            auth_session.store,
            mode=mode,
            redirect_to=redirect_to,
            origin=origin,
            on_mode_change=_on_mode_change,
        )
        st.session_state[_FORM_KEY] = controller
    controller.redirect_to = redirect_to
    return controller


def _get_reset_controller(auth_session: AuthSession, origin: str) -> PasswordResetController:
    controller = st.session_state.get(_RESET_KEY)
    if controller is None or controller.client is not auth_session.client:
        controller = PasswordResetController(auth_session.client, auth_session.store, origin=origin)
        st.session_state[_RESET_KEY] = controller
    return controller


def _on_mode_change(mode: str) -> None:
    st.query_params["mode"] = "sign-up" if mode == "signup" else "sign-in"


def _open_reset_view() -> None:
    st.query_params["view"] = "reset"


def render_auth_page(auth_session: AuthSession, mode: str, redirect_to: str, origin: str) -> bool:
    """
    Render the page. Returns True once the user is authenticated so the
    caller can move on; nothing is drawn in that case.
    """
    store = auth_session.store
    observer = auth_session.observer

    if not store.hydrated:
        render_loading_placeholder()
        store.rehydrate()
        st.rerun()

    if observer.is_loading:
        render_loading_placeholder()
        return False

    view = st.query_params.get("view")
    if observer.is_authenticated and view != "update-password":
        return True

    _inject_auth_css()
    st.markdown(
        f'<div class="auth-brand-name">{APP_NAME}</div><div class="auth-brand-sub">{APP_TAGLINE}</div>',
        unsafe_allow_html=True,
    )

    render_auth_error(store)

    if view == "reset":
        render_password_reset_form(_get_reset_controller(auth_session, origin))
        return False
    if view == "update-password":
        render_password_update_form(_get_reset_controller(auth_session, origin))
        return False

    controller = _get_controller(auth_session, mode, redirect_to, origin)

    render_google_button(auth_session, mode=controller.mode, redirect_to=redirect_to)
    st.markdown('<div class="auth-divider">Or continue with email</div>', unsafe_allow_html=True)
    render_email_auth_form(controller)

    if controller.mode == "signin":
        st.button("Forgot your password?", key="auth_forgot_password", on_click=_open_reset_view)

    st.markdown(
        '<div class="auth-footer">By continuing, you agree to our '
        '<a href="/terms">Terms of Service</a> and <a href="/privacy">Privacy Policy</a>.<br/>'
        f"© {datetime.datetime.now().year} {APP_NAME}</div>",
        unsafe_allow_html=True,
    )
    return False
