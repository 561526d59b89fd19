"""
Dismissible banner for the auth store's current error.
"""

import streamlit as st

from viralpost.auth.store import AuthUIStore


def render_auth_error(store: AuthUIStore) -> bool:
    """Show the error with a dismiss button. Returns False when there is nothing to show."""
    error = store.error
    if not error:
        return False

    col_msg, col_close = st.columns([8, 1])
    with col_msg:
        st.error(f"**Authentication Error**\n\n{error}", icon="⚠️")
    with col_close:
        st.button("✕", key="auth_error_dismiss", help="Dismiss error", on_click=store.clear_error)
    return True
