"""
Small bridges between the Streamlit server and the user's browser.
"""

import streamlit as st
import streamlit.components.v1 as components

from viralpost.config.logging_config import setup_logger

logger = setup_logger(__name__)


def run_iframe_js(js_code: str) -> None:
    """Execute JavaScript inside a same-origin iframe.

    The iframe shares the parent's origin (``allow-same-origin`` sandbox),
    so ``document.cookie`` operates on the real page's cookies.
    """
    components.html(f"<script>{js_code}</script>", height=0)


def request_cookies() -> dict[str, str]:
    """Cookies sent with the current HTTP request (empty outside a browser session)."""
    try:
        return dict(st.context.cookies)
    except Exception as exc:
        logger.debug("No request cookies available: %s", exc)
        return {}


def request_origin(default: str) -> str:
    """Best effort ``scheme://host`` of the page the user is on."""
    try:
        url = st.context.url
    except AttributeError:
        url = None
    if not url:
        return default
    scheme, _, rest = url.partition("://")
    host = rest.split("/", 1)[0]
    return f"{scheme}://{host}" if scheme and host else default


def navigate_to(url: str, prelude: str = "") -> None:
    """Send the top-level window to ``url`` (Streamlit has no server-side redirect).

    ``prelude`` runs first in the same script, e.g. cookie writes that must land
    before the browser leaves the page.
    """
    safe_url = url.replace("\\", "\\\\").replace("'", "\\'")
    run_iframe_js(f"{prelude}window.parent.location.href='{safe_url}';")
