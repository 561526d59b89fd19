"""
Cookie-backed storage for the supabase client.

The supabase client keeps its session and the PKCE code verifier in whatever
storage object it is given (``get_item`` / ``set_item`` / ``remove_item``).
Both halves of the app share those values through cookies on the same origin:

* the Streamlit UI reads them from the current request (``st.context.cookies``)
  and writes them back with a same-origin script, and
* the FastAPI callback reads them from the incoming request and returns
  writes as ``Set-Cookie`` headers on the redirect.

Values are percent-encoded so JSON survives the cookie header untouched.
"""

import json
import threading
from urllib.parse import quote, unquote

from viralpost.config.logging_config import setup_logger

logger = setup_logger(__name__)


def encode_cookie_value(value: str) -> str:
    return quote(value, safe="")


def decode_cookie_value(raw: str) -> str:
    return unquote(raw)


class RequestCookieStorage:
    """Per-request storage: reads request cookies, records pending writes."""

    def __init__(self, cookies: dict[str, str] | None = None):
        self._values = {name: decode_cookie_value(value) for name, value in (cookies or {}).items()}
        self.pending: dict[str, str | None] = {}

    def get_item(self, key: str) -> str | None:
        return self._values.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._values[key] = value
        self.pending[key] = value

    def remove_item(self, key: str) -> None:
        self._values.pop(key, None)
        self.pending[key] = None


class BrowserCookieStorage:
    """
    Storage for the Streamlit side.

    The supabase client may write from its token-refresh timer thread, where no
    Streamlit script context exists, so writes are buffered and pushed to the
    browser on the next script run (see ``pending_script()``).
    """

    def __init__(self, cookies: dict[str, str] | None = None, secure: bool = False, max_age: int = 3600):
        self._values = {name: decode_cookie_value(value) for name, value in (cookies or {}).items()}
        self._pending: dict[str, str | None] = {}
        self._lock = threading.Lock()
        self.secure = secure
        self.max_age = max_age

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value
            self._pending[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)
            self._pending[key] = None

    def take_pending(self) -> dict[str, str | None]:
        with self._lock:
            pending, self._pending = self._pending, {}
        return pending

    def cookie_script(self, pending: dict[str, str | None]) -> str:
        """JavaScript that applies ``pending`` to ``document.cookie``."""
        secure = "; Secure" if self.secure else ""
        statements = []
        for name, value in pending.items():
            cookie_name = encode_cookie_value(name)
            if value is None:
                statements.append(f"document.cookie='{cookie_name}=;path=/;max-age=0';")
            else:
                encoded = json.dumps(encode_cookie_value(value))
                statements.append(
                    f"document.cookie='{cookie_name}='+{encoded}"
                    f"+';path=/;max-age={self.max_age};SameSite=Lax{secure}';"
                )
        return "".join(statements)

    def pending_script(self) -> str:
        """Drain buffered writes into one script; empty string when there are none."""
        pending = self.take_pending()
        if not pending:
            return ""
        logger.debug("Flushing %d auth cookie change(s) to browser", len(pending))
        return self.cookie_script(pending)


class CookieUIStateStorage:
    """UIStateStorage adapter that keeps the auth UI preferences in a cookie."""

    def __init__(self, cookies: BrowserCookieStorage):
        self._cookies = cookies

    def load(self, key: str) -> str | None:
        return self._cookies.get_item(key)

    def save(self, key: str, value: str) -> None:
        self._cookies.set_item(key, value)
