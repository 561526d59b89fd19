"""
Auth UI state store.

Holds the transient flags the auth screens need (loading, error, password
visibility, remember-me). One store is created per browser session by the
composition root and handed to every component that needs it; tests build as
many isolated stores as they like.

Only ``remember_me`` and ``show_password`` are persisted, under the
``auth-ui-state`` key. Persisted values are applied by ``rehydrate()``; until
then the store reports defaults and ``hydrated`` is False so the UI can show a
neutral placeholder instead of flickering.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Protocol

from viralpost.config.logging_config import setup_logger
from viralpost.config.settings import UI_STATE_STORAGE_KEY

logger = setup_logger(__name__)

Listener = Callable[["AuthUIState"], None]


@dataclass(frozen=True)
class AuthUIState:
    is_loading: bool = False
    is_signing_in: bool = False
    is_signing_up: bool = False
    is_resetting_password: bool = False
    error: str | None = None
    show_password: bool = False
    remember_me: bool = False

    def persisted(self) -> dict:
        return {"rememberMe": self.remember_me, "showPassword": self.show_password}


INITIAL_STATE = AuthUIState()


# ---------------------------------------------------------------------------
#  Persistence backends
# ---------------------------------------------------------------------------


class UIStateStorage(Protocol):
    """Where the persisted subset lives between page loads."""

    def load(self, key: str) -> str | None: ...

    def save(self, key: str, value: str) -> None: ...


class MemoryUIStateStorage:
    """Dict-backed storage. Used in tests and when no browser is attached."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.items: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self.items.get(key)

    def save(self, key: str, value: str) -> None:
        self.items[key] = value


def _parse_persisted(raw: str) -> dict:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("persisted auth UI state is not an object")
    # Accept both the wrapped {"state": {...}} layout and a bare object
    if isinstance(data.get("state"), dict):
        data = data["state"]
    out = {}
    if isinstance(data.get("rememberMe"), bool):
        out["remember_me"] = data["rememberMe"]
    if isinstance(data.get("showPassword"), bool):
        out["show_password"] = data["showPassword"]
    return out


# ---------------------------------------------------------------------------
#  Store
# ---------------------------------------------------------------------------


class AuthUIStore:
    """State container with get / subscribe / dispatch."""

    ACTIONS = (
        "set_loading",
        "set_signing_in",
        "set_signing_up",
        "set_resetting_password",
        "set_error",
        "set_show_password",
        "set_remember_me",
        "clear_error",
        "reset",
    )

    def __init__(self, storage: UIStateStorage | None = None, storage_key: str = UI_STATE_STORAGE_KEY):
        self._state = INITIAL_STATE
        self._listeners: list[Listener] = []
        self._storage = storage
        self._storage_key = storage_key
        self.hydrated = storage is None

    # -- core surface -------------------------------------------------------

    def get_state(self) -> AuthUIState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: str, *args) -> AuthUIState:
        """Run a named action, e.g. ``store.dispatch("set_error", "boom")``."""
        if action not in self.ACTIONS:
            raise ValueError(f"Unknown auth UI action: {action}")
        getattr(self, action)(*args)
        return self._state

    def _set(self, new_state: AuthUIState, action: str) -> None:
        if new_state == self._state:
            return
        previous = self._state
        self._state = new_state
        logger.debug("auth ui action %s", action)
        if previous.persisted() != new_state.persisted():
            self._persist()
        for listener in list(self._listeners):
            listener(new_state)

    # -- actions ------------------------------------------------------------

    def set_loading(self, loading: bool) -> None:
        self._set(replace(self._state, is_loading=loading), "set_loading")

    def set_signing_in(self, signing: bool) -> None:
        self._set(replace(self._state, is_signing_in=signing, is_loading=signing), "set_signing_in")

    def set_signing_up(self, signing: bool) -> None:
        self._set(replace(self._state, is_signing_up=signing, is_loading=signing), "set_signing_up")

    def set_resetting_password(self, resetting: bool) -> None:
        self._set(
            replace(self._state, is_resetting_password=resetting, is_loading=resetting),
            "set_resetting_password",
        )

    def set_error(self, error: str | None) -> None:
        # An error always ends the loading indicator
        self._set(replace(self._state, error=error, is_loading=False), "set_error")

    def set_show_password(self, show: bool) -> None:
        self._set(replace(self._state, show_password=show), "set_show_password")

    def set_remember_me(self, remember: bool) -> None:
        self._set(replace(self._state, remember_me=remember), "set_remember_me")

    def clear_error(self) -> None:
        self._set(replace(self._state, error=None), "clear_error")

    def reset(self) -> None:
        self._set(replace(INITIAL_STATE, remember_me=self._state.remember_me), "reset")

    # -- selectors ----------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def error(self) -> str | None:
        return self._state.error

    @property
    def is_signing_in(self) -> bool:
        return self._state.is_signing_in

    @property
    def is_signing_up(self) -> bool:
        return self._state.is_signing_up

    @property
    def is_resetting_password(self) -> bool:
        return self._state.is_resetting_password

    @property
    def show_password(self) -> bool:
        return self._state.show_password

    @property
    def remember_me(self) -> bool:
        return self._state.remember_me

    # -- persistence --------------------------------------------------------

    def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save(self._storage_key, json.dumps(self._state.persisted()))
        except Exception as exc:
            logger.warning("Could not persist auth UI state: %s", exc)

    def rehydrate(self) -> None:
        """Apply persisted preferences. Safe to call more than once."""
        if self._storage is None:
            self.hydrated = True
            return
        raw = None
        try:
            raw = self._storage.load(self._storage_key)
            restored = _parse_persisted(raw) if raw else {}
        except (ValueError, TypeError) as exc:
            logger.warning("Ignoring unreadable auth UI state %r: %s", raw, exc)
            restored = {}
        if restored:
            self._set(replace(self._state, **restored), "rehydrate")
        self.hydrated = True
