"""
Email/password auth form for ViralPost.

EmailAuthController holds the form logic (validation on every change, submit,
mode switch) and talks to the identity client and the UI store. The
``render_*`` functions draw it with Streamlit. Keeping the two apart lets the
tests drive the controller without a Streamlit runtime.
"""

from collections.abc import Callable
from typing import Literal
from urllib.parse import urlencode

import streamlit as st

from viralpost.auth.client import IdentityClient
from viralpost.auth.errors import AuthProviderError, get_auth_error_message
from viralpost.auth.schemas import (
    PasswordResetInput,
    PasswordUpdateInput,
    SignInInput,
    SignUpInput,
    ValidationResult,
    validate,
)
from viralpost.auth.store import AuthUIStore
from viralpost.config.logging_config import setup_logger
from viralpost.config.settings import CALLBACK_PATH

logger = setup_logger(__name__)

AuthMode = Literal["signin", "signup"]

RESET_EMAIL_SENT = "If an account exists for that address, a password reset link is on its way."
PASSWORD_UPDATED = "Your password has been updated."


def _other_mode(mode: AuthMode) -> AuthMode:
    return "signup" if mode == "signin" else "signin"


def _blank_values(mode: AuthMode) -> dict[str, str]:
    values = {"email": "", "password": ""}
    if mode == "signup":
        values["confirm_password"] = ""
    return values


class EmailAuthController:
    """State and behaviour of the email/password form."""

    def __init__(
        self,
        client: IdentityClient,
        store: AuthUIStore,
        mode: AuthMode = "signin",
        redirect_to: str = "/",
        origin: str = "http://localhost:3000",
        on_success: Callable[[], None] | None = None,
        on_mode_change: Callable[[AuthMode], None] | None = None,
    ):
        self.client = client
        self.store = store
        self.mode: AuthMode = mode
        self.redirect_to = redirect_to
        self.origin = origin.rstrip("/")
        self.on_success = on_success
        self.on_mode_change = on_mode_change
        self.values = _blank_values(mode)
        self.touched: set[str] = set()
        self.validation: ValidationResult = self._validate()

    @property
    def schema(self):
        return SignInInput if self.mode == "signin" else SignUpInput

    def _validate(self) -> ValidationResult:
        return validate(self.schema, self.values)

    # -- field updates ------------------------------------------------------

    def update_field(self, name: str, value: str) -> None:
        """Record a new field value and revalidate the whole form."""
        if name not in self.values:
            raise KeyError(f"Unknown field for {self.mode} form: {name}")
        if value != self.values[name]:
            self.touched.add(name)
        self.values[name] = value
        self.validation = self._validate()

    @property
    def field_errors(self) -> dict[str, list[str]]:
        return self.validation.field_errors

    def visible_errors(self) -> dict[str, list[str]]:
        """Errors for the fields the user has actually typed into."""
        return {name: msgs for name, msgs in self.field_errors.items() if name in self.touched}

    @property
    def is_submitting(self) -> bool:
        return self.store.is_signing_in if self.mode == "signin" else self.store.is_signing_up

    @property
    def can_submit(self) -> bool:
        return self.validation.ok and not self.is_submitting

    # -- actions ------------------------------------------------------------

    def email_redirect_url(self) -> str:
        return f"{self.origin}{CALLBACK_PATH}?{urlencode({'next': self.redirect_to})}"

    def submit(self) -> bool:
        """Send the form to the provider. Returns True on success."""
        self.validation = self._validate()
        if not self.validation.ok:
            self.touched.update(self.values)
            return False

        data = self.validation.value
        self.store.clear_error()
        try:
            if self.mode == "signin":
                self.store.set_signing_in(True)
                self.client.sign_in_with_password(data.email, data.password)
            else:
                self.store.set_signing_up(True)
                self.client.sign_up(data.email, data.password, email_redirect_to=self.email_redirect_url())
                self.store.set_error(None)
        except AuthProviderError as exc:
            logger.error("%s error: %s", self.mode, exc.message)
            self.store.set_error(get_auth_error_message(exc))
            return False
        finally:
            self.store.set_signing_in(False)
            self.store.set_signing_up(False)

        # Navigation follows the observer picking up the new session
        if self.on_success:
            self.on_success()
        return True

    def switch_mode(self) -> AuthMode:
        self.store.clear_error()
        self.mode = _other_mode(self.mode)
        self.values = _blank_values(self.mode)
        self.touched.clear()
        self.validation = self._validate()
        if self.on_mode_change:
            self.on_mode_change(self.mode)
        return self.mode

    def toggle_password_visibility(self) -> None:
        self.store.set_show_password(not self.store.show_password)


class PasswordResetController:
    """Forgot-password request and the follow-up password update."""

    def __init__(self, client: IdentityClient, store: AuthUIStore, origin: str = "http://localhost:3000"):
        self.client = client
        self.store = store
        self.origin = origin.rstrip("/")
        self.field_errors: dict[str, list[str]] = {}

    def _run(self, call: Callable[[], object]) -> bool:
        self.store.clear_error()
        self.store.set_resetting_password(True)
        try:
            call()
        except AuthProviderError as exc:
            logger.error("password reset error: %s", exc.message)
            self.store.set_error(get_auth_error_message(exc))
            return False
        finally:
            self.store.set_resetting_password(False)
        return True

    def request_reset(self, email: str, next_path: str = "/?view=update-password") -> bool:
        result = validate(PasswordResetInput, {"email": email})
        self.field_errors = result.field_errors
        if not result.ok:
            return False
        redirect_to = f"{self.origin}{CALLBACK_PATH}?{urlencode({'next': next_path})}"
        return self._run(lambda: self.client.reset_password_for_email(result.value.email, redirect_to=redirect_to))

    def update_password(self, password: str, confirm_password: str) -> bool:
        result = validate(PasswordUpdateInput, {"password": password, "confirm_password": confirm_password})
        self.field_errors = result.field_errors
        if not result.ok:
            return False
        return self._run(lambda: self.client.update_password(result.value.password))


# ---------------------------------------------------------------------------
#  Streamlit rendering
# ---------------------------------------------------------------------------

_FIELD_LABELS = {
    "email": "Email",
    "password": "Password",
    "confirm_password": "Confirm Password",
}


def _widget_key(controller: EmailAuthController, name: str) -> str:
    return f"auth_{controller.mode}_{name}"


def _clear_widgets() -> None:
    for name in ("email", "password", "confirm_password"):
        for mode in ("signin", "signup"):
            st.session_state.pop(f"auth_{mode}_{name}", None)


def _on_mode_switch(controller: EmailAuthController) -> None:
    _clear_widgets()
    controller.switch_mode()


def _show_field_errors(errors: dict[str, list[str]], name: str) -> None:
    for message in errors.get(name, []):
        st.caption(f":red[{message}]")


def render_email_auth_form(controller: EmailAuthController) -> None:
    """Draw the form. Every rerun re-reads the widgets, so validation runs on each change."""
    signin = controller.mode == "signin"
    busy = controller.is_submitting
    show_password = controller.store.show_password
    password_type = "default" if show_password else "password"

    st.markdown(f"### {'Welcome back' if signin else 'Create your account'}")
    st.caption(
        "Enter your email and password to sign in" if signin else "Enter your details to create your account"
    )

    email = st.text_input(
        _FIELD_LABELS["email"],
        key=_widget_key(controller, "email"),
        placeholder="Enter your email",
        autocomplete="email",
        disabled=busy,
    )
    controller.update_field("email", email)
    _show_field_errors(controller.visible_errors(), "email")

    password = st.text_input(
        _FIELD_LABELS["password"],
        key=_widget_key(controller, "password"),
        type=password_type,
        placeholder="Enter your password" if signin else "Create a strong password",
        autocomplete="current-password" if signin else "new-password",
        disabled=busy,
    )
    controller.update_field("password", password)
    _show_field_errors(controller.visible_errors(), "password")

    if not signin:
        confirm = st.text_input(
            _FIELD_LABELS["confirm_password"],
            key=_widget_key(controller, "confirm_password"),
            type=password_type,
            placeholder="Confirm your password",
            autocomplete="new-password",
            disabled=busy,
        )
        controller.update_field("confirm_password", confirm)
        _show_field_errors(controller.visible_errors(), "confirm_password")

    st.checkbox(
        "Show password",
        value=show_password,
        key=f"auth_show_password_{controller.mode}",
        on_change=controller.toggle_password_visibility,
        disabled=busy,
    )
    if signin:
        st.checkbox(
            "Remember me",
            value=controller.store.remember_me,
            key="auth_remember_me",
            on_change=lambda: controller.store.set_remember_me(not controller.store.remember_me),
            disabled=busy,
        )

    label = "Sign in" if signin else "Create account"
    if st.button(label, type="primary", use_container_width=True, disabled=not controller.can_submit):
        with st.spinner("Signing in..." if signin else "Creating account..."):
            succeeded = controller.submit()
        if succeeded and not signin:
            st.info("Check your email for a confirmation link to finish creating your account.")
        else:
            st.rerun()

    prompt = "Don't have an account?" if signin else "Already have an account?"
    col_text, col_link = st.columns([2, 1])
    with col_text:
        st.caption(prompt)
    with col_link:
        st.button(
            "Sign up" if signin else "Sign in",
            key="auth_mode_switch",
            on_click=_on_mode_switch,
            args=(controller,),
            disabled=busy,
        )

    if not signin:
        st.caption(
            "Password requirements:\n"
            "- At least 8 characters long\n"
            "- Contains uppercase and lowercase letters\n"
            "- Contains at least one number"
        )


def render_password_reset_form(controller: PasswordResetController) -> None:
    """Forgot-password form: one email field and a submit button."""
    st.markdown("### Reset your password")
    email = st.text_input("Email", key="auth_reset_email", placeholder="Enter your email")
    _show_field_errors(controller.field_errors, "email")
    if st.button(
        "Send reset link",
        type="primary",
        use_container_width=True,
        disabled=controller.store.is_resetting_password,
    ):
        if controller.request_reset(email):
            st.success(RESET_EMAIL_SENT)
        else:
            st.rerun()


def render_password_update_form(controller: PasswordResetController) -> None:
    """Shown after the reset link brings the user back with a recovery session."""
    st.markdown("### Choose a new password")
    password = st.text_input("New password", type="password", key="auth_new_password")
    _show_field_errors(controller.field_errors, "password")
    confirm = st.text_input("Confirm new password", type="password", key="auth_new_password_confirm")
    _show_field_errors(controller.field_errors, "confirm_password")
    if st.button(
        "Update password",
        type="primary",
        use_container_width=True,
        disabled=controller.store.is_resetting_password,
    ):
        if controller.update_password(password, confirm):
            st.success(PASSWORD_UPDATED)
        else:
            st.rerun()
