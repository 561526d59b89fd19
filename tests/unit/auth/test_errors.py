"""
Unit tests for provider error wrapping and the friendly message table.
"""

import pytest

from viralpost.auth.errors import (
    FRIENDLY_MESSAGES,
    GENERIC_ERROR_MESSAGE,
    AuthProviderError,
    get_auth_error_message,
)


class _FakeApiError(Exception):
    def __init__(self, message, status=None, code=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


class TestGetAuthErrorMessage:
    @pytest.mark.parametrize("needle, friendly", FRIENDLY_MESSAGES)
    def test_known_messages_are_translated(self, needle, friendly):
        assert get_auth_error_message(AuthProviderError(needle)) == friendly

    def test_match_is_case_insensitive_substring(self):
        error = AuthProviderError("AuthApiError: Invalid Login Credentials (400)")
        assert get_auth_error_message(error) == FRIENDLY_MESSAGES[0][1]

    def test_already_registered_message(self):
        assert (
            get_auth_error_message("User already registered")
            == "An account with this email already exists. Please sign in instead."
        )

    def test_unknown_message_passes_through(self):
        assert get_auth_error_message(AuthProviderError("Network down")) == "Network down"

    def test_plain_exception_uses_str(self):
        assert get_auth_error_message(RuntimeError("socket closed")) == "socket closed"

    def test_none_gives_generic_message(self):
        assert get_auth_error_message(None) == GENERIC_ERROR_MESSAGE

    def test_empty_message_gives_generic_message(self):
        assert get_auth_error_message("") == GENERIC_ERROR_MESSAGE


class TestAuthProviderError:
    def test_from_exception_copies_fields(self):
        error = AuthProviderError.from_exception(_FakeApiError("Email not confirmed", status=400, code="email_not_confirmed"))
        assert error.message == "Email not confirmed"
        assert error.status == 400
        assert error.code == "email_not_confirmed"

    def test_from_exception_keeps_existing_instance(self):
        original = AuthProviderError("boom")
        assert AuthProviderError.from_exception(original) is original

    def test_from_exception_without_message_uses_type_name(self):
        assert AuthProviderError.from_exception(TimeoutError()).message == "TimeoutError"
