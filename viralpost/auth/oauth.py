"""
Google OAuth helpers: redirect (PKCE) flow, ID-token flow and nonce generation.
"""

import base64
import hashlib
import secrets
from dataclasses import dataclass
from urllib.parse import urlencode

from viralpost.auth.client import IdentityClient
from viralpost.auth.errors import AuthProviderError
from viralpost.auth.schemas import OAuthSignInOptions
from viralpost.config.logging_config import setup_logger
from viralpost.config.settings import CALLBACK_PATH, EnvSettings

logger = setup_logger(__name__)


@dataclass(frozen=True)
class GoogleOAuthConfig:
    client_id: str | None
    redirect_uri: str
    is_enabled: bool


def callback_url(settings: EnvSettings, next_path: str | None = None) -> str:
    """Absolute URL of the OAuth callback endpoint, optionally carrying ``next``."""
    url = f"{settings.get_app_url()}{CALLBACK_PATH}"
    if next_path:
        url = f"{url}?{urlencode({'next': next_path})}"
    return url


def get_google_oauth_config(settings: EnvSettings) -> GoogleOAuthConfig:
    return GoogleOAuthConfig(
        client_id=settings.google_client_id,
        redirect_uri=callback_url(settings),
        is_enabled=settings.is_google_oauth_enabled,
    )


def sign_in_with_oauth(client: IdentityClient, settings: EnvSettings, options: OAuthSignInOptions) -> str:
    """Start the redirect flow and return the provider consent URL."""
    redirect_to = str(options.redirect_to) if options.redirect_to else callback_url(settings)
    try:
        response = client.sign_in_with_oauth(options.provider, redirect_to, scopes=options.scopes)
    except AuthProviderError as exc:
        logger.error("OAuth sign-in error: %s", exc.message)
        raise AuthProviderError(
            f"Failed to sign in with {options.provider}: {exc.message}", status=exc.status
        ) from exc
    return response.url


def sign_in_with_google(client: IdentityClient, settings: EnvSettings, redirect_to: str | None = None) -> str:
    return sign_in_with_oauth(client, settings, OAuthSignInOptions(provider="google", redirect_to=redirect_to))


def sign_in_with_google_id_token(client: IdentityClient, token: str, nonce: str | None = None):
    """Exchange a Google ID token (One Tap / pre-built button) for a session."""
    try:
        return client.sign_in_with_id_token("google", token, nonce=nonce)
    except AuthProviderError as exc:
        logger.error("Google ID token sign-in error: %s", exc.message)
        raise AuthProviderError(
            f"Failed to sign in with Google ID token: {exc.message}", status=exc.status
        ) from exc


def generate_nonce() -> tuple[str, str]:
    """
    Returns (nonce, hashed_nonce).

    Google gets the hashed value; the provider gets the raw nonce and checks it
    against the hash embedded in the ID token.
    """
    nonce = base64.b64encode(secrets.token_bytes(32)).decode("ascii")
    hashed_nonce = hashlib.sha256(nonce.encode("utf-8")).hexdigest()
    return nonce, hashed_nonce
