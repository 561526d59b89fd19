"""
OAuth callback API for ViralPost.

Google (via Supabase) sends the browser back to ``/auth/callback`` with an
authorization code. We exchange it for a session and redirect to the page the
user was heading to, or to ``/auth/error`` with a message. Nothing here raises
to the user: every outcome is a redirect.

``/auth/user`` answers server-side "who is signed in" checks from the session
cookie. Every request gets its own client with token auto-refresh off, so no
state or timer outlives the request.

Run locally:
    uvicorn viralpost.api.callback:app --port 8000
"""

import html
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import quote

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from viralpost.auth.client import IdentityClient, create_identity_client
from viralpost.auth.errors import AuthProviderError
from viralpost.auth.observer import role_of
from viralpost.auth.schemas import OAuthCallbackParams, validate
from viralpost.auth.storage import RequestCookieStorage, encode_cookie_value
from viralpost.config.logging_config import setup_logger
from viralpost.config.settings import ERROR_PATH, EnvSettings, load_settings, validate_env_for_app

logger = setup_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Missing or malformed configuration stops the process here
    validate_env_for_app()
    yield


app = FastAPI(title="ViralPost Auth Callback API", lifespan=lifespan)

MSG_INVALID_PARAMS = "Invalid callback parameters"
MSG_AUTH_FAILED = "Authentication failed"
MSG_DEFAULT_ERROR = "An authentication error occurred"


def get_settings() -> EnvSettings:
    return load_settings()


def get_cookie_storage(request: Request) -> RequestCookieStorage:
    return RequestCookieStorage(dict(request.cookies))


def get_identity_client(
    settings: EnvSettings = Depends(get_settings),
    storage: RequestCookieStorage = Depends(get_cookie_storage),
) -> IdentityClient:
    """A fresh client per request, reading the PKCE verifier from the request cookies."""
    return create_identity_client(settings, storage=storage, auto_refresh=False)


def request_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


def resolve_redirect_origin(request: Request, settings: EnvSettings) -> str:
    """
    Origin to send the user back to after a successful exchange.

    Development talks to the app directly. Elsewhere a load balancer sits in
    front and reports the public host in x-forwarded-host.
    """
    if settings.is_development:
        return request_origin(request)
    forwarded_host = request.headers.get("x-forwarded-host")
    if forwarded_host:
        return f"https://{forwarded_host}"
    return request_origin(request)


def error_redirect(request: Request, message: str) -> RedirectResponse:
    return RedirectResponse(f"{request_origin(request)}{ERROR_PATH}?message={quote(message, safe='')}", status_code=302)


def _apply_cookie_writes(response: Response, storage: RequestCookieStorage, settings: EnvSettings) -> None:
    for name, value in storage.pending.items():
        if value is None:
            response.delete_cookie(name, path="/")
        else:
            response.set_cookie(
                name,
                encode_cookie_value(value),
                max_age=settings.session_lifetime_seconds,
                path="/",
                samesite="lax",
                secure=settings.uses_https(),
            )


@app.get("/auth/callback")
def auth_callback(
    request: Request,
    settings: EnvSettings = Depends(get_settings),
    storage: RequestCookieStorage = Depends(get_cookie_storage),
    client: IdentityClient = Depends(get_identity_client),
):
    """Exchange the OAuth code for a session and redirect."""
    result = validate(
        OAuthCallbackParams,
        {
            "code": request.query_params.get("code"),
            "state": request.query_params.get("state"),
            "next": request.query_params.get("next") or "/",
        },
    )
    if not result.ok:
        logger.warning("OAuth callback validation error: %s", result.field_errors)
        return error_redirect(request, MSG_INVALID_PARAMS)

    params = result.value
    if not params.code:
        return error_redirect(request, MSG_AUTH_FAILED)

    try:
        client.exchange_code_for_session(params.code)
    except AuthProviderError as exc:
        logger.error("OAuth code exchange error: %s", exc.message)
        return error_redirect(request, exc.message)

    target = f"{resolve_redirect_origin(request, settings)}{params.next}"
    logger.info("OAuth callback succeeded, redirecting to %s", params.next)
    response = RedirectResponse(target, status_code=302)
    _apply_cookie_writes(response, storage, settings)
    return response


@app.get("/auth/user")
def current_user(
    settings: EnvSettings = Depends(get_settings),
    storage: RequestCookieStorage = Depends(get_cookie_storage),
    client: IdentityClient = Depends(get_identity_client),
):
    """
    The signed-in user, verified with the provider from the session cookie.

    401 when there is no valid session. A token refreshed on the way is
    written back as cookies.
    """
    try:
        user = client.get_user()
    except AuthProviderError as exc:
        logger.warning("User lookup failed: %s", exc.message)
        user = None
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    response = JSONResponse({"id": user.id, "email": user.email, "role": role_of(user)})
    _apply_cookie_writes(response, storage, settings)
    return response


_ERROR_PAGE = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Authentication Error | ViralPost</title></head>
<body style="font-family: system-ui, sans-serif; background: #f9fafb; display: flex;
             min-height: 100vh; align-items: center; justify-content: center;">
  <main style="max-width: 28rem; text-align: center;">
    <h2>Authentication Error</h2>
    <p style="color: #4b5563;">{message}</p>
    <p><a href="/login">Try Again</a></p>
    <p><a href="/">Return to Home</a></p>
  </main>
</body>
</html>
"""


@app.get("/auth/error", response_class=HTMLResponse)
def auth_error(message: str | None = None):
    """Human-readable landing page for failed sign-ins."""
    return HTMLResponse(_ERROR_PAGE.format(message=html.escape(message or MSG_DEFAULT_ERROR)))


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
