from __future__ import annotations

import base64
import hashlib
import logging
import secrets
import threading
import webbrowser
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from ..config.settings import GoogleSettings
from ..core import TokenStore
from ..domain import OAuthTokens
from .oauth_callback import LoopbackReceiver

logger = logging.getLogger(__name__)

AuthListener = Callable[[bool], None]


class GoogleAuthError(RuntimeError):
    """Raised when the Google sign-in or token exchange fails."""


class GoogleNotConfiguredError(GoogleAuthError):
    """Raised when OAuth client credentials are missing."""


def _pkce_pair() -> tuple[str, str]:
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


class GoogleAuthService:
    """Holds the Google OAuth session and publishes sign-in state changes.

    Token refresh may run on worker threads (it happens inside calendar
    fetches). The lock only guards reading and swapping the session; the
    token request itself runs unlocked. The authenticated flag only changes
    through :meth:`complete_sign_in` and :meth:`sign_out`, which callers
    invoke from the GUI thread.
    """

    def __init__(
        self,
        *,
        settings: GoogleSettings,
        store: TokenStore,
        http_client: Optional[httpx.Client] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.settings = settings
        self.store = store
        self.clock = clock
        self._http = http_client or httpx.Client(timeout=settings.timeout_seconds)
        self._lock = threading.Lock()
        self._tokens: Optional[OAuthTokens] = store.load()
        self._listeners: List[AuthListener] = []

    @property
    def is_authenticated(self) -> bool:
        return self._tokens is not None

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        state = self.is_authenticated
        for listener in list(self._listeners):
            listener(state)

    # ------------------------------------------------------------------ tokens

    def _post_token(self, data: Dict[str, Any]) -> Dict[str, Any]:
        response = self._http.post(self.settings.token_url, data=data)
        if response.status_code >= 400:
            raise GoogleAuthError(f"Token endpoint returned {response.status_code}: {response.text[:200]}")
        payload = response.json()
        if not isinstance(payload, dict) or "access_token" not in payload:
            raise GoogleAuthError("Token endpoint response has no access_token.")
        return payload

    def _client_fields(self) -> Dict[str, str]:
        fields = {"client_id": self.settings.client_id or ""}
        if self.settings.client_secret:
            fields["client_secret"] = self.settings.client_secret
        return fields

    def ensure_fresh_token(self) -> Optional[str]:
        """Return a usable access token, refreshing it first when it expired."""

        with self._lock:
            tokens = self._tokens
        if tokens is None:
            return None
        if not tokens.is_expired(self.clock()):
            return tokens.access_token
        if not tokens.refresh_token:
            logger.warning("Access token expired and no refresh token is stored")
            return None

        try:
            payload = self._post_token(
                {
                    **self._client_fields(),
                    "grant_type": "refresh_token",
                    "refresh_token": tokens.refresh_token,
                }
            )
        except (httpx.HTTPError, ValueError, GoogleAuthError) as exc:
            logger.warning("Token refresh failed: %s", exc)
            return None
        refreshed = OAuthTokens.from_token_response(payload, previous=tokens, now=self.clock())

        with self._lock:
            current = self._tokens
            if current is None:
                logger.info("Signed out during token refresh; dropping the new token")
                return None
            if current is not tokens:
                # Another refresh or a new sign-in already replaced the session.
                return current.access_token
            self._tokens = refreshed
            self.store.save(refreshed)
        logger.debug("Access token refreshed; expires at %s", refreshed.expires_at)
        return refreshed.access_token

    # ------------------------------------------------------------------ sign-in

    def authorization_url(self, *, redirect_uri: str, state: str, code_challenge: str) -> str:
        query = {
            "client_id": self.settings.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": self.settings.scope,
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        return f"{self.settings.auth_url}?{urlencode(query)}"

    def exchange_code(self, code: str, *, redirect_uri: str, code_verifier: str) -> OAuthTokens:
        try:
            payload = self._post_token(
                {
                    **self._client_fields(),
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": redirect_uri,
                    "code_verifier": code_verifier,
                }
            )
        except (httpx.HTTPError, ValueError) as exc:
            raise GoogleAuthError(f"Could not exchange authorization code: {exc}") from exc
        return OAuthTokens.from_token_response(payload, now=self.clock())

    def authorize_interactively(self, *, timeout: float = 120.0) -> OAuthTokens:
        """Run the browser consent flow; blocking, meant for a worker thread."""

        if not self.settings.is_configured:
            missing = ", ".join(self.settings.missing_env_vars)
            raise GoogleNotConfiguredError(f"Google OAuth client is not configured. Set {missing}.")

        verifier, challenge = _pkce_pair()
        state = secrets.token_urlsafe(16)
        with LoopbackReceiver(self.settings.redirect_host, self.settings.redirect_port) as receiver:
            url = self.authorization_url(redirect_uri=receiver.redirect_uri, state=state, code_challenge=challenge)
            logger.info("Opening browser for Google sign-in")
            webbrowser.open(url)
            if not receiver.wait(timeout):
                raise GoogleAuthError("Timed out waiting for the Google sign-in redirect.")
            if receiver.error:
                raise GoogleAuthError(receiver.error)
            if receiver.state != state:
                raise GoogleAuthError("OAuth state mismatch.")
            if not receiver.code:
                raise GoogleAuthError("No OAuth code received.")
            return self.exchange_code(receiver.code, redirect_uri=receiver.redirect_uri, code_verifier=verifier)

    def complete_sign_in(self, tokens: OAuthTokens) -> None:
        with self._lock:
            self._tokens = tokens
            self.store.save(tokens)
        logger.info("Google Calendar connected")
        self._notify()

    def sign_out(self) -> None:
        with self._lock:
            had_session = self._tokens is not None
            self._tokens = None
            self.store.clear()
        if had_session:
            logger.info("Google Calendar disconnected")
            self._notify()
