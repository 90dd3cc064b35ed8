"""
Authentication strategies for the GitHub API.

Two strategies share one interface: a personal/actions token sent as a
bearer token, or GitHub App credentials exchanged for an installation token.
"""

import asyncio
import base64
import json
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone

import httpx

from codefreq.exceptions import AuthError
from codefreq.logging import get_logger
from codefreq.signers import Signer

logger = get_logger("auth")

# GitHub rejects app JWTs that live longer than 10 minutes
JWT_LIFETIME_SECONDS = 540
JWT_CLOCK_DRIFT_SECONDS = 60
TOKEN_REFRESH_MARGIN_SECONDS = 60


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def encode_app_jwt(app_id: str, signer: Signer, now: int | None = None) -> str:
    """
    Build the JWT a GitHub App uses to authenticate as itself.

    Args:
        app_id: The GitHub App id (JWT issuer)
        signer: Signer holding the App's private key
        now: Current Unix time (defaults to time.time())

    Returns:
        Compact serialized JWT
    """
    issued = int(time.time() if now is None else now)
    header = {"alg": signer.algorithm, "typ": "JWT"}
    claims = {
        "iat": issued - JWT_CLOCK_DRIFT_SECONDS,
        "exp": issued + JWT_LIFETIME_SECONDS,
        "iss": str(app_id),
    }
    signing_input = ".".join(
        _b64url(json.dumps(part, separators=(",", ":"), sort_keys=True).encode("utf-8"))
        for part in (header, claims)
    )
    signature = signer.sign(signing_input.encode("ascii"))
    return f"{signing_input}.{_b64url(signature)}"


class Authenticator(ABC):
    """Abstract base class for request authentication strategies."""

    @abstractmethod
    async def auth_headers(self, client: httpx.AsyncClient) -> dict[str, str]:
        """Return the headers that authenticate one request."""
        pass


class TokenAuth(Authenticator):
    """Bearer token authentication (personal access token or GITHUB_TOKEN)."""

    def __init__(self, token: str) -> None:
        if not token:
            raise AuthError("MISSING_TOKEN", "A GitHub token is required")
        self._token = token

    async def auth_headers(self, client: httpx.AsyncClient) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    def __repr__(self) -> str:
        return "TokenAuth(token=[REDACTED])"


class AppAuth(Authenticator):
    """
    GitHub App installation authentication.

    Signs an app JWT, exchanges it for an installation access token and
    caches that token until shortly before it expires. Concurrent requests
    share one exchange.
    """

    def __init__(self, app_id: str, signer: Signer, installation_id: str) -> None:
        """
        Initialize app authentication.

        Args:
            app_id: The GitHub App id
            signer: Signer holding the App's private key
            installation_id: Installation id of the App on the organization
        """
        self.app_id = str(app_id)
        self.installation_id = str(installation_id)
        self._signer = signer
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    async def auth_headers(self, client: httpx.AsyncClient) -> dict[str, str]:
        token = await self.installation_token(client)
        return {"Authorization": f"Bearer {token}"}

    async def installation_token(self, client: httpx.AsyncClient) -> str:
        """Return a valid installation token, exchanging a new one when needed."""
        async with self._lock:
            if self._token and time.time() < self._expires_at - TOKEN_REFRESH_MARGIN_SECONDS:
                return self._token

            jwt = encode_app_jwt(self.app_id, self._signer)
            path = f"/app/installations/{self.installation_id}/access_tokens"
            logger.debug("Exchanging app JWT for installation %s token", self.installation_id)
            try:
                response = await client.post(path, headers={"Authorization": f"Bearer {jwt}"})
            except httpx.RequestError as e:
                raise AuthError("TOKEN_EXCHANGE_FAILED", f"Installation token request failed: {e}") from e

            if response.status_code != 201:
                try:
                    message = response.json().get("message", "")
                except ValueError:
                    message = ""
                raise AuthError(
                    "TOKEN_EXCHANGE_FAILED",
                    f"Installation token request returned HTTP {response.status_code}"
                    + (f": {message}" if message else ""),
                    response.headers.get("X-GitHub-Request-Id"),
                )

            data = response.json()
            self._token = data["token"]
            self._expires_at = _parse_expiry(data.get("expires_at"))
            logger.info("Obtained installation token for installation %s", self.installation_id)
            return self._token

    def __repr__(self) -> str:
        return f"AppAuth(app_id={self.app_id!r}, installation_id={self.installation_id!r})"


def _parse_expiry(value: str | None) -> float:
    """Installation tokens last one hour; fall back to that when expires_at is missing."""
    if not value:
        return time.time() + 3600
    expires = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires.timestamp()
