# storefront/auth/rest.py
"""Client for the hosted auth service (GoTrue-compatible endpoints)."""
import logging
from typing import Any, Dict, Optional

import httpx

from storefront.auth.provider import AuthError, AuthProvider, AuthSession, AuthUser, SignUpResult

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if not isinstance(body, dict):
        return response.text or f"HTTP {response.status_code}"
    for key in ("error_description", "msg", "message", "error"):
        if body.get(key):
            return str(body[key])
    return f"HTTP {response.status_code}"


def _session_from_payload(data: Dict[str, Any]) -> AuthSession:
    user = data.get("user") or {}
    return AuthSession(
        access_token=data["access_token"],
        user_id=str(user.get("id") or ""),
        email=str(user.get("email") or ""),
        refresh_token=data.get("refresh_token"),
        expires_at=data.get("expires_at"),
    )


class RestAuthProvider(AuthProvider):
    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._http_client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._http_client.aclose()

    async def _request(self, method: str, path: str, token: Optional[str] = None, **kwargs) -> Dict[str, Any]:
        headers = {"apikey": self.api_key, "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self.base_url}/auth/v1{path}"
        try:
            response = await self._http_client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Auth request to %s failed: %s", url, e)
            raise AuthError(f"Auth service unreachable: {e}") from e
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("Auth request %s %s -> %s %s", method, path, response.status_code, message)
            raise AuthError(message, status_code=response.status_code)
        return response.json() if response.content else {}

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        data = await self._request(
            "POST", "/token", params={"grant_type": "password"}, json={"email": email, "password": password}
        )
        return _session_from_payload(data)

    async def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> SignUpResult:
        data = await self._request("POST", "/signup", json={"email": email, "password": password, "data": metadata or {}})
        # with auto-confirm the service answers with a session, otherwise with the bare user
        if data.get("access_token"):
            session = _session_from_payload(data)
            return SignUpResult(user=AuthUser(id=session.user_id, email=session.email), session=session)
        user = data.get("user") or data
        return SignUpResult(user=AuthUser(id=str(user.get("id") or ""), email=str(user.get("email") or email)))

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/logout", token=access_token)

    async def get_user(self, access_token: str) -> AuthUser:
        data = await self._request("GET", "/user", token=access_token)
        return AuthUser(id=str(data.get("id") or ""), email=str(data.get("email") or ""))
