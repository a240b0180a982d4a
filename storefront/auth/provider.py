# storefront/auth/provider.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from storefront.db.base import BackendError


class AuthError(BackendError):
    pass


@dataclass
class AuthUser:
    id: str
    email: str


@dataclass
class AuthSession:
    access_token: str
    user_id: str
    email: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AuthSession":
        if not d:
            raise ValueError("Cannot construct AuthSession from empty data")
        expires_raw = d.get("expires_at")
        return cls(
            access_token=str(d["access_token"]),
            user_id=str(d.get("user_id") or ""),
            email=str(d.get("email") or ""),
            refresh_token=d.get("refresh_token") or None,
            expires_at=int(expires_raw) if expires_raw not in (None, "") else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SignUpResult:
    user: AuthUser
    # None when the service requires e-mail confirmation before the first sign-in
    session: Optional[AuthSession] = None


class AuthProvider:
    """Credential operations delegated to the external auth service."""

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        raise NotImplementedError

    async def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> SignUpResult:
        raise NotImplementedError

    async def sign_out(self, access_token: str) -> None:
        raise NotImplementedError

    async def get_user(self, access_token: str) -> AuthUser:
        """Validate an access token. Raises AuthError when it is unknown, expired or revoked."""
        raise NotImplementedError

    async def aclose(self) -> None:
        return None
