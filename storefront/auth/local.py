# storefront/auth/local.py
"""
Self-contained auth service for local development.

Credentials live in the `auth_users` table, sessions in `auth_sessions`; the
access token is a signed JWT whose `jti` points at the session row, so signing
out (which revokes the row) invalidates the token even before it expires.
Sign-up provisions the matching `profiles` row, as the hosted service's
database trigger does.
"""
import calendar
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from storefront.auth.provider import AuthError, AuthProvider, AuthSession, AuthUser, SignUpResult
from storefront.db.base import Backend
from storefront.db.query import EQ, Filter, Query

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


class LocalAuthProvider(AuthProvider):
    def __init__(self, backend: Backend, secret: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24):
        self.backend = backend
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    async def _find_user(self, email: str) -> Optional[Dict[str, Any]]:
        rows = await self.backend.select(Query("auth_users").eq("email", email.strip().lower()))
        return rows[0] if rows else None

    async def _create_session(self, user_id: str, email: str) -> AuthSession:
        session_id = uuid.uuid4().hex
        expire = datetime.utcnow() + timedelta(minutes=self.expire_minutes)
        await self.backend.insert(
            "auth_sessions",
            {"id": session_id, "user_id": user_id, "expires_at": expire.isoformat(sep=" "), "revoked": False},
        )
        token = jwt.encode({"sub": user_id, "email": email, "jti": session_id, "exp": expire}, self.secret, algorithm=self.algorithm)
        return AuthSession(access_token=token, user_id=user_id, email=email, expires_at=calendar.timegm(expire.utctimetuple()))

    def _decode(self, access_token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(access_token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise AuthError(f"Invalid token: {e}", status_code=401) from e

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        user = await self._find_user(email)
        if not user or not user.get("password_hash") or not verify_password(password, user["password_hash"]):
            raise AuthError("Invalid login credentials", status_code=400)
        return await self._create_session(str(user["id"]), str(user["email"]))

    async def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> SignUpResult:
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise AuthError("Unable to validate email address: invalid format", status_code=400)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters", status_code=422)
        if await self._find_user(email):
            raise AuthError("User already registered", status_code=422)

        user_id = str(uuid.uuid4())
        full_name = (metadata or {}).get("full_name") or ""
        await self.backend.insert(
            "auth_users",
            {"id": user_id, "email": email, "password_hash": hash_password(password), "full_name": full_name},
        )
        await self.backend.insert("profiles", {"id": user_id, "email": email, "full_name": full_name})
        logger.info("Registered user %s", user_id)

        session = await self._create_session(user_id, email)
        return SignUpResult(user=AuthUser(id=user_id, email=email), session=session)

    async def sign_out(self, access_token: str) -> None:
        claims = self._decode(access_token)
        await self.backend.update("auth_sessions", {"revoked": True}, [Filter("id", EQ, claims.get("jti"))])

    async def get_user(self, access_token: str) -> AuthUser:
        claims = self._decode(access_token)
        rows = await self.backend.select(Query("auth_sessions").eq("id", claims.get("jti")))
        if not rows or str(rows[0].get("revoked")).lower() in ("1", "true"):
            raise AuthError("Session not found", status_code=401)
        return AuthUser(id=str(claims["sub"]), email=str(claims.get("email") or ""))
