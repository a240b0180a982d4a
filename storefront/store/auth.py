# storefront/store/auth.py
"""
Auth state container: the current identity (profile + service session) for
one browser session. Credential work is delegated to the AuthProvider; this
class only sequences the calls, mirrors the profile row locally and turns
failures into short messages for the user.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from storefront.auth.provider import AuthProvider, AuthSession
from storefront.db.base import Backend, BackendError
from storefront.db.query import EQ, Filter, Query
from storefront.models.user import Profile
from storefront.storage import AUTH_NAMESPACE, LocalStorage

logger = logging.getLogger(__name__)

SIGN_IN_FAILED = "Invalid email or password. Please try again."
SIGN_UP_FAILED = "Registration failed. Please try again."
PROFILE_UPDATE_FAILED = "Failed to update profile. Please try again."

# failures we turn into user-facing messages; anything else is a bug and propagates
RECOVERABLE = (BackendError, KeyError, ValueError)


class AuthStore:
    def __init__(
        self,
        provider: AuthProvider,
        backend: Backend,
        storage: Optional[LocalStorage] = None,
        profile_fetch_attempts: int = 5,
        profile_fetch_backoff: float = 0.25,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.provider = provider
        self.backend = backend
        self.storage = storage
        self.profile_fetch_attempts = max(1, int(profile_fetch_attempts))
        self.profile_fetch_backoff = profile_fetch_backoff
        self._sleep = sleep

        self.user: Optional[Profile] = None
        self.session: Optional[AuthSession] = None
        self.loading = False
        self.error: Optional[str] = None

    # --- persistence ---

    @classmethod
    def restore(cls, provider: AuthProvider, backend: Backend, storage: LocalStorage, **kwargs) -> "AuthStore":
        store = cls(provider, backend, storage=storage, **kwargs)
        raw = storage.get_item(AUTH_NAMESPACE) or {}
        try:
            if raw.get("session"):
                store.session = AuthSession.from_dict(raw["session"])
            if raw.get("user"):
                store.user = Profile.from_dict(raw["user"])
        except (AttributeError, KeyError, ValueError) as e:
            logger.warning("Discarding malformed auth snapshot: %s", e)
            store.user, store.session = None, None
        return store

    def snapshot(self) -> Dict[str, Any]:
        return {
            "session": self.session.to_dict() if self.session else None,
            "user": self.user.to_dict() if self.user else None,
        }

    def _persist(self) -> None:
        if self.storage is not None:
            self.storage.set_item(AUTH_NAMESPACE, self.snapshot())

    def _set(self, **state) -> None:
        for k, v in state.items():
            setattr(self, k, v)
        self._persist()

    # --- helpers ---

    @property
    def db(self) -> Backend:
        """Database client acting as the signed-in user (or anonymously)."""
        return self.backend.for_session(self.session.access_token if self.session else None)

    async def _fetch_profile(self, user_id: str, session: Optional[AuthSession]) -> Profile:
        db = self.backend.for_session(session.access_token if session else None)
        row = await db.single(Query("profiles").eq("id", user_id))
        return Profile.from_dict(row)

    async def _fetch_provisioned_profile(self, user_id: str, session: Optional[AuthSession]) -> Profile:
        """
        The profile row is created by the service after sign-up returns, so the
        first reads may miss it. Retry with exponential backoff, bounded.
        """
        last_error: Optional[Exception] = None
        for attempt in range(self.profile_fetch_attempts):
            try:
                return await self._fetch_profile(user_id, session)
            except BackendError as e:
                last_error = e
                if attempt + 1 < self.profile_fetch_attempts:
                    delay = self.profile_fetch_backoff * (2 ** attempt)
                    logger.info("Profile %s not ready (attempt %d), retrying in %.2fs", user_id, attempt + 1, delay)
                    await self._sleep(delay)
        raise last_error

    # --- operations ---

    async def get_session(self) -> None:
        """Re-validate the persisted session and refresh its profile."""
        if not self.session:
            return
        try:
            auth_user = await self.provider.get_user(self.session.access_token)
            profile = await self._fetch_profile(auth_user.id, self.session)
            self._set(user=profile)
        except RECOVERABLE as e:
            logger.error("Session error: %s", e)
            self._set(user=None, session=None, error=getattr(e, "message", str(e)))

    async def sign_in(self, email: str, password: str) -> None:
        self._set(loading=True, error=None)
        try:
            session = await self.provider.sign_in_with_password(email, password)
            profile = await self._fetch_profile(session.user_id, session)
            self._set(session=session, user=profile, error=None)
        except RECOVERABLE as e:
            logger.error("Sign in error: %s", e)
            self._set(error=SIGN_IN_FAILED, user=None, session=None)
        finally:
            self._set(loading=False)

    async def sign_up(self, email: str, password: str, full_name: str) -> None:
        self._set(loading=True, error=None)
        try:
            result = await self.provider.sign_up(email, password, {"full_name": full_name})
            profile = await self._fetch_provisioned_profile(result.user.id, result.session)
            self._set(session=result.session, user=profile, error=None)
        except RECOVERABLE as e:
            logger.error("Sign up error: %s", e)
            self._set(error=SIGN_UP_FAILED, user=None, session=None)
        finally:
            self._set(loading=False)

    async def sign_out(self) -> None:
        self._set(loading=True)
        try:
            if self.session:
                await self.provider.sign_out(self.session.access_token)
            self._set(user=None, session=None, error=None)
        except BackendError as e:
            logger.error("Sign out error: %s", e)
            self._set(error=e.message)
        finally:
            self._set(loading=False)

    def apply_profile_fields(self, **fields) -> None:
        """Merge fields already written to the server into the local identity."""
        if self.user:
            self._set(user=self.user.merged(**fields))

    async def update_profile(self, **fields) -> None:
        if not self.user:
            return
        # validate field names before touching the service
        updated = self.user.merged(**fields)
        self._set(loading=True, error=None)
        try:
            await self.db.update("profiles", fields, [Filter("id", EQ, self.user.id)])
            self._set(user=updated, error=None)
        except BackendError as e:
            logger.error("Profile update error: %s", e)
            self._set(error=PROFILE_UPDATE_FAILED)
        finally:
            self._set(loading=False)
