# storefront/store/session.py
"""Per-browser state: one cart, one identity and the current checkout attempt."""
import asyncio
import logging
import re
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional

from storefront.auth.provider import AuthProvider
from storefront.db.base import Backend
from storefront.services.checkout import CheckoutFlow
from storefront.storage import LocalStorage
from storefront.store.auth import AuthStore
from storefront.store.cart import CartStore

logger = logging.getLogger(__name__)

SID_PATTERN = re.compile(r"[0-9a-f]{32}")


def new_session_id() -> str:
    return uuid.uuid4().hex


def is_valid_session_id(sid: Optional[str]) -> bool:
    return bool(sid) and SID_PATTERN.fullmatch(sid) is not None


@dataclass
class StorefrontSession:
    sid: str
    cart: CartStore
    auth: AuthStore
    tax_rate: Decimal = Decimal("0.10")
    _checkout: Optional[CheckoutFlow] = field(default=None, repr=False)

    @property
    def busy(self) -> bool:
        """True while an order is being placed; the cart must not change then."""
        return self._checkout is not None and self._checkout.submitting

    @property
    def checkout(self) -> CheckoutFlow:
        """The current checkout attempt; a completed one is replaced by a fresh flow."""
        if self._checkout is None or self._checkout.finished:
            self._checkout = CheckoutFlow(self.cart, self.auth, tax_rate=self.tax_rate)
        return self._checkout


class SessionRegistry:
    """
    Keeps the most recently used StorefrontSessions in memory. A session is
    restored from its local snapshots the first time its id is seen, and again
    after it has been evicted; at most `max_sessions` stay live.
    """

    def __init__(
        self,
        backend: Backend,
        provider: AuthProvider,
        storage_dir: Path,
        tax_rate: Decimal = Decimal("0.10"),
        profile_fetch_attempts: int = 5,
        profile_fetch_backoff: float = 0.25,
        max_sessions: int = 1000,
    ):
        self.backend = backend
        self.provider = provider
        self.storage_dir = Path(storage_dir)
        self.tax_rate = tax_rate
        self.profile_fetch_attempts = profile_fetch_attempts
        self.profile_fetch_backoff = profile_fetch_backoff
        self.max_sessions = max(1, int(max_sessions))
        self.sessions: "OrderedDict[str, StorefrontSession]" = OrderedDict()
        # one lock per session id that is currently being restored
        self._opening: Dict[str, asyncio.Lock] = {}

    async def open(self, sid: str) -> StorefrontSession:
        if not is_valid_session_id(sid):
            raise ValueError(f"Invalid session id: {sid!r}")
        session = self._touch(sid)
        if session is not None:
            return session

        lock = self._opening.setdefault(sid, asyncio.Lock())
        async with lock:
            # another request may have restored it while we waited
            session = self._touch(sid)
            if session is not None:
                return session
            try:
                session = await self._restore(sid)
            finally:
                if self._opening.get(sid) is lock:
                    del self._opening[sid]
            self.sessions[sid] = session
            self._evict(keep=sid)
        return session

    def _touch(self, sid: str) -> Optional[StorefrontSession]:
        session = self.sessions.get(sid)
        if session is not None:
            self.sessions.move_to_end(sid)
        return session

    async def _restore(self, sid: str) -> StorefrontSession:
        storage = LocalStorage(self.storage_dir / sid)
        cart = CartStore.restore(storage)
        auth = AuthStore.restore(
            self.provider,
            self.backend,
            storage,
            profile_fetch_attempts=self.profile_fetch_attempts,
            profile_fetch_backoff=self.profile_fetch_backoff,
        )
        await auth.get_session()
        logger.debug("Opened session %s (%d cart lines, signed in: %s)", sid, len(cart.items), auth.user is not None)
        return StorefrontSession(sid=sid, cart=cart, auth=auth, tax_rate=self.tax_rate)

    def _evict(self, keep: str) -> None:
        """Drop least recently used sessions; their state is already on disk."""
        for sid in list(self.sessions):
            if len(self.sessions) <= self.max_sessions:
                break
            if sid == keep or self.sessions[sid].busy:
                continue
            del self.sessions[sid]
            logger.debug("Evicted session %s", sid)
