# storefront/api/deps.py
from fastapi import Depends, HTTPException, Request, Response, status

from storefront.db.base import Backend
from storefront.models.user import Profile
from storefront.store.session import SessionRegistry, StorefrontSession, is_valid_session_id, new_session_id


def get_backend(request: Request) -> Backend:
    """
    Anonymous database client, for public reads such as the catalog.
    Usage:
        db = Depends(get_backend)
    """
    return request.app.state.backend


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


async def get_session(
    request: Request,
    response: Response,
    registry: SessionRegistry = Depends(get_registry),
) -> StorefrontSession:
    """
    Resolve the browser session from the session cookie, issuing a new id
    (and cookie) the first time a client shows up.
    """
    cookie_name = request.app.state.settings.SESSION_COOKIE
    sid = request.cookies.get(cookie_name)
    if not is_valid_session_id(sid):
        sid = new_session_id()
        response.set_cookie(key=cookie_name, value=sid, httponly=True, samesite="lax")
    return await registry.open(sid)


def get_current_user(session: StorefrontSession = Depends(get_session)) -> Profile:
    """Signed-in identity of the session. Raises 401 if nobody is signed in."""
    if session.auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return session.auth.user
