# storefront/api/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status

from storefront.api.deps import get_current_user, get_session
from storefront.api.schemas.auth import ProfileOut, ProfileUpdate, SignInRequest, SignUpRequest
from storefront.models.user import Profile
from storefront.store.session import StorefrontSession

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_state(session: StorefrontSession) -> dict:
    auth = session.auth
    return {
        "user": auth.user.to_dict() if auth.user else None,
        "signed_in": auth.user is not None,
        "error": auth.error,
    }


@router.post("/sign-in")
async def sign_in(payload: SignInRequest, session: StorefrontSession = Depends(get_session)):
    """
    Exchange credentials with the auth service. Failures never reveal why
    (unknown e-mail, wrong password and outages look the same to the client).
    """
    await session.auth.sign_in(payload.email, payload.password)
    if session.auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=session.auth.error)
    return _auth_state(session)


@router.post("/sign-up", status_code=201)
async def sign_up(payload: SignUpRequest, session: StorefrontSession = Depends(get_session)):
    await session.auth.sign_up(payload.email, payload.password, payload.full_name)
    if session.auth.user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=session.auth.error)
    return _auth_state(session)


@router.post("/sign-out")
async def sign_out(session: StorefrontSession = Depends(get_session)):
    await session.auth.sign_out()
    if session.auth.user is not None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=session.auth.error)
    return _auth_state(session)


@router.get("/session")
async def get_auth_session(session: StorefrontSession = Depends(get_session)):
    """Re-validate the stored session with the auth service and refresh the profile."""
    await session.auth.get_session()
    return _auth_state(session)


@router.get("/me", response_model=ProfileOut)
async def me(user: Profile = Depends(get_current_user)):
    return user.to_dict()


@router.patch("/profile", response_model=ProfileOut)
async def update_profile(
    payload: ProfileUpdate,
    user: Profile = Depends(get_current_user),
    session: StorefrontSession = Depends(get_session),
):
    fields = payload.model_dump(exclude_unset=True)
    if not fields:
        return user.to_dict()
    await session.auth.update_profile(**fields)
    if session.auth.error:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=session.auth.error)
    return session.auth.user.to_dict()
