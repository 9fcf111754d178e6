from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from inkpress.database import get_database
from inkpress.models.user import (
    AuthResponse, ChangePasswordRequest, GoogleAuthRequest, SignInRequest, SignUpRequest
)
from inkpress.services import users as user_service
from inkpress.utils.auth import CurrentUser, get_current_user, verify_google_token
from inkpress.utils.helpers import to_object_id

router = APIRouter()

@router.post("/sign-up", response_model=AuthResponse)
async def sign_up(payload: SignUpRequest):
    """Create a password account"""
    db = await get_database()
    return await user_service.sign_up(db, payload.fullname, payload.email, payload.password)

@router.post("/sign-in", response_model=AuthResponse)
async def sign_in(payload: SignInRequest):
    """Sign in with email and password"""
    db = await get_database()
    return await user_service.sign_in(db, payload.email, payload.password)

@router.post("/google-auth", response_model=AuthResponse)
async def google_auth(payload: GoogleAuthRequest):
    """Sign in (or sign up on first use) with a Google ID token"""
    profile = await run_in_threadpool(verify_google_token, payload.access_token)
    db = await get_database()
    return await user_service.google_sign_in(db, profile)

@router.post("/change-password")
async def change_password(
    payload: ChangePasswordRequest,
    current_user: CurrentUser = Depends(get_current_user)
):
    db = await get_database()
    await user_service.change_password(
        db, to_object_id(current_user.id, "user id"),
        payload.current_password, payload.new_password
    )
    return {"status": "Password changed"}
