from fastapi import APIRouter, Depends, Query
from inkpress.database import get_database
from inkpress.models.user import ProfileImageUpdate, ProfileUpdate
from inkpress.services import users as user_service
from inkpress.utils.auth import CurrentUser, get_current_user
from inkpress.utils.helpers import convert_objectid_to_str, to_object_id

router = APIRouter()

@router.get("/search")
async def search_users(q: str = Query(..., min_length=1)):
    """Search users by username"""
    db = await get_database()
    users = await user_service.search_users(db, q)
    return {"users": convert_objectid_to_str(users)}

@router.put("/me/profile-img")
async def update_profile_img(
    payload: ProfileImageUpdate,
    current_user: CurrentUser = Depends(get_current_user)
):
    db = await get_database()
    url = await user_service.update_profile_img(db, to_object_id(current_user.id, "user id"), payload.url)
    return {"profile_img": url}

@router.put("/me/profile")
async def update_profile(
    payload: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user)
):
    """Update username, bio and social links of the signed-in user"""
    db = await get_database()
    username = await user_service.update_profile(
        db, to_object_id(current_user.id, "user id"),
        payload.username, payload.bio, payload.social_links
    )
    return {"username": username}

@router.get("/{username}")
async def get_profile(username: str):
    """Public profile by username"""
    db = await get_database()
    user = await user_service.get_profile(db, username)
    return convert_objectid_to_str(user)
