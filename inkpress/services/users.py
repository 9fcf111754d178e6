"""Accounts: sign-up, password and Google sign-in, profiles."""
import logging
import secrets
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from bson import ObjectId
from fastapi.concurrency import run_in_threadpool
from pymongo.errors import DuplicateKeyError

from inkpress.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from inkpress.utils.auth import (
    create_access_token,
    hash_password,
    is_valid_password,
    verify_password,
)
from inkpress.utils.helpers import contains_filter

logger = logging.getLogger(__name__)

BIO_LIMIT = 150
USER_SEARCH_LIMIT = 50
SOCIAL_KEYS = ("youtube", "instagram", "facebook", "twitter", "github", "website")
PASSWORD_RULE = "Password should be 6 to 20 characters long with a numeric, 1 lowercase and 1 uppercase letters"
DEFAULT_AVATAR = "https://api.dicebear.com/6.x/notionists-neutral/svg?seed={seed}"

PRIVATE_FIELDS = {
    "personal_info.password": 0,
    "google_auth": 0,
    "blogs": 0,
}


def format_auth_response(user: Dict[str, Any]) -> Dict[str, Any]:
    """Session payload handed to the client after any successful sign-in"""
    personal_info = user["personal_info"]
    return {
        "access_token": create_access_token(user["_id"], user.get("admin", False)),
        "profile_img": personal_info.get("profile_img"),
        "username": personal_info["username"],
        "fullname": personal_info["fullname"],
        "isAdmin": user.get("admin", False),
    }


def new_user_document(fullname: str, email: str, username: str,
                      password: Optional[str] = None, profile_img: Optional[str] = None,
                      google_auth: bool = False) -> Dict[str, Any]:
    personal_info = {
        "fullname": fullname,
        "email": email,
        "username": username,
        "bio": "",
        "profile_img": profile_img or DEFAULT_AVATAR.format(seed=username),
    }
    if password:
        personal_info["password"] = password

    return {
        "personal_info": personal_info,
        "social_links": {key: "" for key in SOCIAL_KEYS},
        "account_info": {"total_posts": 0, "total_reads": 0},
        "google_auth": google_auth,
        "admin": False,
        "blogs": [],
        "joinedAt": datetime.utcnow(),
    }


async def generate_username(db, email: str) -> str:
    """Email local part, suffixed when someone already has it"""
    username = email.split("@")[0]
    if await db.users.find_one({"personal_info.username": username}, {"_id": 1}):
        username += secrets.token_hex(3)[:5]
    return username


def duplicate_key_message(error: DuplicateKeyError) -> str:
    """Name the unique field an insert collided on"""
    key_pattern = (error.details or {}).get("keyPattern") or {}
    if "personal_info.username" in key_pattern:
        return "Username is already taken"
    return "Email already exists"


async def sign_up(db, fullname: str, email: str, password: str) -> Dict[str, Any]:
    if len(fullname or "") < 3:
        raise ValidationError("Full Name must be at least 3 letters long")
    if not is_valid_password(password):
        raise ValidationError(PASSWORD_RULE)

    username = await generate_username(db, email)
    hashed = await run_in_threadpool(hash_password, password)
    user = new_user_document(fullname, email, username, password=hashed)

    try:
        result = await db.users.insert_one(user)
    except DuplicateKeyError as e:
        raise ConflictError(duplicate_key_message(e))

    user["_id"] = result.inserted_id
    logger.info("New account %s", username)
    return format_auth_response(user)


async def sign_in(db, email: str, password: str) -> Dict[str, Any]:
    user = await db.users.find_one({"personal_info.email": email})
    if not user:
        raise AuthorizationError("Email not found")

    if user.get("google_auth"):
        raise AuthorizationError("Account was created using Google, try logging in with Google")

    if not await run_in_threadpool(verify_password, password, user["personal_info"].get("password")):
        raise AuthorizationError("Incorrect password")

    return format_auth_response(user)


async def google_sign_in(db, profile: Dict[str, str]) -> Dict[str, Any]:
    """Sign in with a verified Google profile, creating the account on first use"""
    email = profile["email"]
    if not email:
        raise ValidationError("Google account has no email")

    user = await db.users.find_one(
        {"personal_info.email": email},
        {"personal_info.fullname": 1, "personal_info.username": 1,
         "personal_info.profile_img": 1, "google_auth": 1, "admin": 1},
    )

    if user:
        if not user.get("google_auth"):
            raise AuthorizationError(
                "This email was signed up without Google. Please login with password to access this account"
            )
        return format_auth_response(user)

    username = await generate_username(db, email)
    user = new_user_document(profile["name"], email, username,
                             profile_img=profile.get("picture"), google_auth=True)
    try:
        result = await db.users.insert_one(user)
    except DuplicateKeyError as e:
        raise ConflictError(duplicate_key_message(e))

    user["_id"] = result.inserted_id
    logger.info("New Google account %s", username)
    return format_auth_response(user)


async def change_password(db, user_id: ObjectId, current_password: str, new_password: str):
    if not is_valid_password(current_password) or not is_valid_password(new_password):
        raise ValidationError(PASSWORD_RULE)

    user = await db.users.find_one({"_id": user_id}, {"personal_info.password": 1, "google_auth": 1})
    if not user:
        raise NotFoundError("User not found")

    if user.get("google_auth"):
        raise AuthorizationError("You can't change account's password because you logged in through Google")

    if not await run_in_threadpool(verify_password, current_password, user["personal_info"].get("password")):
        raise AuthorizationError("Incorrect current password")

    hashed = await run_in_threadpool(hash_password, new_password)
    await db.users.update_one(
        {"_id": user_id}, {"$set": {"personal_info.password": hashed}}
    )


async def get_profile(db, username: str) -> Dict[str, Any]:
    user = await db.users.find_one({"personal_info.username": username}, PRIVATE_FIELDS)
    if not user:
        raise NotFoundError("User not found")
    return user


async def search_users(db, query: str):
    return await db.users.find(
        {"personal_info.username": contains_filter(query)},
        {"personal_info.fullname": 1, "personal_info.username": 1,
         "personal_info.profile_img": 1, "_id": 0},
    ).limit(USER_SEARCH_LIMIT).to_list(USER_SEARCH_LIMIT)


async def update_profile_img(db, user_id: ObjectId, url: str) -> str:
    if not url:
        raise ValidationError("You must provide an image URL")

    result = await db.users.update_one({"_id": user_id}, {"$set": {"personal_info.profile_img": url}})
    if not result.matched_count:
        raise NotFoundError("User not found")
    return url


def validate_social_links(social_links: Dict[str, str]) -> Dict[str, str]:
    """Every non-empty link must be a full URL on the matching site"""
    cleaned = {}
    for key, link in (social_links or {}).items():
        if key not in SOCIAL_KEYS:
            raise ValidationError(f"{key} is not a supported link")
        link = link or ""
        if link:
            parsed = urlparse(link)
            if parsed.scheme not in ("http", "https") or not parsed.hostname:
                raise ValidationError("You must provide full social links with http(s) included")
            if key != "website" and f"{key}.com" not in parsed.hostname:
                raise ValidationError(f"{key} link is invalid, you must enter a full link")
        cleaned[key] = link
    return cleaned


async def update_profile(db, user_id: ObjectId, username: str, bio: str,
                         social_links: Dict[str, str]) -> str:
    if len(username or "") < 3:
        raise ValidationError("Username should be at least 3 letters long")
    if len(bio or "") > BIO_LIMIT:
        raise ValidationError(f"Bio shouldn't be more than {BIO_LIMIT} letters long")

    update = {
        "personal_info.username": username,
        "personal_info.bio": bio or "",
    }
    for key, link in validate_social_links(social_links).items():
        update[f"social_links.{key}"] = link

    try:
        result = await db.users.update_one({"_id": user_id}, {"$set": update})
    except DuplicateKeyError:
        raise ConflictError("Username is already taken")

    if not result.matched_count:
        raise NotFoundError("User not found")
    return username
