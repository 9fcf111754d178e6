import os
import re
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin import auth as fb_auth
from pydantic import BaseModel

from inkpress.errors import AuthenticationError, AuthorizationError

security = HTTPBearer(auto_error=False)

PASSWORD_REGEX = re.compile(r"^(?=.*\d)(?=.*[a-z])(?=.*[A-Z]).{6,20}$")
JWT_ALGORITHM = "HS256"
BCRYPT_MAX_BYTES = 72

class CurrentUser(BaseModel):
    id: str
    admin: bool = False

def _secret_key() -> str:
    secret = os.getenv("SECRET_ACCESS_KEY")
    if not secret:
        raise RuntimeError("SECRET_ACCESS_KEY is not configured")
    return secret

def is_valid_password(password: Optional[str]) -> bool:
    return bool(password) and PASSWORD_REGEX.match(password) is not None

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")

def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not password or not hashed:
        return False
    encoded = password.encode("utf-8")
    # bcrypt refuses input past 72 bytes; no stored password can be that long
    if len(encoded) > BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed.encode("utf-8"))

def create_access_token(user_id: Any, admin: bool = False) -> str:
    """Sign an access token carrying the user id and admin capability"""
    return jwt.encode({"id": str(user_id), "admin": bool(admin)}, _secret_key(), algorithm=JWT_ALGORITHM)

def decode_access_token(token: str) -> CurrentUser:
    try:
        payload = jwt.decode(token, _secret_key(), algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        raise AuthorizationError("Access token is invalid")

    if not payload.get("id"):
        raise AuthorizationError("Access token is invalid")

    return CurrentUser(id=payload["id"], admin=payload.get("admin", False))

def verify_google_token(access_token: str) -> Dict[str, str]:
    """Verify a Firebase ID token and return the Google profile it carries"""
    try:
        decoded = fb_auth.verify_id_token(access_token)
    except (ValueError, fb_auth.InvalidIdTokenError, fb_auth.ExpiredIdTokenError,
            fb_auth.RevokedIdTokenError, fb_auth.CertificateFetchError):
        raise AuthenticationError("Failed to authenticate with Google. Try with another Google account")

    picture = decoded.get("picture") or ""
    return {
        "email": decoded.get("email"),
        "name": decoded.get("name") or "",
        # Google serves 96px avatars by default
        "picture": picture.replace("s96-c", "s384-c"),
    }

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> CurrentUser:
    """Dependency to get current authenticated user from JWT token"""
    if not credentials or not credentials.credentials:
        raise AuthenticationError("No access token")

    return decode_access_token(credentials.credentials)
