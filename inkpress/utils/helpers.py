import re
import secrets
from typing import Any, Dict, List, Optional

from bson import ObjectId

from inkpress.errors import ValidationError

PROFILE_FIELDS = {
    "personal_info.fullname": 1,
    "personal_info.username": 1,
    "personal_info.profile_img": 1,
}

def page_offset(page: int, page_size: int, deleted_doc_count: Optional[int] = None) -> int:
    """Number of documents to skip for a 1-based page.

    ``deleted_doc_count`` shifts the window back by the number of items the
    client removed since it fetched the previous page, so infinite scroll does
    not skip over documents.
    """
    skip = (page - 1) * page_size
    if deleted_doc_count:
        skip -= deleted_doc_count
    return max(skip, 0)

def to_object_id(value: Any, label: str = "id") -> ObjectId:
    """Parse an opaque identifier coming from the client"""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        raise ValidationError(f"Invalid {label}")
    return ObjectId(value)

def make_blog_slug(title: str) -> str:
    """URL-safe slug from a title plus a random suffix"""
    base = re.sub(r"[^a-zA-Z0-9]", " ", title).strip()
    base = re.sub(r"\s+", "-", base)
    return f"{base}-{secrets.token_hex(8)}".lstrip("-")

def contains_filter(query: str) -> Dict[str, str]:
    """Case-insensitive substring match on a single field"""
    return {"$regex": re.escape(query or ""), "$options": "i"}

async def attach_profiles(collection, docs: List[Dict[str, Any]], field: str) -> List[Dict[str, Any]]:
    """Replace the user id stored under ``field`` with that user's public profile"""
    user_ids = list({doc[field] for doc in docs if doc.get(field) is not None})
    if not user_ids:
        return docs

    users = await collection.find(
        {"_id": {"$in": user_ids}}, PROFILE_FIELDS
    ).to_list(len(user_ids))
    profiles = {user["_id"]: user for user in users}

    for doc in docs:
        if doc.get(field) in profiles:
            doc[field] = profiles[doc[field]]
    return docs

def convert_objectid_to_str(obj: Any) -> Any:
    """Convert MongoDB ObjectId to string in nested objects"""
    if isinstance(obj, ObjectId):
        return str(obj)
    elif isinstance(obj, dict):
        return {key: convert_objectid_to_str(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [convert_objectid_to_str(item) for item in obj]
    else:
        return obj
