"""Blog lifecycle, likes, reads and blog listings."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.errors import PyMongoError

from inkpress.errors import AuthorizationError, NotFoundError, ValidationError
from inkpress.services import counters, notifications
from inkpress.utils.helpers import attach_profiles, contains_filter, make_blog_slug, page_offset

logger = logging.getLogger(__name__)

BLOGS_PAGE_SIZE = 5
TRENDING_LIMIT = 5
DESC_LIMIT = 200
TAGS_LIMIT = 10

CARD_FIELDS = {
    "blog_id": 1, "title": 1, "desc": 1, "banner": 1, "activity": 1,
    "tags": 1, "publishedAt": 1, "author": 1, "_id": 0,
}
DASHBOARD_FIELDS = {
    "title": 1, "banner": 1, "publishedAt": 1, "blog_id": 1,
    "activity": 1, "desc": 1, "draft": 1, "_id": 0,
}


def validate_blog(title: str, desc: str, banner: str, content: Dict[str, Any],
                  tags: List[str], draft: bool):
    """Drafts only need a title; published posts must be complete"""
    if not title or not title.strip():
        raise ValidationError("You must provide a title")

    if draft:
        return

    if not desc or len(desc) > DESC_LIMIT:
        raise ValidationError(f"You must provide a blog description under {DESC_LIMIT} characters")
    if not banner:
        raise ValidationError("You must provide blog banner to publish it")
    if not (content or {}).get("blocks"):
        raise ValidationError("There must be some blog content to publish it")
    if not tags or len(tags) > TAGS_LIMIT:
        raise ValidationError(f"Provide tags to publish it, max {TAGS_LIMIT} tags")


async def save_blog(db, user_id: ObjectId, is_admin: bool, data: Dict[str, Any]) -> str:
    """Create a blog or, when ``data["id"]`` names an existing slug, edit it.

    Returns the blog slug.
    """
    if not is_admin:
        raise AuthorizationError("You don't have permissions to create any blog post")

    draft = bool(data.get("draft"))
    tags = list(dict.fromkeys(tag.lower() for tag in data.get("tags") or []))
    validate_blog(data.get("title"), data.get("desc"), data.get("banner"),
                  data.get("content"), tags, draft)

    fields = {
        "title": data["title"],
        "desc": data.get("desc") or "",
        "banner": data.get("banner") or "",
        "content": data.get("content") or {},
        "tags": tags,
        "draft": draft,
    }

    slug = data.get("id")
    if slug:
        return await _edit_blog(db, user_id, slug, fields)

    blog = {
        **fields,
        "blog_id": make_blog_slug(data["title"]),
        "author": user_id,
        "activity": {
            "total_likes": 0,
            "total_comments": 0,
            "total_reads": 0,
            "total_parent_comments": 0,
        },
        "comments": [],
        "publishedAt": datetime.utcnow(),
    }
    result = await db.blogs.insert_one(blog)

    await counters.apply_deltas(
        db.users, {"_id": user_id},
        counters.post_created_deltas(draft),
        event="post created",
        push={"blogs": result.inserted_id},
    )
    logger.info("Blog %s created by %s (draft=%s)", blog["blog_id"], user_id, draft)
    return blog["blog_id"]


async def _edit_blog(db, user_id: ObjectId, slug: str, fields: Dict[str, Any]) -> str:
    previous = await db.blogs.find_one_and_update(
        {"blog_id": slug, "author": user_id}, {"$set": fields}
    )
    if not previous:
        if await db.blogs.find_one({"blog_id": slug}, {"_id": 1}):
            raise AuthorizationError("You can only edit your own blogs")
        raise NotFoundError("Blog not found")

    await counters.apply_deltas(
        db.users, {"_id": user_id},
        counters.post_draft_changed_deltas(bool(previous.get("draft")), fields["draft"]),
        event="post edited",
    )
    return slug


async def get_blog(db, slug: str, allow_draft: bool = False, mode: Optional[str] = None) -> Dict[str, Any]:
    """Load a blog for display and record the read unless it is opened for editing"""
    blog = await db.blogs.find_one(
        {"blog_id": slug},
        {"title": 1, "desc": 1, "content": 1, "banner": 1, "activity": 1,
         "publishedAt": 1, "blog_id": 1, "tags": 1, "draft": 1, "author": 1},
    )
    if not blog:
        raise NotFoundError("Blog not found")

    if blog.get("draft") and not allow_draft:
        raise AuthorizationError("You can't access draft blogs")

    author_id = blog.get("author")

    if mode != "edit":
        await counters.apply_deltas(db.blogs, {"_id": blog["_id"]}, counters.read_deltas(), event="read")
        await counters.apply_deltas(
            db.users, {"_id": author_id},
            counters.read_deltas(counters.USER_TOTAL_READS), event="author read",
        )

    await attach_profiles(db.users, [blog], "author")
    return blog


async def like_blog(db, blog_id: ObjectId, user_id: ObjectId, is_liked_by_user: bool) -> bool:
    """Toggle the caller's like; returns the new liked state.

    The stored like notification is the source of truth, so a repeated
    request for the state the user is already in changes nothing.
    """
    liked = not is_liked_by_user

    blog = await db.blogs.find_one({"_id": blog_id}, {"author": 1})
    if not blog:
        raise NotFoundError("Blog not found")

    if await notifications.is_liked_by_user(db, user_id, blog_id) == liked:
        return liked

    if await notifications.on_like(db, blog_id, user_id, blog["author"], liked):
        await counters.apply_deltas(
            db.blogs, {"_id": blog_id}, counters.like_deltas(liked),
            event="like" if liked else "unlike",
        )
    return liked


async def delete_blog(db, slug: str, user_id: ObjectId, is_admin: bool):
    """Delete a blog with its comments and notifications"""
    if not is_admin:
        raise AuthorizationError("You don't have permissions to delete the blog post")

    blog = await db.blogs.find_one({"blog_id": slug}, {"author": 1})
    if not blog:
        raise NotFoundError("Blog not found")
    if blog["author"] != user_id:
        raise AuthorizationError("You can only delete your own blogs")

    blog = await db.blogs.find_one_and_delete({"_id": blog["_id"]})
    if not blog:
        raise NotFoundError("Blog not found")

    try:
        await db.notifications.delete_many({"blog": blog["_id"]})
        await db.comments.delete_many({"blog_id": blog["_id"]})
    except PyMongoError as e:
        logger.warning("Cleanup after deleting blog %s failed: %s", slug, e)

    await counters.apply_deltas(
        db.users, {"_id": blog["author"]},
        counters.post_deleted_deltas(bool(blog.get("draft"))),
        event="post deleted",
        pull={"blogs": blog["_id"]},
    )
    logger.info("Blog %s deleted by %s", slug, user_id)


def search_filter(tag: Optional[str] = None, query: Optional[str] = None,
                  author: Optional[ObjectId] = None,
                  eliminate_blog: Optional[str] = None) -> Dict[str, Any]:
    """Published blogs matching exactly one of tag, title text or author"""
    if tag:
        find_query = {"tags": tag.lower(), "draft": False}
        if eliminate_blog:
            find_query["blog_id"] = {"$ne": eliminate_blog}
        return find_query
    if query:
        return {"draft": False, "title": contains_filter(query)}
    if author:
        return {"author": author, "draft": False}
    raise ValidationError("Provide a tag, a query or an author to search")


async def _blog_cards(db, find_query: Dict[str, Any], skip: int, limit: int, sort) -> List[Dict[str, Any]]:
    blogs = await db.blogs.find(find_query, CARD_FIELDS)\
        .sort(sort)\
        .skip(skip)\
        .limit(limit)\
        .to_list(limit)
    return await attach_profiles(db.users, blogs, "author")


async def latest_blogs(db, page: int) -> List[Dict[str, Any]]:
    skip = page_offset(page, BLOGS_PAGE_SIZE)
    return await _blog_cards(db, {"draft": False}, skip, BLOGS_PAGE_SIZE, [("publishedAt", -1)])


async def count_latest_blogs(db) -> int:
    return await db.blogs.count_documents({"draft": False})


async def trending_blogs(db) -> List[Dict[str, Any]]:
    blogs = await db.blogs.find({"draft": False}, {"blog_id": 1, "title": 1, "publishedAt": 1, "author": 1, "_id": 0})\
        .sort([("activity.total_reads", -1), ("activity.total_likes", -1), ("publishedAt", -1)])\
        .limit(TRENDING_LIMIT)\
        .to_list(TRENDING_LIMIT)
    return await attach_profiles(db.users, blogs, "author")


async def search_blogs(db, page: int, limit: Optional[int] = None, **filters) -> List[Dict[str, Any]]:
    page_size = limit or BLOGS_PAGE_SIZE
    skip = page_offset(page, page_size)
    return await _blog_cards(db, search_filter(**filters), skip, page_size, [("publishedAt", -1)])


async def count_search_blogs(db, **filters) -> int:
    return await db.blogs.count_documents(search_filter(**filters))


def _dashboard_filter(user_id: ObjectId, draft: bool, query: Optional[str]) -> Dict[str, Any]:
    return {"author": user_id, "draft": draft, "title": contains_filter(query)}


async def user_written_blogs(db, user_id: ObjectId, page: int, draft: bool,
                             query: Optional[str] = None,
                             deleted_doc_count: Optional[int] = None) -> List[Dict[str, Any]]:
    """The caller's own posts (published or drafts) for the dashboard"""
    skip = page_offset(page, BLOGS_PAGE_SIZE, deleted_doc_count)
    return await db.blogs.find(_dashboard_filter(user_id, draft, query), DASHBOARD_FIELDS)\
        .sort("publishedAt", -1)\
        .skip(skip)\
        .limit(BLOGS_PAGE_SIZE)\
        .to_list(BLOGS_PAGE_SIZE)


async def count_user_written_blogs(db, user_id: ObjectId, draft: bool, query: Optional[str] = None) -> int:
    return await db.blogs.count_documents(_dashboard_filter(user_id, draft, query))
