"""Notification fanout and the notification feed."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.errors import PyMongoError

from inkpress.utils.helpers import PROFILE_FIELDS, page_offset

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("like", "comment", "reply")
NOTIFICATIONS_PAGE_SIZE = 10


def feed_filter(user_id: ObjectId, filter_type: str = "all") -> Dict[str, Any]:
    """Notifications addressed to ``user_id``, excluding the user's own actions"""
    query = {"notification_for": user_id, "user": {"$ne": user_id}}
    if filter_type and filter_type != "all":
        query["type"] = filter_type
    return query


async def on_like(db, blog_id: ObjectId, user_id: ObjectId, blog_author: ObjectId, liked: bool) -> bool:
    """Create the like notification, or drop it when the like is withdrawn.

    Returns True when the stored like state actually changed.
    """
    try:
        if liked:
            await db.notifications.insert_one({
                "type": "like",
                "blog": blog_id,
                "notification_for": blog_author,
                "user": user_id,
                "seen": False,
                "createdAt": datetime.utcnow(),
            })
            return True
        removed = await db.notifications.find_one_and_delete(
            {"user": user_id, "blog": blog_id, "type": "like"}
        )
        return removed is not None
    except PyMongoError as e:
        logger.warning("Like notification for blog %s failed: %s", blog_id, e)
        return False


async def on_comment(
    db,
    blog_id: ObjectId,
    user_id: ObjectId,
    blog_author: ObjectId,
    comment_id: ObjectId,
    parent: Optional[Dict[str, Any]] = None,
    notification_id: Optional[ObjectId] = None,
) -> Optional[ObjectId]:
    """Fan a new comment or reply out to the blog author or parent commenter.

    ``parent`` is the replied-to comment document. When ``notification_id`` is
    given that earlier notification is linked to the new reply.
    """
    notification = {
        "type": "reply" if parent else "comment",
        "blog": blog_id,
        "notification_for": blog_author,
        "user": user_id,
        "comment": comment_id,
        "seen": False,
        "createdAt": datetime.utcnow(),
    }

    if parent:
        notification["notification_for"] = parent["commented_by"]
        notification["replied_on_comment"] = parent["_id"]

        if notification_id:
            try:
                await db.notifications.update_one(
                    {"_id": notification_id}, {"$set": {"reply": comment_id}}
                )
            except PyMongoError as e:
                logger.warning("Could not link reply %s to notification %s: %s", comment_id, notification_id, e)

    try:
        result = await db.notifications.insert_one(notification)
    except PyMongoError as e:
        logger.warning("Notification for comment %s failed: %s", comment_id, e)
        return None
    return result.inserted_id


async def on_comment_deleted(db, comment_id: ObjectId):
    """Drop notifications about the comment and detach it where it was the reply"""
    try:
        await db.notifications.delete_many({"comment": comment_id})
        await db.notifications.update_many({"reply": comment_id}, {"$unset": {"reply": ""}})
    except PyMongoError as e:
        logger.warning("Notification cleanup for comment %s failed: %s", comment_id, e)


async def is_liked_by_user(db, user_id: ObjectId, blog_id: ObjectId) -> bool:
    found = await db.notifications.find_one(
        {"user": user_id, "type": "like", "blog": blog_id}, {"_id": 1}
    )
    return found is not None


async def has_new_notifications(db, user_id: ObjectId) -> bool:
    found = await db.notifications.find_one(
        {"notification_for": user_id, "seen": False, "user": {"$ne": user_id}}, {"_id": 1}
    )
    return found is not None


async def count_notifications(db, user_id: ObjectId, filter_type: str = "all") -> int:
    return await db.notifications.count_documents(feed_filter(user_id, filter_type))


async def list_notifications(
    db,
    user_id: ObjectId,
    page: int,
    filter_type: str = "all",
    deleted_doc_count: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """One page of the feed, newest first, with blog, actor and comment texts attached"""
    skip = page_offset(page, NOTIFICATIONS_PAGE_SIZE, deleted_doc_count)

    notifications = await db.notifications.find(
        feed_filter(user_id, filter_type),
        {"createdAt": 1, "type": 1, "seen": 1, "reply": 1, "blog": 1,
         "user": 1, "comment": 1, "replied_on_comment": 1},
    )\
        .sort("createdAt", -1)\
        .skip(skip)\
        .limit(NOTIFICATIONS_PAGE_SIZE)\
        .to_list(NOTIFICATIONS_PAGE_SIZE)

    if not notifications:
        return notifications

    blog_ids = list({n["blog"] for n in notifications if n.get("blog")})
    user_ids = list({n["user"] for n in notifications if n.get("user")})
    comment_ids = list({
        n[field] for n in notifications
        for field in ("comment", "replied_on_comment", "reply") if n.get(field)
    })

    blogs = await db.blogs.find({"_id": {"$in": blog_ids}}, {"title": 1, "blog_id": 1})\
        .to_list(len(blog_ids))
    users = await db.users.find({"_id": {"$in": user_ids}}, PROFILE_FIELDS)\
        .to_list(len(user_ids))
    comments = await db.comments.find({"_id": {"$in": comment_ids}}, {"comment": 1})\
        .to_list(len(comment_ids))

    blogs_by_id = {b["_id"]: b for b in blogs}
    users_by_id = {u["_id"]: u for u in users}
    comments_by_id = {c["_id"]: c for c in comments}

    for notification in notifications:
        notification["blog"] = blogs_by_id.get(notification.get("blog"))
        notification["user"] = users_by_id.get(notification.get("user"))
        for field in ("comment", "replied_on_comment", "reply"):
            if notification.get(field):
                notification[field] = comments_by_id.get(notification[field])

    return notifications


async def mark_seen(db, notification_ids: List[ObjectId]):
    """Mark exactly the listed notifications as seen"""
    if not notification_ids:
        return
    try:
        await db.notifications.update_many(
            {"_id": {"$in": notification_ids}}, {"$set": {"seen": True}}
        )
    except PyMongoError as e:
        logger.warning("Marking %d notifications seen failed: %s", len(notification_ids), e)
