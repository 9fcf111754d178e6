"""Comment tree engine.

Comments form a tree per blog: top-level comments have no ``parent`` and
``isReply: false``; replies carry ``parent`` and ``isReply: true`` and are
listed in the parent's ``children``. Secondary writes (blog counters, parent
links, notifications) are best effort once the comment itself is stored.
"""
import logging
from collections import deque
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.errors import PyMongoError

from inkpress.errors import ValidationError
from inkpress.services import counters, notifications
from inkpress.utils.helpers import attach_profiles

logger = logging.getLogger(__name__)

COMMENTS_PAGE_SIZE = 5


async def add_comment(
    db,
    blog_id: ObjectId,
    user_id: ObjectId,
    blog_author: ObjectId,
    text: Optional[str],
    parent: Optional[Dict[str, Any]] = None,
    notification_id: Optional[ObjectId] = None,
) -> Dict[str, Any]:
    """Store a comment (or a reply to ``parent``) and fan out its side effects"""
    if not text or not text.strip():
        raise ValidationError("You must write something to leave a comment")

    comment = {
        "blog_id": blog_id,
        "blog_author": blog_author,
        "comment": text,
        "commented_by": user_id,
        "isReply": False,
        "children": [],
        "commentedAt": datetime.utcnow(),
    }
    if parent:
        comment["parent"] = parent["_id"]
        comment["isReply"] = True

    result = await db.comments.insert_one(comment)
    comment_id = result.inserted_id

    await counters.apply_deltas(
        db.blogs, {"_id": blog_id},
        counters.comment_added_deltas(is_reply=parent is not None),
        event="comment added",
        push={"comments": comment_id},
    )

    if parent:
        try:
            await db.comments.update_one({"_id": parent["_id"]}, {"$push": {"children": comment_id}})
        except PyMongoError as e:
            logger.warning("Could not link reply %s to parent %s: %s", comment_id, parent["_id"], e)

    await notifications.on_comment(
        db, blog_id, user_id, blog_author, comment_id,
        parent=parent, notification_id=notification_id,
    )

    return {
        "comment": comment["comment"],
        "commentedAt": comment["commentedAt"],
        "_id": comment_id,
        "user_id": user_id,
        "children": [],
    }


async def _detach_comment(db, comment: Dict[str, Any]):
    comment_id = comment["_id"]
    parent_id = comment.get("parent")

    if parent_id:
        try:
            await db.comments.update_one({"_id": parent_id}, {"$pull": {"children": comment_id}})
        except PyMongoError as e:
            logger.warning("Could not unlink comment %s from parent %s: %s", comment_id, parent_id, e)

    await notifications.on_comment_deleted(db, comment_id)

    await counters.apply_deltas(
        db.blogs, {"_id": comment["blog_id"]},
        counters.comment_removed_deltas(is_reply=parent_id is not None),
        event="comment removed",
        pull={"comments": comment_id},
    )


async def delete_comment_subtree(db, comment_id: ObjectId) -> int:
    """Delete a comment and every reply below it.

    Walks the tree breadth-first with an explicit queue. Ids that are already
    gone are skipped, so re-running a partially applied delete is safe.
    Returns the number of comments removed.
    """
    removed = 0
    pending = deque([comment_id])

    while pending:
        current = pending.popleft()
        comment = await db.comments.find_one_and_delete({"_id": current})
        if not comment:
            continue

        removed += 1
        await _detach_comment(db, comment)
        pending.extend(comment.get("children") or [])

    logger.info("Deleted %d comment(s) under %s", removed, comment_id)
    return removed


async def list_blog_comments(db, blog_id: ObjectId, skip: int = 0) -> List[Dict[str, Any]]:
    """Top-level comments of a blog, newest first"""
    comments = await db.comments.find({"blog_id": blog_id, "isReply": False})\
        .sort("commentedAt", -1)\
        .skip(max(skip, 0))\
        .limit(COMMENTS_PAGE_SIZE)\
        .to_list(COMMENTS_PAGE_SIZE)

    return await attach_profiles(db.users, comments, "commented_by")


async def list_replies(db, comment: Dict[str, Any], skip: int = 0) -> List[Dict[str, Any]]:
    """Direct replies of ``comment``, newest first"""
    children = comment.get("children") or []
    if not children:
        return []

    replies = await db.comments.find({"_id": {"$in": children}}, {"blog_id": 0})\
        .sort("commentedAt", -1)\
        .skip(max(skip, 0))\
        .limit(COMMENTS_PAGE_SIZE)\
        .to_list(COMMENTS_PAGE_SIZE)

    return await attach_profiles(db.users, replies, "commented_by")
