from fastapi import APIRouter, Depends, Query
from inkpress.database import get_database
from inkpress.errors import AuthorizationError, NotFoundError
from inkpress.models.comment import CommentCreate
from inkpress.services import comments as comment_service
from inkpress.utils.auth import CurrentUser, get_current_user
from inkpress.utils.helpers import convert_objectid_to_str, to_object_id

router = APIRouter()

@router.post("")
async def add_comment(
    payload: CommentCreate,
    current_user: CurrentUser = Depends(get_current_user)
):
    """Comment on a blog, or reply to a comment"""
    db = await get_database()
    user_id = to_object_id(current_user.id, "user id")

    blog = await db.blogs.find_one({"_id": payload.blog}, {"author": 1})
    if not blog:
        raise NotFoundError("Blog not found")

    parent = None
    if payload.replying_to:
        parent = await db.comments.find_one(
            {"_id": payload.replying_to, "blog_id": payload.blog}, {"commented_by": 1}
        )
        if not parent:
            raise NotFoundError("Comment not found")

    comment = await comment_service.add_comment(
        db, payload.blog, user_id, blog["author"], payload.comment,
        parent=parent, notification_id=payload.notification_id,
    )
    return convert_objectid_to_str(comment)

@router.get("/blog/{blog_id}")
async def get_blog_comments(blog_id: str, skip: int = Query(0, ge=0)):
    """Top-level comments of a blog, five at a time"""
    db = await get_database()
    comments = await comment_service.list_blog_comments(db, to_object_id(blog_id, "blog id"), skip)
    return convert_objectid_to_str(comments)

@router.get("/{comment_id}/replies")
async def get_replies(comment_id: str, skip: int = Query(0, ge=0)):
    db = await get_database()
    comment = await db.comments.find_one({"_id": to_object_id(comment_id, "comment id")}, {"children": 1})
    if not comment:
        raise NotFoundError("Comment not found")

    replies = await comment_service.list_replies(db, comment, skip)
    return {"replies": convert_objectid_to_str(replies)}

@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    current_user: CurrentUser = Depends(get_current_user)
):
    """Delete a comment with all its replies (comment author or blog author only)"""
    db = await get_database()
    comment_oid = to_object_id(comment_id, "comment id")
    user_id = to_object_id(current_user.id, "user id")

    comment = await db.comments.find_one({"_id": comment_oid}, {"commented_by": 1, "blog_author": 1})
    if not comment:
        raise NotFoundError("Comment not found")

    if user_id not in (comment.get("commented_by"), comment.get("blog_author")):
        raise AuthorizationError("Unauthorized. You can't delete this comment")

    removed = await comment_service.delete_comment_subtree(db, comment_oid)
    return {"status": "done", "deleted": removed}
