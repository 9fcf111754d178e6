from fastapi import APIRouter, Depends, Query
from inkpress.database import get_database
from inkpress.models.blog import BlogLike, BlogRef, BlogSave, BlogSearch, BlogSlug, UserBlogsQuery
from inkpress.services import blogs as blog_service
from inkpress.services import notifications as notification_service
from inkpress.utils.auth import CurrentUser, get_current_user
from inkpress.utils.helpers import convert_objectid_to_str, to_object_id
from inkpress.utils.storage import generate_upload_url
from typing import Optional

router = APIRouter()

@router.get("/upload-url")
async def get_upload_url(current_user: CurrentUser = Depends(get_current_user)):
    """Signed URL the client uploads a banner or inline image to"""
    return {"uploadURL": generate_upload_url()}

@router.get("/latest")
async def latest_blogs(page: int = Query(1, ge=1)):
    db = await get_database()
    blogs = await blog_service.latest_blogs(db, page)
    return {"blogs": convert_objectid_to_str(blogs)}

@router.get("/latest/count")
async def latest_blogs_count():
    db = await get_database()
    return {"totalDocs": await blog_service.count_latest_blogs(db)}

@router.get("/trending")
async def trending_blogs():
    db = await get_database()
    blogs = await blog_service.trending_blogs(db)
    return {"blogs": convert_objectid_to_str(blogs)}

def _search_filters(search: BlogSearch):
    return {
        "tag": search.tag,
        "query": search.query,
        "author": search.author,
        "eliminate_blog": search.eliminate_blog,
    }

@router.post("/search")
async def search_blogs(search: BlogSearch):
    """Published blogs by tag, title text or author"""
    db = await get_database()
    blogs = await blog_service.search_blogs(db, search.page, search.limit, **_search_filters(search))
    return {"blogs": convert_objectid_to_str(blogs)}

@router.post("/search/count")
async def search_blogs_count(search: BlogSearch):
    db = await get_database()
    return {"totalDocs": await blog_service.count_search_blogs(db, **_search_filters(search))}

@router.post("/mine")
async def user_written_blogs(
    payload: UserBlogsQuery,
    current_user: CurrentUser = Depends(get_current_user)
):
    """The signed-in user's published posts or drafts"""
    db = await get_database()
    blogs = await blog_service.user_written_blogs(
        db, to_object_id(current_user.id, "user id"), payload.page,
        payload.draft, payload.query, payload.deleted_doc_count
    )
    return {"blogs": convert_objectid_to_str(blogs)}

@router.post("/mine/count")
async def user_written_blogs_count(
    payload: UserBlogsQuery,
    current_user: CurrentUser = Depends(get_current_user)
):
    db = await get_database()
    count = await blog_service.count_user_written_blogs(
        db, to_object_id(current_user.id, "user id"), payload.draft, payload.query
    )
    return {"totalDocs": count}

@router.post("")
async def save_blog(
    payload: BlogSave,
    current_user: CurrentUser = Depends(get_current_user)
):
    """Publish, save as draft, or edit a blog (admins only)"""
    db = await get_database()
    slug = await blog_service.save_blog(
        db, to_object_id(current_user.id, "user id"), current_user.admin, payload.model_dump()
    )
    return {"id": slug}

@router.post("/like")
async def like_blog(
    payload: BlogLike,
    current_user: CurrentUser = Depends(get_current_user)
):
    db = await get_database()
    liked = await blog_service.like_blog(
        db, payload.id, to_object_id(current_user.id, "user id"), payload.is_liked_by_user
    )
    return {"liked_by_user": liked}

@router.post("/is-liked")
async def is_liked_by_user(
    payload: BlogRef,
    current_user: CurrentUser = Depends(get_current_user)
):
    db = await get_database()
    result = await notification_service.is_liked_by_user(
        db, to_object_id(current_user.id, "user id"), payload.id
    )
    return {"result": result}

@router.post("/delete")
async def delete_blog(
    payload: BlogSlug,
    current_user: CurrentUser = Depends(get_current_user)
):
    db = await get_database()
    await blog_service.delete_blog(
        db, payload.blog_id, to_object_id(current_user.id, "user id"), current_user.admin
    )
    return {"status": "done"}

@router.get("/{blog_id}")
async def get_blog(
    blog_id: str,
    draft: bool = Query(False),
    mode: Optional[str] = Query(None)
):
    """A single blog by slug; opening it outside edit mode counts as a read"""
    db = await get_database()
    blog = await blog_service.get_blog(db, blog_id, allow_draft=draft, mode=mode)
    return {"blog": convert_objectid_to_str(blog)}
