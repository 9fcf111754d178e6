"""
Tests for blog lifecycle, counters and listings.
"""
import re
from unittest.mock import MagicMock

import pytest
from bson import ObjectId

from inkpress.errors import AuthorizationError, NotFoundError, ValidationError
from inkpress.services import blogs as blog_service
from inkpress.services.counters import TOTAL_LIKES, TOTAL_POSTS, TOTAL_READS, USER_TOTAL_READS


def publishable(**overrides):
    data = {
        "title": "The Quick Fox",
        "desc": "A short description",
        "banner": "https://example.com/banner.jpeg",
        "content": {"blocks": [{"type": "paragraph", "data": {"text": "hi"}}]},
        "tags": ["Animals"],
        "draft": False,
        "id": None,
    }
    data.update(overrides)
    return data


@pytest.mark.parametrize("overrides", [
    {"tags": []},
    {"tags": [f"t{i}" for i in range(11)]},
    {"banner": ""},
    {"desc": "x" * 201},
    {"desc": ""},
    {"content": {"blocks": []}},
])
def test_publish_requires_complete_blog(overrides):
    data = publishable(**overrides)

    with pytest.raises(ValidationError):
        blog_service.validate_blog(data["title"], data["desc"], data["banner"],
                                   data["content"], data["tags"], draft=False)

    # the same payload is fine as a draft
    blog_service.validate_blog(data["title"], data["desc"], data["banner"],
                               data["content"], data["tags"], draft=True)


def test_title_always_required():
    with pytest.raises(ValidationError):
        blog_service.validate_blog("", "", "", {}, [], draft=True)


@pytest.mark.asyncio
async def test_publish_new_blog_counts_post(db):
    user_id, inserted = ObjectId(), ObjectId()
    db.blogs.insert_one.return_value = MagicMock(inserted_id=inserted)

    slug = await blog_service.save_blog(db, user_id, True, publishable())

    blog = db.blogs.insert_one.call_args[0][0]
    assert blog["tags"] == ["animals"]
    assert blog["author"] == user_id
    assert blog["blog_id"] == slug
    assert slug.startswith("The-Quick-Fox-")
    db.users.update_one.assert_called_once_with(
        {"_id": user_id}, {"$push": {"blogs": inserted}, "$inc": {TOTAL_POSTS: 1}}
    )


@pytest.mark.asyncio
async def test_tags_are_a_lowercase_set(db):
    db.blogs.insert_one.return_value = MagicMock(inserted_id=ObjectId())
    tags = ["Rust", "rust", "Web"] + ["web"] * 9

    await blog_service.save_blog(db, ObjectId(), True, publishable(tags=tags))

    assert db.blogs.insert_one.call_args[0][0]["tags"] == ["rust", "web"]


@pytest.mark.asyncio
async def test_save_draft_does_not_count_post(db):
    user_id, inserted = ObjectId(), ObjectId()
    db.blogs.insert_one.return_value = MagicMock(inserted_id=inserted)

    await blog_service.save_blog(db, user_id, True, publishable(tags=[], banner="", draft=True))

    db.users.update_one.assert_called_once_with({"_id": user_id}, {"$push": {"blogs": inserted}})


@pytest.mark.asyncio
async def test_only_admins_write_blogs(db):
    with pytest.raises(AuthorizationError):
        await blog_service.save_blog(db, ObjectId(), False, publishable())

    db.blogs.insert_one.assert_not_called()


@pytest.mark.asyncio
async def test_publishing_a_draft_counts_post(db):
    user_id = ObjectId()
    db.blogs.find_one_and_update.return_value = {"_id": ObjectId(), "draft": True}

    slug = await blog_service.save_blog(db, user_id, True, publishable(id="the-quick-fox-1"))

    assert slug == "the-quick-fox-1"
    filter_, update = db.blogs.find_one_and_update.call_args[0]
    assert filter_ == {"blog_id": "the-quick-fox-1", "author": user_id}
    assert update["$set"]["draft"] is False
    db.users.update_one.assert_called_once_with({"_id": user_id}, {"$inc": {TOTAL_POSTS: 1}})


@pytest.mark.asyncio
async def test_edit_unknown_blog(db):
    db.blogs.find_one_and_update.return_value = None
    db.blogs.find_one.return_value = None

    with pytest.raises(NotFoundError):
        await blog_service.save_blog(db, ObjectId(), True, publishable(id="missing"))


@pytest.mark.asyncio
async def test_edit_someone_elses_blog(db):
    db.blogs.find_one_and_update.return_value = None
    db.blogs.find_one.return_value = {"_id": ObjectId()}

    with pytest.raises(AuthorizationError):
        await blog_service.save_blog(db, ObjectId(), True, publishable(id="theirs"))


@pytest.mark.asyncio
async def test_get_blog_records_read(db, make_cursor):
    blog_id, author_id = ObjectId(), ObjectId()
    db.blogs.find_one.return_value = {"_id": blog_id, "author": author_id, "draft": False}
    db.users.find.return_value = make_cursor([{"_id": author_id, "personal_info": {"username": "ada"}}])

    blog = await blog_service.get_blog(db, "slug")

    db.blogs.update_one.assert_called_once_with({"_id": blog_id}, {"$inc": {TOTAL_READS: 1}})
    db.users.update_one.assert_called_once_with({"_id": author_id}, {"$inc": {USER_TOTAL_READS: 1}})
    assert blog["author"]["personal_info"]["username"] == "ada"


@pytest.mark.asyncio
async def test_get_blog_in_edit_mode_is_not_a_read(db):
    db.blogs.find_one.return_value = {"_id": ObjectId(), "author": ObjectId(), "draft": True}

    await blog_service.get_blog(db, "slug", allow_draft=True, mode="edit")

    db.blogs.update_one.assert_not_called()
    db.users.update_one.assert_not_called()


@pytest.mark.asyncio
async def test_get_draft_requires_draft_access(db):
    db.blogs.find_one.return_value = {"_id": ObjectId(), "author": ObjectId(), "draft": True}

    with pytest.raises(AuthorizationError):
        await blog_service.get_blog(db, "slug")


@pytest.mark.asyncio
async def test_get_missing_blog(db):
    with pytest.raises(NotFoundError):
        await blog_service.get_blog(db, "nope")


@pytest.fixture
def like_store(db):
    """Blog like counter and like notifications kept in memory"""
    blog_id, author_id = ObjectId(), ObjectId()
    state = {"blog_id": blog_id, "likes": 7, "notifications": []}

    def matches(doc, query):
        return all(doc.get(key) == value for key, value in query.items())

    async def blog_find_one(query, projection=None):
        return {"_id": blog_id, "author": author_id} if query["_id"] == blog_id else None

    async def blog_update_one(query, update):
        state["likes"] += update["$inc"][TOTAL_LIKES]
        return MagicMock(matched_count=1)

    async def find_one(query, projection=None):
        return next((doc for doc in state["notifications"] if matches(doc, query)), None)

    async def insert_one(doc):
        state["notifications"].append(doc)
        return MagicMock(inserted_id=ObjectId())

    async def find_one_and_delete(query):
        doc = await find_one(query)
        if doc is not None:
            state["notifications"].remove(doc)
        return doc

    db.blogs.find_one.side_effect = blog_find_one
    db.blogs.update_one.side_effect = blog_update_one
    db.notifications.find_one.side_effect = find_one
    db.notifications.insert_one.side_effect = insert_one
    db.notifications.find_one_and_delete.side_effect = find_one_and_delete
    return state


@pytest.mark.asyncio
async def test_like_then_unlike_restores_state(db, like_store):
    blog_id, user_id = like_store["blog_id"], ObjectId()

    assert await blog_service.like_blog(db, blog_id, user_id, is_liked_by_user=False) is True
    assert like_store["likes"] == 8
    assert len(like_store["notifications"]) == 1

    assert await blog_service.like_blog(db, blog_id, user_id, is_liked_by_user=True) is False
    assert like_store["likes"] == 7
    assert like_store["notifications"] == []


@pytest.mark.asyncio
async def test_repeated_like_is_counted_once(db, like_store):
    blog_id, user_id = like_store["blog_id"], ObjectId()

    await blog_service.like_blog(db, blog_id, user_id, is_liked_by_user=False)
    await blog_service.like_blog(db, blog_id, user_id, is_liked_by_user=False)
    assert like_store["likes"] == 8
    assert len(like_store["notifications"]) == 1

    await blog_service.like_blog(db, blog_id, user_id, is_liked_by_user=True)
    assert like_store["likes"] == 7
    assert like_store["notifications"] == []


@pytest.mark.asyncio
async def test_unlike_without_like_changes_nothing(db, like_store):
    assert await blog_service.like_blog(db, like_store["blog_id"], ObjectId(), is_liked_by_user=True) is False

    assert like_store["likes"] == 7
    db.blogs.update_one.assert_not_called()


@pytest.mark.asyncio
async def test_likes_from_different_users_add_up(db, like_store):
    blog_id = like_store["blog_id"]

    await blog_service.like_blog(db, blog_id, ObjectId(), is_liked_by_user=False)
    await blog_service.like_blog(db, blog_id, ObjectId(), is_liked_by_user=False)

    assert like_store["likes"] == 9


@pytest.mark.asyncio
async def test_like_missing_blog(db):
    with pytest.raises(NotFoundError):
        await blog_service.like_blog(db, ObjectId(), ObjectId(), False)

    db.notifications.insert_one.assert_not_called()


@pytest.mark.asyncio
async def test_delete_blog_cascades_and_decrements_author(db):
    blog_oid, author_id = ObjectId(), ObjectId()
    db.blogs.find_one.return_value = {"_id": blog_oid, "author": author_id}
    db.blogs.find_one_and_delete.return_value = {"_id": blog_oid, "author": author_id, "draft": False}

    await blog_service.delete_blog(db, "fox-1", author_id, is_admin=True)

    db.notifications.delete_many.assert_called_once_with({"blog": blog_oid})
    db.comments.delete_many.assert_called_once_with({"blog_id": blog_oid})
    db.users.update_one.assert_called_once_with(
        {"_id": author_id}, {"$pull": {"blogs": blog_oid}, "$inc": {TOTAL_POSTS: -1}}
    )


@pytest.mark.asyncio
async def test_delete_draft_leaves_post_count(db):
    blog_oid, author_id = ObjectId(), ObjectId()
    db.blogs.find_one.return_value = {"_id": blog_oid, "author": author_id}
    db.blogs.find_one_and_delete.return_value = {"_id": blog_oid, "author": author_id, "draft": True}

    await blog_service.delete_blog(db, "fox-1", author_id, is_admin=True)

    db.users.update_one.assert_called_once_with({"_id": author_id}, {"$pull": {"blogs": blog_oid}})


@pytest.mark.asyncio
async def test_delete_blog_permissions(db):
    db.blogs.find_one.return_value = {"_id": ObjectId(), "author": ObjectId()}

    with pytest.raises(AuthorizationError):
        await blog_service.delete_blog(db, "fox-1", ObjectId(), is_admin=False)
    with pytest.raises(AuthorizationError):
        await blog_service.delete_blog(db, "fox-1", ObjectId(), is_admin=True)

    db.blogs.find_one_and_delete.assert_not_called()


def test_title_search_is_case_insensitive_substring():
    query = blog_service.search_filter(query="fox")

    assert query["draft"] is False
    pattern = query["title"]["$regex"]
    assert re.search(pattern, "The Quick Fox", re.IGNORECASE)
    assert not re.search(pattern, "Turtles", re.IGNORECASE)


def test_title_search_escapes_regex():
    pattern = blog_service.search_filter(query="c++")["title"]["$regex"]

    assert re.search(pattern, "Modern C++ tips", re.IGNORECASE)


def test_search_filters_are_exclusive():
    author = ObjectId()

    by_tag = blog_service.search_filter(tag="Rust", query="fox", author=author, eliminate_blog="x-1")
    assert by_tag == {"tags": "rust", "draft": False, "blog_id": {"$ne": "x-1"}}

    by_author = blog_service.search_filter(author=author)
    assert by_author == {"author": author, "draft": False}

    with pytest.raises(ValidationError):
        blog_service.search_filter()


@pytest.mark.asyncio
async def test_user_written_blogs_offset(db, make_cursor):
    cursor = make_cursor([])
    db.blogs.find.return_value = cursor
    user_id = ObjectId()

    await blog_service.user_written_blogs(db, user_id, page=2, draft=False, query="", deleted_doc_count=1)

    assert db.blogs.find.call_args[0][0]["author"] == user_id
    cursor.skip.assert_called_once_with(4)


@pytest.mark.asyncio
async def test_trending_sort_order(db, make_cursor):
    cursor = make_cursor([])
    db.blogs.find.return_value = cursor

    await blog_service.trending_blogs(db)

    cursor.sort.assert_called_once_with(
        [("activity.total_reads", -1), ("activity.total_likes", -1), ("publishedAt", -1)]
    )
    cursor.limit.assert_called_once_with(5)
