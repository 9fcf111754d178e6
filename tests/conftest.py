from unittest.mock import AsyncMock, MagicMock

import pytest

COLLECTION_COROUTINES = (
    "find_one",
    "insert_one",
    "update_one",
    "update_many",
    "find_one_and_update",
    "find_one_and_delete",
    "delete_many",
    "count_documents",
)


def build_cursor(docs=None):
    """Motor-like cursor: chainable sort/skip/limit and an awaitable to_list"""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs or []))
    return cursor


def build_collection():
    collection = MagicMock()
    for name in COLLECTION_COROUTINES:
        setattr(collection, name, AsyncMock())
    collection.find.return_value = build_cursor()
    collection.update_one.return_value = MagicMock(matched_count=1)
    collection.find_one.return_value = None
    return collection


@pytest.fixture
def make_cursor():
    return build_cursor


@pytest.fixture
def db():
    database = MagicMock()
    database.users = build_collection()
    database.blogs = build_collection()
    database.comments = build_collection()
    database.notifications = build_collection()
    return database


@pytest.fixture(autouse=True)
def secret_key(monkeypatch):
    monkeypatch.setenv("SECRET_ACCESS_KEY", "test-secret")
    return "test-secret"
