"""Denormalized counter maintenance.

Counters are never recomputed. Every event applies signed deltas to the
owning document with a single ``$inc`` so concurrent requests do not lose
updates. Updates issued after the primary write has succeeded are best
effort: a store failure is logged and swallowed.
"""
import logging
from typing import Any, Dict, Optional

from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

TOTAL_POSTS = "account_info.total_posts"
USER_TOTAL_READS = "account_info.total_reads"
TOTAL_LIKES = "activity.total_likes"
TOTAL_READS = "activity.total_reads"
TOTAL_COMMENTS = "activity.total_comments"
TOTAL_PARENT_COMMENTS = "activity.total_parent_comments"


def post_created_deltas(draft: bool) -> Dict[str, int]:
    return {TOTAL_POSTS: 0 if draft else 1}


def post_draft_changed_deltas(was_draft: bool, draft: bool) -> Dict[str, int]:
    if was_draft == draft:
        return {TOTAL_POSTS: 0}
    return {TOTAL_POSTS: 1 if was_draft else -1}


def post_deleted_deltas(draft: bool) -> Dict[str, int]:
    return {TOTAL_POSTS: 0 if draft else -1}


def read_deltas(field: str = TOTAL_READS) -> Dict[str, int]:
    return {field: 1}


def like_deltas(liked: bool) -> Dict[str, int]:
    return {TOTAL_LIKES: 1 if liked else -1}


def comment_added_deltas(is_reply: bool) -> Dict[str, int]:
    return {TOTAL_COMMENTS: 1, TOTAL_PARENT_COMMENTS: 0 if is_reply else 1}


def comment_removed_deltas(is_reply: bool) -> Dict[str, int]:
    return {TOTAL_COMMENTS: -1, TOTAL_PARENT_COMMENTS: 0 if is_reply else -1}


def build_update(deltas: Dict[str, int], **operators: Dict[str, Any]) -> Dict[str, Any]:
    """Combine non-zero deltas with other atomic operators (``push=...`` -> ``$push``)"""
    update = {f"${name}": value for name, value in operators.items() if value}
    increments = {field: delta for field, delta in deltas.items() if delta}
    if increments:
        update["$inc"] = increments
    return update


async def apply_deltas(
    collection,
    query: Dict[str, Any],
    deltas: Dict[str, int],
    event: str,
    **operators: Dict[str, Any],
) -> Optional[bool]:
    """Apply ``deltas`` (plus any set operators) to one document, best effort.

    Returns True when a document matched, False when none did and None when
    the store failed or there was nothing to apply.
    """
    update = build_update(deltas, **operators)
    if not update:
        return None

    try:
        result = await collection.update_one(query, update)
    except PyMongoError as e:
        logger.warning("Counter update for %s failed on %s: %s", event, query, e)
        return None

    if not result.matched_count:
        logger.warning("Counter update for %s matched no document for %s", event, query)
        return False
    return True
