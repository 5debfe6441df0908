# recipeshare/services/social.py
from __future__ import annotations

import logging
from typing import Any, Optional

from postgrest.exceptions import APIError
from supabase import Client

from recipeshare.app.domain.errors import RepositoryError
from recipeshare.services.catalog import format_timestamp, stringify_id

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
UNKNOWN_AUTHOR = "Unknown"
COMMENT_COLUMNS = (
    "id, content, created_at, parent_comment_id, "
    "profiles!recipe_comments_user_id_fkey(username, full_name)"
)


def like_recipe(supa: Client, user_id: str, recipe_id: str) -> bool:
    """Records a like. A like that already exists counts as success."""
    try:
        supa.table("recipe_likes").insert({"recipe_id": recipe_id, "user_id": user_id}).execute()
    except APIError as exc:
        if exc.code != UNIQUE_VIOLATION:
            raise
        logger.info("like.duplicate recipe=%s user=%s", recipe_id, user_id)
    return True


def unlike_recipe(supa: Client, user_id: str, recipe_id: str) -> bool:
    supa.table("recipe_likes").delete().eq("recipe_id", recipe_id).eq("user_id", user_id).execute()
    return False


def is_liked(supa: Client, user_id: str, recipe_id: str) -> bool:
    response = (
        supa.table("recipe_likes")
        .select("id")
        .eq("recipe_id", recipe_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )
    return bool(response.data)


def serialize_comment(row: dict[str, Any]) -> dict[str, Any]:
    author = row.get("profiles")
    # to-one joins come back as an object, older clients wrap them in a list
    if isinstance(author, list):
        author = author[0] if author else None
    author = author if isinstance(author, dict) else {}
    return {
        "id": stringify_id(row.get("id")),
        "content": str(row.get("content") or ""),
        "createdAt": format_timestamp(row.get("created_at")),
        "parentCommentId": row.get("parent_comment_id"),
        "author": {
            "username": author.get("username") or UNKNOWN_AUTHOR,
            "fullName": author.get("full_name"),
        },
    }


def list_comments(supa: Client, recipe_id: str) -> list[dict[str, Any]]:
    response = (
        supa.table("recipe_comments")
        .select(COMMENT_COLUMNS)
        .eq("recipe_id", recipe_id)
        .order("created_at", desc=True)
        .execute()
    )
    return [serialize_comment(row) for row in (response.data or [])]


def add_comment(
    supa: Client,
    recipe_id: str,
    user_id: str,
    content: str,
    parent_comment_id: Optional[str] = None,
) -> dict[str, Any]:
    text = (content or "").strip()
    if not text:
        raise ValueError("Comment content is required")

    payload: dict[str, Any] = {
        "recipe_id": recipe_id,
        "user_id": user_id,
        "content": text,
    }
    if parent_comment_id:
        payload["parent_comment_id"] = parent_comment_id

    response = supa.table("recipe_comments").insert(payload).execute()
    rows = response.data or []
    if not rows:
        raise RepositoryError("add_comment", "No row returned")
    comment_id = rows[0].get("id")
    logger.info("comment.created comment=%s recipe=%s user=%s", comment_id, recipe_id, user_id)

    # the insert representation carries no author join, read it back with one
    stored = (
        supa.table("recipe_comments")
        .select(COMMENT_COLUMNS)
        .eq("id", comment_id)
        .limit(1)
        .execute()
    )
    return serialize_comment((stored.data or rows)[0])
