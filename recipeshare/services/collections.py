# recipeshare/services/collections.py
from __future__ import annotations

from typing import Any, Iterable, Optional

from supabase import Client

from recipeshare.app.domain.errors import CollectionNotFoundError, RepositoryError
from recipeshare.services.catalog import CATALOG_COLUMNS, format_timestamp, stringify_id

COLLECTION_COLUMNS = "id,name,description,is_public,user_id,created_at,updated_at"


def serialize_collection(row: dict[str, Any], recipe_count: int) -> dict[str, Any]:
    return {
        "id": stringify_id(row.get("id")),
        "name": str(row.get("name") or ""),
        "description": row.get("description"),
        "isPublic": bool(row.get("is_public")),
        "recipeCount": recipe_count,
        "createdAt": format_timestamp(row.get("created_at")),
        "updatedAt": format_timestamp(row.get("updated_at")),
    }


def list_collections(supa: Client, owner_id: str) -> list[dict[str, Any]]:
    response = (
        supa.table("recipe_collections")
        .select(COLLECTION_COLUMNS)
        .eq("user_id", str(owner_id))
        .order("name")
        .execute()
    )
    rows = response.data or []
    collection_ids = [stringify_id(row.get("id")) for row in rows if row.get("id")]
    counts = _fetch_recipe_counts(supa, collection_ids)
    return [
        serialize_collection(row, counts.get(stringify_id(row.get("id")), 0))
        for row in rows
    ]


def create_collection(
    supa: Client,
    owner_id: str,
    *,
    name: str,
    description: Optional[str] = None,
    is_public: bool = False,
) -> dict[str, Any]:
    title = (name or "").strip()
    if not title:
        raise ValueError("Collection name is required")
    payload = {
        "user_id": str(owner_id),
        "name": title,
        "description": description,
        "is_public": is_public,
    }
    response = supa.table("recipe_collections").insert(payload).execute()
    rows = response.data or []
    if not rows:
        raise RepositoryError("create_collection", "No row returned")
    return serialize_collection(rows[0], 0)


def fetch_collection_bundle(
    supa: Client, owner_id: str, collection_id: str
) -> dict[str, Any]:
    collection_row = _get_collection_row(supa, str(owner_id), collection_id)

    join_resp = (
        supa.table("collection_recipes")
        .select("recipe_id,added_at")
        .eq("collection_id", collection_id)
        .order("added_at")
        .execute()
    )
    items = [
        {
            "recipeId": stringify_id(row.get("recipe_id")),
            "addedAt": format_timestamp(row.get("added_at")),
        }
        for row in (join_resp.data or [])
        if row.get("recipe_id")
    ]
    recipes = [
        row
        for row in fetch_recipes_by_ids(supa, [item["recipeId"] for item in items])
        if _visible_to(row, str(owner_id))
    ]
    return {"collection": collection_row, "items": items, "recipes": recipes}


def fetch_recipes_by_ids(supa: Client, recipe_ids: Iterable[str]) -> list[dict[str, Any]]:
    ids = [str(rid) for rid in recipe_ids if rid]
    if not ids:
        return []
    response = (
        supa.table("recipes")
        .select(CATALOG_COLUMNS)
        .in_("id", ids)
        .execute()
    )
    return response.data or []


def _visible_to(row: dict[str, Any], viewer_id: str) -> bool:
    # the service key bypasses row-level security, so private recipes are filtered here
    return bool(row.get("is_public")) or stringify_id(row.get("author_id")) == viewer_id


def _get_collection_row(supa: Client, owner_id: str, collection_id: str) -> dict[str, Any]:
    response = (
        supa.table("recipe_collections")
        .select(COLLECTION_COLUMNS)
        .eq("user_id", owner_id)
        .eq("id", collection_id)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    if not rows:
        raise CollectionNotFoundError(collection_id)
    return rows[0]


def _fetch_recipe_counts(supa: Client, collection_ids: Iterable[str]) -> dict[str, int]:
    ids = [str(cid) for cid in collection_ids if cid]
    if not ids:
        return {}
    response = (
        supa.table("collection_recipes")
        .select("collection_id")
        .in_("collection_id", ids)
        .execute()
    )
    counts: dict[str, int] = {}
    for row in response.data or []:
        cid = stringify_id(row.get("collection_id"))
        if not cid:
            continue
        counts[cid] = counts.get(cid, 0) + 1
    return counts
