# jobs/seed_access_catalog.py

from typing import Optional

from supabase import Client

from core.logging_config import logger
from core.permissions import seed_rows
from core.supabase_client import get_supabase_client


def seed(client: Client) -> dict:
    """
    Upsert the permission catalog and system roles, then attach role
    permissions. Safe to run repeatedly.
    """
    rows = seed_rows()

    client.table("permissions").upsert(rows["permissions"], on_conflict="key").execute()
    client.table("roles").upsert(rows["roles"], on_conflict="key").execute()

    roles = client.table("roles").select("id, key").execute().data or []
    role_ids = {row["key"]: row["id"] for row in roles}

    links = [
        {"role_id": role_ids[link["role_key"]], "permission_key": link["permission_key"]}
        for link in rows["role_permissions"]
        if link["role_key"] in role_ids
    ]
    if links:
        client.table("role_permissions").upsert(
            links, on_conflict="role_id,permission_key"
        ).execute()

    summary = {
        "permissions": len(rows["permissions"]),
        "roles": len(rows["roles"]),
        "role_permissions": len(links),
    }
    logger.info(f"Access catalog seeded: {summary}")
    return summary


def run(client: Optional[Client] = None):
    """CLI entry point: python -m jobs.seed_access_catalog"""
    client = client or get_supabase_client()
    if not client:
        raise RuntimeError("Supabase not configured")
    return seed(client)


if __name__ == "__main__":
    run()
