from typing import Optional, Any

import requests
from supabase import create_client, Client

from arm_submissions.utils.config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, SUPABASE_TABLE
from arm_submissions.utils.logger import get_logger


logger = get_logger("supabase-client")


_client: Optional[Client] = None


def supabase() -> Optional[Client]:
    global _client
    if _client:
        return _client
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        logger.info("Supabase not configured; submissions will be kept in memory.")
        return None
    _client = create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
    return _client


class SupabaseBackend:
    """Submissions table in the hosted Postgres/PostgREST store.

    The table assigns ``id`` through its column default; see
    ``supabase/schema.sql``. Errors from the SDK propagate unchanged and
    are translated by the store.
    """

    name = "supabase"

    def __init__(self, client: Client, table: str = SUPABASE_TABLE):
        self.client = client
        self.table = table

    def insert(self, row: dict[str, Any]) -> str:
        res = self.client.table(self.table).insert(row).execute()
        if not res.data:
            raise RuntimeError("insert returned no row")
        return str(res.data[0]["id"])

    def update(self, sub_id: str, patch: dict[str, Any]) -> bool:
        res = self.client.table(self.table).update(patch).eq("id", sub_id).execute()
        return bool(res.data)

    def delete(self, sub_id: str) -> None:
        self.client.table(self.table).delete().eq("id", sub_id).execute()

    def get(self, sub_id: str) -> Optional[dict[str, Any]]:
        res = (
            self.client.table(self.table)
            .select("*")
            .eq("id", sub_id)
            .limit(1)
            .execute()
        )
        return res.data[0] if res.data else None

    def list_all(self) -> list[dict[str, Any]]:
        res = (
            self.client.table(self.table)
            .select("*")
            .order("submitted_at", desc=True)
            .execute()
        )
        return res.data or []

    def ping(self) -> bool:
        r = requests.get(
            f"{SUPABASE_URL}/rest/v1/",
            headers={"apikey": SUPABASE_SERVICE_ROLE_KEY or ""},
            timeout=3,
        )
        return r.status_code < 500
