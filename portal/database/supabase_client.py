from typing import Callable, Dict, Iterable, Iterator, List
from supabase import create_client, Client
from portal.config import settings

# PostgREST db-max-rows default; larger selects are truncated silently
PAGE_SIZE = 1000
# Keeps in.(...) filters well under URL length limits
IN_CHUNK_SIZE = 200


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Used for auth admin calls, signup profile writes, the reconciliation sweep and the seed script."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    """Service-role client for auth admin calls and writes that must not depend on the caller's session"""
    return SupabaseClient.get_service_client()


def public_storage_url(supabase: Client, bucket: str, path: str) -> str:
    url = supabase.storage.from_(bucket).get_public_url(path)
    # Older clients return a dict, newer ones a plain string
    if isinstance(url, dict):
        return url.get("publicURL") or url.get("publicUrl") or ""
    return url


def fetch_all(build_query: Callable, page_size: int = PAGE_SIZE) -> List[Dict]:
    """Run a select page by page with .range().

    build_query must return a fresh query with a deterministic order
    (for example .order("id")), otherwise pages can overlap.
    """
    rows: List[Dict] = []
    start = 0
    while True:
        page = build_query().range(start, start + page_size - 1).execute().data or []
        rows.extend(page)
        if len(page) < page_size:
            return rows
        start += page_size


def chunked(values: Iterable, size: int = IN_CHUNK_SIZE) -> Iterator[List]:
    values = list(values)
    for i in range(0, len(values), size):
        yield values[i:i + size]


def fetch_in(build_query: Callable, column: str, values: Iterable) -> List[Dict]:
    """fetch_all restricted to column in values, one chunk of ids at a time"""
    rows: List[Dict] = []
    for chunk in chunked(values):
        rows.extend(fetch_all(lambda: build_query().in_(column, chunk)))
    return rows
