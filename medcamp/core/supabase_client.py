# medcamp/core/supabase_client.py
from functools import lru_cache

from supabase import Client, create_client


@lru_cache
def supabase_public(url: str, anon_key: str) -> Client:
    """
    Create a Supabase client with the anon/public key.

    Use cases:
      - verifying bearer tokens via the Supabase Auth endpoint

    Note: This client still respects RLS. The backend never holds the
    service role key.

    Cached per (url, key) so every request reuses one HTTP client.
    """
    return create_client(url, anon_key)
