"""Supabase client for the fare backend."""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logging.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
        return client
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None


# Tables read and appended to by the fare engine:
#
# destinations   read-only catalogue (id, name, address, latitude, longitude, zone, is_active)
# fare_quotes    insert + read by id
# tickets        insert + read by id / quote_id
# bus_locations  insert + newest row per bus_id
