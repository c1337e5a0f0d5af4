"""Shared plumbing for Supabase-backed stores."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from ..db.supabase import get_supabase_client
from ..errors import StoreUnavailable
from ..models.domain import Coordinate

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse a timestamptz value returned by PostgREST."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_coordinate(row: dict, lat_key: str, lng_key: str) -> Coordinate:
    return Coordinate(latitude=float(row[lat_key]), longitude=float(row[lng_key]))


class SupabaseStore:
    """Base class holding the client and translating transport failures."""

    def __init__(self, client: Client | Any | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        client = self._client or get_supabase_client()
        if client is None:
            raise StoreUnavailable("Supabase is not configured (set FLEETFARE_SUPABASE_URL and FLEETFARE_SUPABASE_KEY).")
        return client

    def _execute(self, action: str, build: Callable[[Client], Any]) -> list[dict]:
        """Build and execute a query, returning the response rows."""
        client = self.client
        try:
            response = build(client).execute()
        except APIError as exc:
            logger.warning(f"Store rejected request while trying to {action}: {exc}")
            raise StoreUnavailable(f"Store rejected request while trying to {action}: {exc}") from exc
        except (httpx.HTTPError, OSError) as exc:
            logger.warning(f"Store unreachable while trying to {action}: {exc}")
            raise StoreUnavailable(f"Store unreachable while trying to {action}: {exc}") from exc
        if response is None:
            return []
        return list(response.data or [])
