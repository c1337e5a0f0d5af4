"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request, status

from ...config import settings
from ..dependencies import get_hub
from .display import manager as display_manager

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/broadcast", status_code=status.HTTP_200_OK)
def health_broadcast(request: Request) -> dict:
    """Report whether fare events reach passenger displays."""
    hub = get_hub(request.app)
    enabled = hub is not None and settings.broadcast_enabled
    return {
        "channel": settings.broadcast_channel,
        "enabled": enabled,
        "open_handles": hub.open_handles(settings.broadcast_channel) if enabled else 0,
        "connected_displays": len(display_manager.active_connections),
    }


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and fare table availability."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set FLEETFARE_SUPABASE_URL and FLEETFARE_SUPABASE_KEY environment variables.",
        }

    tables: dict[str, bool] = {}
    errors: list[str] = []
    for table in ("destinations", "fare_quotes", "tickets", "bus_locations"):
        try:
            supabase.table(table).select("*", count="exact").limit(1).execute()
            tables[table] = True
        except Exception as exc:
            tables[table] = False
            errors.append(f"{table}: {exc}")

    connected = any(tables.values())
    return {
        "configured": True,
        "connected": connected,
        "tables": tables,
        "errors": errors,
        "message": (
            "Database connected." if all(tables.values())
            else "Database connected but some fare tables may not exist." if connected
            else "Database connection error."
        ),
    }
