"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.dependencies import FareStores
from .api.routes import display, fares, health, terminal, tracking
from .config import settings
from .services.broadcast import BroadcastHub
from .services.location import LocationResolver, default_coordinate
from .services.terminal import TerminalRegistry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close driver terminals (timers and channel handles) on shutdown."""
    yield
    app.state.terminals.close()


def create_app(stores: FareStores | None = None, reset_delay: float | None = None) -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        root_path="",
        lifespan=lifespan,
    )
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    stores = stores or FareStores.from_client()
    hub = BroadcastHub() if settings.broadcast_enabled else None
    app.state.stores = stores
    app.state.hub = hub
    app.state.terminals = TerminalRegistry(
        hub,
        quotes=stores.quotes,
        tickets=stores.tickets,
        destinations=stores.destinations,
        locator=LocationResolver(stores.locations, default=default_coordinate()),
        reset_delay=reset_delay,
    )

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(fares.router, prefix=settings.api_prefix)
    app.include_router(tracking.router, prefix=settings.api_prefix)
    app.include_router(terminal.router, prefix=settings.api_prefix)
    app.include_router(display.router, prefix=settings.api_prefix)
    return app


app = create_app()
