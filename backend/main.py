from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.db import dispose_engine
from backend.db_init import init_db
from backend.guards import SubscriptionExpired
from backend.routes import (
    session,
    settings,
    plans,
    assignments,
    habits,
    clients,
    library,
    board,
    notifications,
    dashboard,
    admin,
    functions,
)


def create_app(init_database: bool = True) -> FastAPI:
    logging.basicConfig(
        level=os.getenv("BACKEND_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    app = FastAPI(title="LifeHabits API", version="0.1.0")

    app.include_router(session.router)
    app.include_router(settings.router)
    app.include_router(plans.router)
    app.include_router(assignments.router)
    app.include_router(habits.router)
    app.include_router(clients.router)
    app.include_router(library.router)
    app.include_router(board.router)
    app.include_router(notifications.router)
    app.include_router(dashboard.router)
    app.include_router(admin.router)
    app.include_router(functions.router)

    if init_database:
        @app.on_event("startup")
        async def _startup():
            await init_db()

        @app.on_event("shutdown")
        async def _shutdown():
            await dispose_engine()

    @app.exception_handler(SubscriptionExpired)
    async def _subscription_expired_handler(request: Request, exc: SubscriptionExpired):
        return JSONResponse(status_code=exc.status_code, content=exc.payload())

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logging.getLogger("backend").exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


app = create_app()
