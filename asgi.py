"""
asgi.py -- Application assembly for MedMachines.

This is the ONLY file that imports from both api/ and web/. It joins the two
independent layers into a single ASGI app without coupling them to each other.
api/main.py knows nothing about web/; web/routes.py knows nothing about api/.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.main import app
from web.routes import init_web_state
from web.routes import router as web_router

_api_lifespan = app.router.lifespan_context


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """API startup first (stores, services), then the client's taxonomy and view states."""
    async with _api_lifespan(app):
        init_web_state(app)
        yield


app.router.lifespan_context = lifespan

# Included last: the web router ends with the GET /{full_path:path} catch-all.
app.include_router(web_router, tags=["Web UI"])
