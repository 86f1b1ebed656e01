# apps/api_main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

# Routes
from app.api.v1.categories import router as categories_router
from app.api.v1.products import router as products_router

# Others
from app.core.config import settings
from app.core.deps import get_catalog_engine
from app.core.http_errors import init_error_handlers
from app.core.logging import setup_logging
from app.core.middleware import RequestContextMiddleware

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    from app.models import create_db_and_tables

    app.state.started_at = datetime.now(UTC)
    create_db_and_tables()
    yield
    get_catalog_engine().close()


app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)
app.add_middleware(RequestContextMiddleware)

init_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r".*",
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=True,
    max_age=86400,
)


@app.get("/health", tags=["system"])
def health():
    return {"status": "ok", "started_at": getattr(app.state, "started_at", None)}


# routers
app.include_router(products_router, prefix="/api/v1")
app.include_router(categories_router, prefix="/api/v1")
