"""FastAPI application entry point: middleware, error handlers and API routers."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quotation.config import settings
from quotation.database import Base, engine
import quotation.models  # noqa: F401 - registers the models on the metadata
from quotation.routers import articles, audit, auth, blocks, locks, quotes, sales_opportunities, users
from quotation.utils.errors import (
    LockConflict,
    NotAuthenticated,
    NotFound,
    OperationFailed,
    OperationNotAllowed,
)
from quotation.utils.schema_sync import sync_missing_schema_objects

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create new tables, then add columns/indexes missing from existing ones.
    Base.metadata.create_all(bind=engine)
    sync_missing_schema_objects(engine, Base.metadata)
    yield


app = FastAPI(
    title="Quotation backend",
    description="Articles, text blocks, sales opportunities and quotes with edit locks and change history",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotAuthenticated)
def handle_not_authenticated(request: Request, exc: NotAuthenticated):
    return JSONResponse(status_code=401, content={"detail": exc.message})


@app.exception_handler(NotFound)
def handle_not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(LockConflict)
def handle_lock_conflict(request: Request, exc: LockConflict):
    return JSONResponse(
        status_code=409,
        content={
            "detail": exc.message,
            "entity_id": exc.entity_id,
            "locked_by": exc.locked_by,
            "locked_by_name": exc.locked_by_name,
            "locked_at": exc.locked_at.isoformat() if exc.locked_at else None,
        },
    )


@app.exception_handler(OperationNotAllowed)
def handle_not_allowed(request: Request, exc: OperationNotAllowed):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(OperationFailed)
def handle_operation_failed(request: Request, exc: OperationFailed):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(ValueError)
def handle_invalid_value(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(articles.router)
app.include_router(blocks.router)
app.include_router(sales_opportunities.router)
app.include_router(quotes.router)
app.include_router(audit.router)
for lock_router in locks.routers:
    app.include_router(lock_router)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "Quotation backend"}
