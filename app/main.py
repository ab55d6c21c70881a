import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.db import Base, engine
from app.errors import AccessError, InvalidArgument, NotFound, PermissionDenied
from app.settings import settings
from app.routes.recordings import router as recordings_router
from app import triggers  # noqa: F401  registers the session trigger listeners
from contextlib import asynccontextmanager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # ----- startup -----
    # Dev-only: create tables if they do not exist.
    # In prod, prefer running Alembic migrations instead of create_all.
    Base.metadata.create_all(bind=engine)

    yield

    # ----- shutdown -----
    # Dispose pooled DB connections so the process exits cleanly
    engine.dispose()

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

_ACCESS_STATUS = {
    InvalidArgument: 400,
    PermissionDenied: 403,
    NotFound: 404,
}

@app.exception_handler(AccessError)
async def access_error_handler(request: Request, exc: AccessError):
    return JSONResponse(status_code=_ACCESS_STATUS.get(type(exc), 400), content={"detail": str(exc)})

@app.get("/healthz", tags=["health"])
def healthz():
    return {"status": "ok"}

# Versioned API
app.include_router(recordings_router, prefix=settings.API_PREFIX)
