"""
Episodic API: FastAPI application entry point.

Routers are registered here. Each service lives in episodic/api/.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from episodic.api import activity, auth, friends, reviews, watched
from episodic.core.config import settings
from episodic.core.logging_config import configure_logging
from episodic.db.session import dispose_engine

configure_logging()
logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 5


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Episodic API starting (env=%s)", settings.APP_ENV)
    yield
    dispose_engine()


app = FastAPI(
    title="Episodic API",
    description="Backend for the Episodic TV tracking and social app.",
    version="0.3.0",
    docs_url="/docs" if settings.ENABLE_DOCS else None,
    redoc_url="/redoc" if settings.ENABLE_DOCS else None,
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Errors ────────────────────────────────────────────────────────────────────
@app.exception_handler(SQLAlchemyError)
async def datastore_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Unexpected datastore failures surface as one generic, retryable error."""
    logger.exception("Datastore failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": {
                "error": {
                    "code": "DATASTORE_UNAVAILABLE",
                    "message": "Temporary storage failure, please retry",
                }
            }
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(auth.router,     prefix="/auth",     tags=["auth"])
app.include_router(friends.router,  prefix="/friends",  tags=["friends"])
app.include_router(reviews.router,  prefix="/reviews",  tags=["reviews"])
app.include_router(watched.router,  prefix="/users",    tags=["watched"])
app.include_router(activity.router, prefix="/activity", tags=["activity"])


# ── Health check ──────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
def health_check() -> dict:
    """Liveness probe. Returns 200 when the server is up."""
    return {"status": "ok", "version": app.version, "env": settings.APP_ENV}
