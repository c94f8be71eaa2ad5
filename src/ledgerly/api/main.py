"""FastAPI application for Ledgerly."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ledgerly.api.v1.router import api_router as v1_router
from ledgerly.core.config import get_settings
from ledgerly.core.exceptions import LedgerlyError
from ledgerly.core.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    configure_logging()
    settings = get_settings()
    logger.info("Starting application", environment=settings.environment)

    yield

    logger.info("Shutting down application")


# Middleware to strip trailing slashes (avoid 307 redirects)
class TrailingSlashMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path != "/" and request.url.path.endswith("/"):
            scope = request.scope
            scope["path"] = request.url.path.rstrip("/")
        return await call_next(request)


app = FastAPI(
    title="Ledgerly API",
    description="API for Ledgerly - personal and small-business finance",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    redirect_slashes=False,
)


@app.exception_handler(LedgerlyError)
async def ledgerly_error_handler(request: Request, exc: LedgerlyError) -> JSONResponse:
    """Render domain errors as {"detail": message} with their status code."""
    if exc.status_code >= 500:
        logger.error("Domain error", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.add_middleware(TrailingSlashMiddleware)

# CORS must be added last to be processed first
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix="/api/v1")


@app.get("/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
