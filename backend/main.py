"""
Editor GitHub connector API - Main application
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import httpx
import logging

from editor_api.core.config import settings
from editor_api.core.errors import ApiError
from editor_api.routers import auth, github
from editor_api.security.auth import AuthenticationGate
from editor_api.security.token_store import create_token_store
from editor_api.services.commit_history import CommitHistoryResolver
from editor_api.services.oauth_service import GitHubOAuthExchanger
from editor_api.services.redis_service import init_redis, close_redis
from editor_api.services.storage_service import StorageManager

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Editor GitHub connector starting...")

    redis_client = await init_redis()
    if redis_client:
        logger.info("✅ Redis initialized for token cache and rate limiting")

    app.state.auth_gate = AuthenticationGate(
        store=create_token_store(redis_client, ttl_seconds=settings.TOKEN_CACHE_TTL_SECONDS),
        exchanger=GitHubOAuthExchanger(),
        timeout=settings.OAUTH_EXCHANGE_TIMEOUT_SECONDS or None,
    )
    app.state.storage_manager = StorageManager(settings.STORAGE_ROOT, client_factory=httpx.AsyncClient)
    app.state.history_resolver = CommitHistoryResolver()
    app.state.github_client_factory = httpx.AsyncClient
    logger.info(f"📁 Working copies in {app.state.storage_manager.root}")

    yield

    logger.info("👋 Shutting down...")
    await close_redis()


app = FastAPI(
    title="Editor GitHub Connector",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)

app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(github.router, tags=["GitHub"])


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(FileNotFoundError)
async def file_not_found_handler(request: Request, exc: FileNotFoundError):
    return JSONResponse(
        status_code=404,
        content={"message": "File not found.", "description": exc.filename or str(exc)},
    )


@app.exception_handler(httpx.HTTPStatusError)
async def github_error_handler(request: Request, exc: httpx.HTTPStatusError):
    logger.error(f"GitHub API error: {exc.response.status_code} {exc.request.url}")
    return JSONResponse(
        status_code=502,
        content={"message": f"GitHub API error: {exc.response.status_code}"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(status_code=500, content={"message": "Operation failed."})


@app.get("/")
async def root():
    return {"message": "Editor GitHub Connector", "version": "1.0.0", "docs": "/docs"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
