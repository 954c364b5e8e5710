from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from watchlog.config import get_settings
from watchlog.database import AsyncSessionLocal, init_models
from watchlog.api import search, snapshot, users
from watchlog.services.providers import get_provider
from watchlog.services.watchlist import WatchlistStore

settings = get_settings()
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.app_name}...")
    if settings.create_tables:
        await init_models()

    # Placeholder identities on first boot
    try:
        async with AsyncSessionLocal() as db:
            await WatchlistStore(db).seed_users(settings.seed_user_names)
    except Exception as e:
        logger.warning(f"Could not seed users (schema not migrated yet?): {e}")

    app.state.search_provider = get_provider(settings)
    logger.info(f"Search provider: {settings.search_provider}")
    yield
    # Shutdown
    await app.state.search_provider.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed request bodies are client errors like any other validation failure
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


# Routers
app.include_router(users.router)
app.include_router(search.router)
app.include_router(snapshot.router)


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.app_name}
