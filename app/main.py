# app/main.py
from contextlib import asynccontextmanager
from functools import partial
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from app.core.auth import session_token_middleware
from app.core.config import get_settings
from app.core.webhook_client import create_webhook_client
from app.database import create_db_and_tables
from app.services.client_session import SessionRegistry, build_client_session

# Import models so SQLModel metadata is populated before create_all()
from app.models import profile as _profile_models  # noqa: F401
from app.models import news as _news_models  # noqa: F401


# Routers
from app.routers.auth import router as auth_router
from app.routers.profile import router as profile_router
from app.routers.view import router as view_router
from app.routers.booking import router as booking_router
from app.routers.news import router as news_router
from app.routers.settings import router as settings_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
      - Create the webhook HTTP client and the client session registry.

    Shutdown:
      - Close every client session (drops auth subscriptions).
      - Close the webhook HTTP client.
    """
    logger.info("🔄 Startup: Connecting to Supabase Postgres...")
    try:
        create_db_and_tables()
        logger.info("✅ Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"❌ Startup: DB connection FAILED: {e}")
        raise

    http_client = create_webhook_client()
    app.state.registry = SessionRegistry(
        partial(build_client_session, http_client=http_client)
    )
    yield

    logger.info("🔄 Shutdown: closing %d client session(s)...", len(app.state.registry))
    await app.state.registry.close_all()
    await http_client.aclose()


app = FastAPI(
    title=settings.PROJECT_NAME or "Junior Cleaning Backend",
    version="0.1.0",
    lifespan=lifespan,
)


# --- CORS configuration ---
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Session-Token"],
)

# Newly opened client sessions get their token on every response,
# error responses included
app.middleware("http")(session_token_middleware)

# Versioned API prefix, e.g. /api/v1
app.include_router(auth_router, prefix=settings.API_V1_STR)
app.include_router(profile_router, prefix=settings.API_V1_STR)
app.include_router(view_router, prefix=settings.API_V1_STR)
app.include_router(booking_router, prefix=settings.API_V1_STR)
app.include_router(news_router, prefix=settings.API_V1_STR)
app.include_router(settings_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "junior-cleaning-backend"}
