import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.middleware import BodySizeLimitMiddleware, SecurityHeadersMiddleware
from app.dependencies import get_list_cache
from app.routers import expenses, health, todos, training
from app.services.cache import start_purge_scheduler, stop_purge_scheduler

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: purge expired list cache entries in the background
    logger.info("Starting cache purge scheduler...")
    start_purge_scheduler(get_list_cache, settings.CACHE_CHECK_PERIOD)
    yield
    # Shutdown
    logger.info("Stopping cache purge scheduler...")
    stop_purge_scheduler()


app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    max_age=3600,
)

# Security headers and body size limit
if settings.SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.MAX_BODY_BYTES)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    client = request.client.host if request.client else "-"
    logger.info(f'{client} "{request.method} {request.url.path}" {response.status_code} {elapsed_ms:.1f}ms')
    return response


# Root endpoint
@app.get("/")
def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}


# Register routers
app.include_router(health.router, prefix="/api", tags=["Health"])  # /api/health
app.include_router(expenses.router, prefix=f"{settings.API_PREFIX}/expense", tags=["Expenses"])
app.include_router(training.router, prefix=f"{settings.API_PREFIX}/training", tags=["Training"])
app.include_router(todos.router, prefix=f"{settings.API_PREFIX}/todo", tags=["Todos"])
