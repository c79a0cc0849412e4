import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api import (
    auth,
    cart,
    categories,
    inventory,
    orders,
    payments,
    products,
    reviews,
    templates,
    users,
    variants,
    wishlist,
)
from storefront.core.config import settings
from storefront.core.errors import AppError
from storefront.core.logging import configure_logging
from storefront.db.base import engine
from storefront.db.connections import check_health, connect_with_retry, ping_database
from storefront.db.mongo import close_mongo, ping_mongo
from storefront.db.redis import close_redis, ping_redis

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_with_retry("PostgreSQL", ping_database)
    await connect_with_retry("Redis", ping_redis)
    await connect_with_retry("MongoDB", ping_mongo)
    logger.info("%s started (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)
    yield
    await close_redis()
    await close_mongo()
    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="E-commerce backend: catalog, orders, payments, reviews and design templates",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# Routers
for module in (
    auth,
    users,
    categories,
    products,
    variants,
    orders,
    payments,
    inventory,
    reviews,
    wishlist,
    templates,
    cart,
):
    app.include_router(module.router, prefix="/api")


@app.get("/health")
async def health_check():
    services = await check_health()
    healthy = all(services.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ok" if healthy else "degraded", "services": services},
    )
