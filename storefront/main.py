# storefront/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.clients.supabase import supabase_client
from storefront.core.config import settings
from storefront.core.logging_config import setup_logging
from storefront.core.redis import redis_client
from storefront.routers import auth, cart, catalog, order, profile

logger = logging.getLogger(__name__)


# --- Last-resort error handler ---
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.critical(f"Unhandled exception for request: {request.method} {request.url}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"},
    )


# --- Lifespan ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Application startup.")
    yield
    await supabase_client.close()
    await redis_client.aclose()
    logger.info("Application shutdown: HTTP client and Redis connection closed.")


app = FastAPI(
    title="Damanhour Storefront",
    description="Backend for the Damanhour storefront: identity gateway, cart, catalog and orders",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,  # session cookies
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(Exception, unhandled_exception_handler)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(catalog.router, tags=["Catalog"])
api_router.include_router(cart.router, tags=["Cart"])
api_router.include_router(order.router, tags=["Orders"])
api_router.include_router(profile.router, tags=["Profile"])

app.include_router(api_router)
