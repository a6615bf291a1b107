"""
store_service/main.py - Sports Store web service

PURPOSE:
    Catalog browsing, a per-visitor shopping cart kept in the visitor's
    server-side session, and checkout into durable orders.

RESPONSIBILITIES:
    - Page through the product catalog by category
    - Add/remove/clear cart lines; the cart lives in Redis under the
      visitor's session between requests
    - Validate the order form and cart together at checkout, save the order,
      empty the cart
    - Query past orders
    - Catalog administration (create, edit, delete products)

API ENDPOINTS:
    GET    /health                          - Health check
    GET    /products?category=&page=        - One page (4 products) of the catalog
    GET    /products/{product_id}           - One product
    GET    /categories                      - Categories for navigation
    GET    /cart                            - Cart lines, total value and item count
    GET    /cart/count                      - Units in the cart
    POST   /cart/lines                      - Add a product to the cart
    DELETE /cart/lines/{product_id}         - Remove a product from the cart
    DELETE /cart                            - Empty the cart
    POST   /checkout                        - Place an order (201) or get errors (422)
    GET    /orders                          - Past orders (optional ?gift_wrap=)
    GET    /orders/{order_id}               - One past order
    POST   /admin/products                  - Create a product
    PUT    /admin/products/{product_id}     - Edit a product
    DELETE /admin/products/{product_id}     - Delete a product

SESSIONS:
    The visitor is identified by an HTTP-only cookie (SESSION_COOKIE_NAME,
    default "store_session") issued on first contact. Session values expire
    after SESSION_TTL_SECONDS of inactivity.

DATA STORAGE:
    - Redis: session values (key: "session:{session_id}:Cart")
    - PostgreSQL: products, orders, order_lines

TESTING COMMANDS:
    1. Browse the Chess category:
        curl http://localhost:8000/products?category=Chess

    2. Add a product (keep the cookie jar between calls):
        curl -c jar -b jar -X POST http://localhost:8000/cart/lines \
          -H "Content-Type: application/json" -d '{"product_id": 1}'

    3. Check out:
        curl -c jar -b jar -X POST http://localhost:8000/checkout \
          -H "Content-Type: application/json" \
          -d '{"name": "Joe", "address": "1 Main St", "city": "Boston", "state": "MA", "country": "USA"}'
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic_settings import BaseSettings

from shared.database import build_database_url, make_engine, make_session_factory
from shared.exceptions import DeserializationFailure, PersistenceFailure, StoreError
from shared.logging_config import setup_logging
from shared.session_store import RedisSessionStore
from store_service import dependencies
from store_service.models import Base
from store_service.routes import admin_router, cart_router, catalog_router, order_router
from store_service.schemas import HealthResponse
from store_service.seed_data import seed_products

SERVICE_NAME = "store-service"
SERVICE_VERSION = "1.0.0"


class Settings(BaseSettings):
    """Application settings, read from environment variables."""

    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"
    postgres_db: str = "sports_store"
    database_url: Optional[str] = None
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    session_ttl_seconds: int = RedisSessionStore.SESSION_TTL
    session_cookie_name: str = "store_session"
    store_service_port: int = 8000
    log_level: str = "INFO"
    seed_catalog: bool = True

    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return build_database_url(
            self.postgres_user,
            self.postgres_password,
            self.postgres_host,
            self.postgres_port,
            self.postgres_db,
        )


settings = Settings()

# Setup logging
setup_logging(SERVICE_NAME, level=settings.log_level)
logger = logging.getLogger(__name__)


def init_db(engine) -> None:
    """Initialize database tables."""
    logger.info("Initializing database...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized")


# Startup: create tables, seed the catalog, connect Redis.
# Shutdown: close Redis and dispose of the engine.
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app lifecycle."""
    logger.info("Starting Store Service...")

    try:
        engine = make_engine(settings.resolved_database_url())
        init_db(engine)
        dependencies.session_factory = make_session_factory(engine)
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    if settings.seed_catalog:
        db = dependencies.session_factory()
        try:
            seed_products(db)
        finally:
            db.close()

    try:
        redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            decode_responses=True,
        )
        redis_client.ping()
        logger.info("Redis connected")
    except redis.RedisError as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise

    dependencies.session_store = RedisSessionStore(redis_client, ttl=settings.session_ttl_seconds)
    dependencies.session_cookie_name = settings.session_cookie_name

    yield  # Application is now ready to handle requests

    logger.info("Shutting down Store Service...")
    redis_client.close()
    engine.dispose()


app = FastAPI(title="Store Service", version=SERVICE_VERSION, lifespan=lifespan)
app.include_router(catalog_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(admin_router)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Translate store faults into JSON error responses."""
    if isinstance(exc, DeserializationFailure):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    elif isinstance(exc, PersistenceFailure):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.error(f"{exc.code} while handling {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"error": exc.message, "code": exc.code})


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", service=SERVICE_NAME, version=SERVICE_VERSION)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.store_service_port)
