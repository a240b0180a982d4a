# storefront/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional, Tuple

from fastapi import FastAPI

from storefront.api.routes import auth as auth_routes
from storefront.api.routes import cart as cart_routes
from storefront.api.routes import checkout as checkout_routes
from storefront.api.routes import orders as order_routes
from storefront.api.routes import products as product_routes
from storefront.auth.local import LocalAuthProvider
from storefront.auth.provider import AuthProvider
from storefront.auth.rest import RestAuthProvider
from storefront.config import Settings, get_settings
from storefront.db.base import Backend
from storefront.db.file_backend import FileBackend
from storefront.db.rest_backend import RestBackend
from storefront.middleware import add_security_headers, configure_cors
from storefront.store.session import SessionRegistry

logger = logging.getLogger("uvicorn.error")


def build_services(settings: Settings) -> Tuple[Backend, AuthProvider]:
    """Pick the database and auth clients named by settings.BACKEND."""
    backend_name = settings.BACKEND.strip().lower()
    if backend_name == "rest":
        if not settings.SERVICE_ANON_KEY:
            logger.warning("SERVICE_ANON_KEY is empty; requests to %s will be rejected", settings.SERVICE_URL)
        backend = RestBackend(settings.SERVICE_URL, settings.SERVICE_ANON_KEY, timeout=settings.HTTP_TIMEOUT)
        provider = RestAuthProvider(settings.SERVICE_URL, settings.SERVICE_ANON_KEY, timeout=settings.HTTP_TIMEOUT)
        return backend, provider
    if backend_name == "local":
        backend = FileBackend(settings.DATA_DIR)
        provider = LocalAuthProvider(
            backend,
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        )
        return backend, provider
    raise ValueError(f"Unknown BACKEND {settings.BACKEND!r} (expected 'local' or 'rest')")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if settings.BACKEND.strip().lower() == "local":
        products_path = settings.DATA_DIR / "products.csv"
        if not products_path.exists():
            logger.warning("Products table not found at %s - run scripts/init_db.py to seed the catalog.", products_path)
        else:
            logger.info("Using local tables in %s", settings.DATA_DIR)
    else:
        logger.info("Using hosted backend at %s", settings.SERVICE_URL)

    yield

    await app.state.backend.aclose()
    await app.state.provider.aclose()
    logger.info("Shutting down Storefront API")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    backend, provider = build_services(settings)

    app = FastAPI(title="Storefront API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.backend = backend
    app.state.provider = provider
    # the application root owns every session's cart/auth state
    app.state.registry = SessionRegistry(
        backend,
        provider,
        settings.STORAGE_DIR,
        tax_rate=settings.TAX_RATE,
        profile_fetch_attempts=settings.PROFILE_FETCH_ATTEMPTS,
        profile_fetch_backoff=settings.PROFILE_FETCH_BACKOFF,
        max_sessions=settings.SESSION_CACHE_SIZE,
    )

    configure_cors(app, settings.CORS_ORIGINS)
    add_security_headers(app)

    app.include_router(product_routes.router)
    app.include_router(cart_routes.router)
    app.include_router(auth_routes.router)
    app.include_router(checkout_routes.router)
    app.include_router(order_routes.router)

    @app.get("/", tags=["root"])
    async def root():
        return {"status": "ok", "service": "Storefront API", "backend": settings.BACKEND}

    return app


app = create_app()
