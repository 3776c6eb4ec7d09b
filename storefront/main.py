# storefront/main.py
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging
from contextlib import asynccontextmanager

from storefront.config import settings
from storefront.database import FileBackedDB
from storefront.api.routes import auth as auth_routes
from storefront.api.routes import orders as order_routes
from storefront.middleware.cors_config import configure_cors
from storefront.middleware.security_headers import add_security_headers
from storefront.services.order_queries import OrderQueryService
from storefront.services.order_status import OrderStatusEngine
from storefront.services.order_store import OrderStore


logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context: open the file-backed DB once for the process, build the
    order services on top of it, and release it on shutdown.
    """
    # --- startup logic ---
    db = FileBackedDB(
        settings.DATA_DIR,
        {"users": settings.USERS_FILE, "orders": settings.ORDERS_FILE},
    ).connect()
    store = OrderStore(db)
    app.state.db = db
    app.state.order_engine = OrderStatusEngine(store, strict_transitions=settings.STRICT_TRANSITIONS)
    app.state.order_queries = OrderQueryService(store)
    logger.info("Storefront data directory: %s", db.data_dir.resolve())
    if settings.STRICT_TRANSITIONS:
        logger.info("Strict order status transitions enabled")

    # Warn when no account exists yet; admins are bootstrapped with scripts/create_admin.py
    users_path = db._file_path("users")
    if not users_path.exists():
        logger.warning(
            "Users file not found at %s; run scripts/create_admin.py to create an administrator.",
            users_path,
        )

    yield
    # --- shutdown logic ---
    db.disconnect()
    logger.info("Shutting down Storefront API")


def create_app() -> FastAPI:
    app = FastAPI(title="Storefront API", version="0.1.0", lifespan=lifespan)
    configure_cors(app)
    add_security_headers(app)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # missing / malformed input is a 400 in this API, not FastAPI's default 422
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    app.include_router(auth_routes.router)
    app.include_router(order_routes.router)

    @app.get("/", tags=["root"])
    async def root():
        return {"status": "ok", "service": "Storefront API"}

    return app


app = create_app()
