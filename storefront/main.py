# storefront/main.py
from fastapi import FastAPI
import logging
from contextlib import asynccontextmanager

from storefront.config import settings
from storefront.database import db
from storefront.api.routes import auth as auth_routes
from storefront.api.routes import products as product_routes
from storefront.api.routes import cart as cart_routes
from storefront.middleware.cors_config import configure_cors
from storefront.middleware.request_logging import add_request_logging


logger = logging.getLogger("uvicorn.error")
logging.getLogger("storefront").setLevel(settings.LOG_LEVEL.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context: run startup checks before the app starts serving,
    and allow for clean shutdown actions if needed later.
    """
    # --- startup logic ---
    try:
        db.data_dir.mkdir(parents=True, exist_ok=True)
        products_path = db._file_path("products")
        if not products_path.exists():
            logger.warning(
                "Products file not found at %s: carts cannot add items until the catalog is seeded (scripts/init_db.py).",
                products_path,
            )
        else:
            logger.info("Found products file: %s", products_path)
    except OSError as e:
        logger.warning("Data directory %s is not usable: %s", db.data_dir, e)

    yield
    # --- shutdown logic (if needed) ---
    logger.info("Shutting down Storefront API")

app = FastAPI(title="Storefront API", version="0.1.0", lifespan=lifespan)
configure_cors(app)
add_request_logging(app)

# Include API routers
app.include_router(auth_routes.router)
app.include_router(product_routes.router)
app.include_router(cart_routes.router)


@app.get("/", tags=["root"])
async def root():
    return {"status": "ok", "service": "Storefront API"}
