from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .database import engine, Base
from .routers import products, parties, transactions

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("order_builder")

# Catalog tables: this service only reads them, but a fresh dev database needs them
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Order Builder",
    description="Cart builder for field-sales orders and estimates",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(products.router, prefix="/api")
app.include_router(parties.router, prefix="/api")
app.include_router(transactions.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "order-builder"}


@app.on_event("startup")
def auto_seed():
    """Seed the demo catalog when SEED_DEMO_CATALOG is enabled."""
    if not settings.SEED_DEMO_CATALOG:
        return
    from .database import SessionLocal
    db = SessionLocal()
    try:
        added = products.seed_catalog(db)
        logger.info(f"Seeded {added} demo products")
    finally:
        db.close()
