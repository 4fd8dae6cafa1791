from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload
from typing import List
from .. import models, schemas
from ..auth import Principal, get_current_principal
from ..catalog import derive_categories
from ..database import get_db

router = APIRouter(prefix="/products", tags=["products"])

# Demo catalog: seeded on startup when SEED_DEMO_CATALOG is set
DEFAULT_CATALOG = [
    {"id": "PRD-0001", "product_name": "Basmati Rice 5kg", "price": 640.0, "qty": 120, "category": "Grocery"},
    {"id": "PRD-0002", "product_name": "Sunflower Oil 1L", "price": 185.0, "qty": 300, "category": "Grocery"},
    {"id": "PRD-0003", "product_name": "Detergent Powder 1kg", "price": 210.0, "qty": 80, "category": "Home Care"},
    {"id": "PRD-0004", "product_name": "Dish Wash Liquid 500ml", "price": 99.0, "qty": 150, "category": "Home Care"},
    {"id": "PRD-0005", "product_name": "Bath Soap Pack of 4", "price": 160.0, "qty": 200, "category": "Personal Care"},
    {"id": "PRD-0006", "product_name": "Toothpaste 150g", "price": 115.0, "qty": 0, "category": "Personal Care"},
]


def to_product(row: models.Product) -> schemas.Product:
    """ORM row → engine-facing Product value."""
    return schemas.Product(
        id=row.id,
        name=row.product_name,
        unit_price=row.price or 0.0,
        available_qty=row.qty or 0.0,
        category=row.category.name if row.category else None,
    )


def load_catalog(db: Session) -> List[schemas.Product]:
    """Full catalog in a stable order (creation time, then id)."""
    rows = (
        db.query(models.Product)
        .options(joinedload(models.Product.category))
        .order_by(models.Product.created_at, models.Product.id)
        .all()
    )
    return [to_product(row) for row in rows]


def seed_catalog(db: Session) -> int:
    """Insert demo products that aren't there yet. Returns number added."""
    added = 0
    for data in DEFAULT_CATALOG:
        if db.query(models.Product).filter(models.Product.id == data["id"]).first():
            continue
        category = db.query(models.Category).filter(models.Category.name == data["category"]).first()
        if not category:
            category = models.Category(name=data["category"])
            db.add(category)
            db.flush()
        db.add(models.Product(
            id=data["id"],
            product_name=data["product_name"],
            price=data["price"],
            qty=data["qty"],
            category_id=category.id,
        ))
        added += 1
    db.commit()
    return added


@router.get("/", response_model=List[schemas.Product])
def list_products(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return load_catalog(db)


@router.get("/categories", response_model=List[str])
def list_categories(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return derive_categories(load_catalog(db))
