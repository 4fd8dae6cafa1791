from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base


# --- Catalog tables: read-only to the cart engine ---

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)

    products = relationship("Product", back_populates="category")


class Product(Base):
    """Sellable catalog item. Price and stock are snapshots copied into cart lines."""
    __tablename__ = "products"

    id = Column(String, primary_key=True)  # UUID or SKU
    product_name = Column(String, nullable=False)
    price = Column(Float, default=0.0)
    qty = Column(Float, default=0.0)  # Available stock: advisory only
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    category = relationship("Category", back_populates="products")


class Party(Base):
    """Customer company an order or estimate is raised for."""
    __tablename__ = "parties"

    id = Column(String, primary_key=True)
    company_name = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
