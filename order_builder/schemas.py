from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class TransactionMode(str, Enum):
    ORDER = "order"
    ESTIMATE = "estimate"


class EditableField(str, Enum):
    QUANTITY = "quantity"
    UNIT_PRICE = "unit_price"
    LINE_DISCOUNT_PERCENT = "line_discount_percent"


class Product(BaseModel):
    id: str
    name: str
    unit_price: float = Field(default=0.0, ge=0)
    available_qty: float = Field(default=0.0, ge=0)
    category: Optional[str] = None

    class Config:
        frozen = True


class Party(BaseModel):
    id: str
    company_name: str


class CartLineOut(BaseModel):
    product_id: str
    product_name: str
    quantity: float
    unit_price: float
    line_discount_percent: float
    max_qty: float
    line_subtotal: float


class CartTotals(BaseModel):
    """subtotal is already net of per-line discounts; discount_amount is the cart-level cut."""
    subtotal: float
    discount_amount: float
    final_total: float


class TransactionSnapshot(BaseModel):
    session_id: str
    mode: TransactionMode
    is_order: bool
    party_id: Optional[str] = None
    delivery_date: Optional[datetime] = None
    search_term: str
    selected_categories: List[str]
    categories: List[str]
    cart_discount_percent: float
    items: List[CartLineOut]
    visible_products: List[Product]
    totals: CartTotals


# --- Request bodies ---

class UpdateItemRequest(BaseModel):
    field: EditableField
    value: float = Field(allow_inf_nan=False)


class DiscountRequest(BaseModel):
    percent: float = Field(allow_inf_nan=False)


class SearchRequest(BaseModel):
    term: str = ""


class PartyRequest(BaseModel):
    party_id: Optional[str] = None


class DeliveryDateRequest(BaseModel):
    delivery_date: Optional[datetime] = None


# --- Checkout ---

class SubmissionItem(BaseModel):
    product_id: str
    product_name: str
    quantity: float
    price: float
    discount: float
    max_qty: float


class SubmissionPayload(BaseModel):
    party_id: str
    discount: float
    items: List[SubmissionItem]
    expected_delivery_date: Optional[datetime] = None
    final_total: float
    mode: TransactionMode


class Submission(BaseModel):
    endpoint: str
    payload: SubmissionPayload
