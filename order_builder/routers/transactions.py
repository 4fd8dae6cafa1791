"""
Transaction cart API: drives one CartEngine per create-transaction screen.

POST   /api/transactions?type=estimate                    : start a cart session
GET    /api/transactions/{id}                             : current snapshot
POST   /api/transactions/{id}/products/{product_id}/toggle : add / bump quantity
PATCH  /api/transactions/{id}/items/{index}               : edit quantity, price or discount
DELETE /api/transactions/{id}/items/{product_id}          : remove a line
PUT    /api/transactions/{id}/discount                    : overall discount
POST   /api/transactions/{id}/categories/{category}/toggle : category filter
PUT    /api/transactions/{id}/search                      : search term
PUT    /api/transactions/{id}/party                       : party selection
PUT    /api/transactions/{id}/delivery-date               : expected delivery date
POST   /api/transactions/{id}/submission                  : validated payload for the save service
DELETE /api/transactions/{id}                             : discard the session

Every mutation returns the fresh snapshot. Input clamping lives here -
the engine itself trusts its callers.
"""

import logging
from contextlib import ExitStack, contextmanager
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import Principal, get_current_principal
from ..cart_engine import CartEngine
from ..checkout import CheckoutError, build_submission
from ..database import get_db
from ..session_store import store
from .products import load_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


# --- Helpers ---

def clamp_field_value(field: schemas.EditableField, value: float) -> float:
    """Presentation-layer bounds: quantity ≥ 1, price ≥ 0, discount in [0, 100]."""
    if field == schemas.EditableField.QUANTITY:
        return max(1, int(value))
    if field == schemas.EditableField.UNIT_PRICE:
        return max(0.0, value)
    return clamp_percent(value)


def clamp_percent(value: float) -> float:
    return min(100.0, max(0.0, value))


def build_snapshot(session_id: str, engine: CartEngine) -> schemas.TransactionSnapshot:
    mode = engine.mode
    return schemas.TransactionSnapshot(
        session_id=session_id,
        mode=mode,
        is_order=mode == schemas.TransactionMode.ORDER,
        party_id=engine.party_id,
        delivery_date=engine.delivery_date,
        search_term=engine.search_term,
        selected_categories=sorted(engine.selected_categories),
        categories=engine.categories,
        cart_discount_percent=engine.cart_discount_percent,
        items=[
            schemas.CartLineOut(
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_discount_percent=line.line_discount_percent,
                max_qty=line.max_qty,
                line_subtotal=line.line_subtotal,
            )
            for line in engine.lines
        ],
        visible_products=engine.visible_products,
        totals=engine.totals,
    )


@contextmanager
def session_access(session_id: str, principal: Principal) -> Iterator[CartEngine]:
    """
    The caller's own session engine with its lock held; 404 if unknown,
    expired or started by someone else. Mode inputs are refreshed from the
    current token so permission changes apply on the next request.
    """
    with ExitStack() as stack:
        try:
            engine = stack.enter_context(store.locked(session_id, owner_id=principal.user_id))
        except KeyError:
            raise HTTPException(status_code=404, detail="Transaction session not found")
        engine.set_mode_context(principal.mode_context(engine.mode_context.requested_type))
        yield engine


# --- Endpoints ---

@router.post("/", response_model=schemas.TransactionSnapshot)
def start_transaction(
    type: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Start a cart session over the current catalog.
    Mode comes from ?type= and the caller's order/estimate permissions.
    """
    catalog = load_catalog(db)
    session_id = store.create(catalog, principal.mode_context(type), owner_id=principal.user_id)
    with session_access(session_id, principal) as engine:
        return build_snapshot(session_id, engine)


@router.get("/{session_id}", response_model=schemas.TransactionSnapshot)
def get_transaction(session_id: str, principal: Principal = Depends(get_current_principal)):
    with session_access(session_id, principal) as engine:
        return build_snapshot(session_id, engine)


@router.post("/{session_id}/products/{product_id}/toggle", response_model=schemas.TransactionSnapshot)
def toggle_product(
    session_id: str,
    product_id: str,
    principal: Principal = Depends(get_current_principal),
):
    with session_access(session_id, principal) as engine:
        product = engine.find_product(product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        engine.toggle_product(product)
        return build_snapshot(session_id, engine)


@router.patch("/{session_id}/items/{index}", response_model=schemas.TransactionSnapshot)
def update_item(
    session_id: str,
    index: int,
    request: schemas.UpdateItemRequest,
    principal: Principal = Depends(get_current_principal),
):
    with session_access(session_id, principal) as engine:
        engine.update_item(index, request.field, clamp_field_value(request.field, request.value))
        return build_snapshot(session_id, engine)


@router.delete("/{session_id}/items/{product_id}", response_model=schemas.TransactionSnapshot)
def remove_item(
    session_id: str,
    product_id: str,
    principal: Principal = Depends(get_current_principal),
):
    with session_access(session_id, principal) as engine:
        engine.remove_item(product_id)
        return build_snapshot(session_id, engine)


@router.put("/{session_id}/discount", response_model=schemas.TransactionSnapshot)
def set_overall_discount(
    session_id: str,
    request: schemas.DiscountRequest,
    principal: Principal = Depends(get_current_principal),
):
    with session_access(session_id, principal) as engine:
        engine.set_overall_discount(clamp_percent(request.percent))
        return build_snapshot(session_id, engine)


@router.post("/{session_id}/categories/{category}/toggle", response_model=schemas.TransactionSnapshot)
def toggle_category(
    session_id: str,
    category: str,
    principal: Principal = Depends(get_current_principal),
):
    with session_access(session_id, principal) as engine:
        engine.toggle_category(category)
        return build_snapshot(session_id, engine)


@router.put("/{session_id}/search", response_model=schemas.TransactionSnapshot)
def set_search_term(
    session_id: str,
    request: schemas.SearchRequest,
    principal: Principal = Depends(get_current_principal),
):
    with session_access(session_id, principal) as engine:
        engine.set_search_term(request.term)
        return build_snapshot(session_id, engine)


@router.put("/{session_id}/party", response_model=schemas.TransactionSnapshot)
def set_party(
    session_id: str,
    request: schemas.PartyRequest,
    principal: Principal = Depends(get_current_principal),
):
    with session_access(session_id, principal) as engine:
        engine.set_party(request.party_id)
        return build_snapshot(session_id, engine)


@router.put("/{session_id}/delivery-date", response_model=schemas.TransactionSnapshot)
def set_delivery_date(
    session_id: str,
    request: schemas.DeliveryDateRequest,
    principal: Principal = Depends(get_current_principal),
):
    with session_access(session_id, principal) as engine:
        engine.set_delivery_date(request.delivery_date)
        return build_snapshot(session_id, engine)


@router.post("/{session_id}/submission", response_model=schemas.Submission)
def build_transaction_submission(
    session_id: str,
    principal: Principal = Depends(get_current_principal),
):
    """Validate the cart and return what the save service should receive."""
    with session_access(session_id, principal) as engine:
        try:
            submission = build_submission(engine)
        except CheckoutError as e:
            raise HTTPException(status_code=400, detail=str(e))
    logger.info(
        f"{submission.payload.mode.value.capitalize()} ready for {submission.endpoint} "
        f"({len(submission.payload.items)} items, total {submission.payload.final_total:.2f})"
    )
    return submission


@router.delete("/{session_id}")
def discard_transaction(session_id: str, principal: Principal = Depends(get_current_principal)):
    if not store.discard(session_id, owner_id=principal.user_id):
        raise HTTPException(status_code=404, detail="Transaction session not found")
    return {"ok": True}
