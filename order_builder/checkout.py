"""
Checkout stage: validates a finished cart and builds what the save
collaborator receives. Nothing is sent from here.

Orders go to /invoices and need a delivery date; estimates go to
/invoices/estimates and never carry one.
"""

from .cart_engine import CartEngine
from .schemas import Submission, SubmissionItem, SubmissionPayload, TransactionMode

ORDER_ENDPOINT = "/invoices"
ESTIMATE_ENDPOINT = "/invoices/estimates"


class CheckoutError(ValueError):
    """Cart is not ready to submit. Message is operator-facing."""


def validate_submission(engine: CartEngine) -> None:
    """Raises CheckoutError with the first problem found."""
    if not engine.party_id:
        raise CheckoutError("Select a party")
    if engine.is_order and not engine.delivery_date:
        raise CheckoutError("Select delivery date")
    if not engine.lines:
        raise CheckoutError("Add products")


def endpoint_for(mode: TransactionMode) -> str:
    return ORDER_ENDPOINT if mode == TransactionMode.ORDER else ESTIMATE_ENDPOINT


def build_submission(engine: CartEngine) -> Submission:
    validate_submission(engine)
    mode = engine.mode

    items = [
        SubmissionItem(
            product_id=line.product_id,
            product_name=line.product_name,
            quantity=float(line.quantity),
            price=float(line.unit_price),
            discount=line.line_discount_percent,
            max_qty=line.max_qty,
        )
        for line in engine.lines
    ]

    payload = SubmissionPayload(
        party_id=engine.party_id,
        discount=engine.cart_discount_percent,
        items=items,
        expected_delivery_date=engine.delivery_date if mode == TransactionMode.ORDER else None,
        final_total=engine.totals.final_total,
        mode=mode,
    )
    return Submission(endpoint=endpoint_for(mode), payload=payload)
