"""
Cart engine: owns the in-progress order/estimate cart.

State: cart lines, overall (cart-level) discount, catalog view state
(search term + selected categories), party and delivery date.
Derived on every read, never cached: totals, visible products, categories, mode.

Pricing is a two-stage discount stack:
    line_subtotal   = unit_price × quantity × (1 − line_discount_percent/100)
    subtotal        = Σ line_subtotal              ← already net of line discounts
    discount_amount = subtotal × cart_discount_percent / 100
    final_total     = subtotal − discount_amount

Input clamping (quantity ≥ 1, price ≥ 0, discounts in [0, 100]) is the
caller's job. Stale indexes and unknown product ids are silent no-ops.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import FrozenSet, List, Optional, Sequence, Set, Tuple, Union

from . import catalog as catalog_stage
from .mode import ModeContext, resolve_mode
from .schemas import CartTotals, EditableField, Product, TransactionMode

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    product_id: str
    product_name: str
    quantity: float = 1
    unit_price: float = 0.0
    line_discount_percent: float = 0.0
    max_qty: float = 0.0  # stock snapshot at insertion: advisory, not enforced

    @property
    def line_subtotal(self) -> float:
        return self.unit_price * self.quantity * (1 - self.line_discount_percent / 100)


def calculate_totals(lines: Sequence[CartLine], cart_discount_percent: float) -> CartTotals:
    subtotal = sum(line.line_subtotal for line in lines)
    discount_amount = subtotal * cart_discount_percent / 100
    return CartTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        final_total=subtotal - discount_amount,
    )


class CartEngine:
    """One cart session. Every mutator reads the current state before writing."""

    EDITABLE_FIELDS = {f.value for f in EditableField}

    def __init__(self, catalog: Sequence[Product], mode_context: Optional[ModeContext] = None):
        self._catalog: Tuple[Product, ...] = tuple(catalog)
        self._mode_context = mode_context or ModeContext()
        self._lines: List[CartLine] = []
        self._cart_discount_percent = 0.0
        self._search_term = ""
        self._selected_categories: Set[str] = set()
        self.party_id: Optional[str] = None
        self.delivery_date: Optional[datetime] = None

    # --- Catalog lookups ---

    @property
    def catalog(self) -> Tuple[Product, ...]:
        return self._catalog

    def find_product(self, product_id: str) -> Optional[Product]:
        for product in self._catalog:
            if product.id == product_id:
                return product
        return None

    # --- Cart mutations ---

    def toggle_product(self, product: Product) -> CartLine:
        """Add the product with quantity 1, or bump the existing line by one."""
        for i, line in enumerate(self._lines):
            if line.product_id == product.id:
                self._lines[i] = replace(line, quantity=line.quantity + 1)
                logger.info(f"Increased {product.name} quantity")
                return replace(self._lines[i])

        line = CartLine(
            product_id=product.id,
            product_name=product.name,
            quantity=1,
            unit_price=product.unit_price or 0.0,
            line_discount_percent=0.0,
            max_qty=product.available_qty or 0.0,
        )
        self._lines.append(line)
        logger.info(f"Added {product.name}")
        return replace(line)

    def update_item(self, index: int, field: Union[EditableField, str], value: float) -> None:
        """
        Set quantity, unit_price or line_discount_percent on the line at index.
        A quantity of 0 leaves the line in the cart: removal is remove_item only.
        """
        field_name = field.value if isinstance(field, EditableField) else field
        if field_name not in self.EDITABLE_FIELDS:
            logger.debug(f"Ignoring edit of non-editable field {field_name!r}")
            return
        if not 0 <= index < len(self._lines):
            logger.debug(f"Ignoring edit of stale line index {index}")
            return
        self._lines[index] = replace(self._lines[index], **{field_name: value})

    def remove_item(self, product_id: str) -> None:
        remaining = [line for line in self._lines if line.product_id != product_id]
        if len(remaining) == len(self._lines):
            logger.debug(f"Ignoring removal of product {product_id} not in cart")
            return
        self._lines = remaining

    def set_overall_discount(self, percent: float) -> None:
        self._cart_discount_percent = percent

    # --- Catalog view state ---

    def toggle_category(self, category: str) -> None:
        if category in self._selected_categories:
            self._selected_categories.discard(category)
        else:
            self._selected_categories.add(category)

    def set_search_term(self, term: str) -> None:
        self._search_term = term or ""

    # --- Submission context ---

    def set_party(self, party_id: Optional[str]) -> None:
        self.party_id = party_id

    def set_delivery_date(self, delivery_date: Optional[datetime]) -> None:
        self.delivery_date = delivery_date

    def set_mode_context(self, context: ModeContext) -> None:
        self._mode_context = context

    @property
    def mode_context(self) -> ModeContext:
        return self._mode_context

    # --- Read-only snapshots ---

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(replace(line) for line in self._lines)

    @property
    def cart_discount_percent(self) -> float:
        return self._cart_discount_percent

    @property
    def search_term(self) -> str:
        return self._search_term

    @property
    def selected_categories(self) -> FrozenSet[str]:
        return frozenset(self._selected_categories)

    @property
    def categories(self) -> List[str]:
        return catalog_stage.derive_categories(self._catalog)

    @property
    def visible_products(self) -> List[Product]:
        return catalog_stage.visible_products(
            self._catalog,
            self._search_term,
            self._selected_categories,
            [line.product_id for line in self._lines],
        )

    @property
    def totals(self) -> CartTotals:
        return calculate_totals(self._lines, self._cart_discount_percent)

    @property
    def mode(self) -> TransactionMode:
        return resolve_mode(self._mode_context)

    @property
    def is_order(self) -> bool:
        return self.mode == TransactionMode.ORDER
