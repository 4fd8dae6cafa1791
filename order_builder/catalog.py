"""
Catalog filter/sort stage.

Turns the full product catalog plus the operator's search term and category
selection into the ordered list shown on the transaction screen.
Pure functions: inputs are never mutated, identical inputs give identical output.
"""

from typing import Iterable, List, Optional, Sequence

from .schemas import Product


def derive_categories(catalog: Sequence[Product]) -> List[str]:
    """
    Distinct category names across the FULL catalog, first-seen order.
    Products without a category are skipped.
    """
    seen = {}
    for product in catalog:
        if product.category:
            seen.setdefault(product.category, None)
    return list(seen)


def matches_search(product: Product, search_term: str) -> bool:
    """Case-insensitive substring match on the product name only."""
    if not search_term:
        return True
    return search_term.lower() in product.name.lower()


def matches_categories(product: Product, selected_categories: Iterable[str]) -> bool:
    selected = set(selected_categories)
    if not selected:
        return True
    return bool(product.category) and product.category in selected


def filter_products(
    catalog: Sequence[Product],
    search_term: str = "",
    selected_categories: Optional[Iterable[str]] = None,
) -> List[Product]:
    selected = set(selected_categories or ())
    return [
        p for p in catalog
        if matches_search(p, search_term) and matches_categories(p, selected)
    ]


def sort_in_cart_first(products: Sequence[Product], cart_product_ids: Iterable[str]) -> List[Product]:
    """
    Stable partition: products already in the cart come first.
    Catalog order is kept inside each group.
    """
    in_cart_ids = set(cart_product_ids)
    in_cart = [p for p in products if p.id in in_cart_ids]
    rest = [p for p in products if p.id not in in_cart_ids]
    return in_cart + rest


def visible_products(
    catalog: Sequence[Product],
    search_term: str = "",
    selected_categories: Optional[Iterable[str]] = None,
    cart_product_ids: Iterable[str] = (),
) -> List[Product]:
    filtered = filter_products(catalog, search_term, selected_categories)
    return sort_in_cart_first(filtered, cart_product_ids)
