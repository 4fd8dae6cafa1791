"""
Order vs Estimate mode derivation.

Mode is never stored: it is recomputed from the requested transaction type
(the ``type`` query parameter) and the operator's two capability flags.
"""

from dataclasses import dataclass
from typing import Optional

from .schemas import TransactionMode

ESTIMATE_REQUEST = "estimate"


@dataclass(frozen=True)
class ModeContext:
    requested_type: Optional[str] = None
    can_create_order: bool = False
    can_create_estimate: bool = False


def resolve_mode(context: ModeContext) -> TransactionMode:
    """
    1. type=estimate requested → ESTIMATE, regardless of permissions
    2. cannot create orders but can create estimates → ESTIMATE
    3. otherwise → ORDER
    """
    if context.requested_type == ESTIMATE_REQUEST:
        return TransactionMode.ESTIMATE
    if not context.can_create_order and context.can_create_estimate:
        return TransactionMode.ESTIMATE
    return TransactionMode.ORDER
