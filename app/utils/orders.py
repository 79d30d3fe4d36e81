import secrets
import string
from datetime import datetime
from typing import Dict, FrozenSet, Optional
from app.models.order import OrderStatus
from app.utils.dates import utcnow

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits

# Allowed status moves; terminal states map to an empty set
ORDER_STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.pending: frozenset({OrderStatus.processing, OrderStatus.cancelled}),
    OrderStatus.processing: frozenset({OrderStatus.shipped, OrderStatus.cancelled}),
    OrderStatus.shipped: frozenset({OrderStatus.delivered, OrderStatus.cancelled}),
    OrderStatus.delivered: frozenset(),
    OrderStatus.cancelled: frozenset({OrderStatus.refunded}),
    OrderStatus.refunded: frozenset(),
}


def generate_order_number(now: Optional[datetime] = None) -> str:
    """ORD-YYYYMMDD-XXXXXX with a random uppercase alphanumeric suffix."""
    stamp = (now or utcnow()).strftime("%Y%m%d")
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(6))
    return f"ORD-{stamp}-{suffix}"


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ORDER_STATUS_TRANSITIONS.get(current, frozenset())
