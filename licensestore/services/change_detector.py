# licensestore/services/change_detector.py
"""Decides whether a resubmitted cart differs from the stored active cart.

Items are compared positionally: the same products in a different order count
as a change. Totals are compared exactly.
"""
from typing import Optional

from ..errors import InvalidInput
from .order_input import CustomerInfo, OrderSnapshot, parse_customer_info, parse_line_items
from .record_store import StoredOrder

INFO_KEYS = ("name", "email", "whatsapp", "discount_code")
EMPTY_INFO = (None, "", "null", "{}", {})


def _item_key(item):
    return item.product_id, item.variant.id, item.quantity, item.price


def _info_differs(existing: Optional[CustomerInfo], proposed: Optional[CustomerInfo]) -> bool:
    if existing is None and proposed is None:
        return False
    if existing is None or proposed is None:
        return True
    return any(getattr(existing, k) != getattr(proposed, k) for k in INFO_KEYS)


def has_changed(existing: Optional[StoredOrder], proposed: OrderSnapshot) -> bool:
    if existing is None:
        return True

    try:
        old_items = parse_line_items(existing.items)
        old_info = None if existing.info in EMPTY_INFO else parse_customer_info(existing.info)
    except InvalidInput:
        # unreadable stored cart, rewrite it
        return True
    new_items = parse_line_items(proposed.items)

    if len(old_items) != len(new_items):
        return True
    if any(_item_key(a) != _item_key(b) for a, b in zip(old_items, new_items)):
        return True

    if _info_differs(old_info, proposed.customer_info):
        return True

    return existing.subtotal != proposed.subtotal or existing.total != proposed.total
