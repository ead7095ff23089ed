# licensestore/services/cart_locator.py
import logging
from typing import Optional

from ..errors import StoreError
from .record_store import RecordStore, StoredOrder

logger = logging.getLogger(__name__)


def find_active_cart(store: RecordStore, device_hash: str, cart_ref: str) -> Optional[StoredOrder]:
    """Return the open abandoned cart for this device and cart, if any.

    Lookup failures are logged and reported as "no active cart" so checkout
    keeps working; the worst outcome is a duplicate abandoned-cart record.
    """
    try:
        record = store.find_first({
            "customer_device_hash": device_hash,
            "cart_ref": cart_ref,
            "payment_status": "abandoned",
        })
    except StoreError as e:
        logger.warning("active cart lookup failed for cart %s: %s", cart_ref, e.message)
        return None
    return StoredOrder.from_record(record)
