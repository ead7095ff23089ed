# licensestore/services/reconciler.py
"""Create-or-update decision for an order submission.

Abandoned-cart submissions are idempotent: an identical resubmission of the
active cart performs no write. A completed submission always creates a new
order and flags the cart it came from as processed.

Known limitation: the active-cart lookup and the following write are not
atomic. Two concurrent first submissions for the same device and cart can both
create a record. Closing that gap needs a unique constraint or conditional
create in the record store.
"""
import enum
import logging
from dataclasses import dataclass

from ..errors import StoreError
from .cart_locator import find_active_cart
from .change_detector import has_changed
from .order_input import OrderSnapshot
from .record_store import RecordStore, StoredOrder

logger = logging.getLogger(__name__)


class ReconcileState(str, enum.Enum):
    NO_ACTIVE_CART = "no-active-cart"
    ACTIVE_CART_UNCHANGED = "active-cart-unchanged"
    ACTIVE_CART_CHANGED = "active-cart-changed"
    COMPLETING = "completing"


@dataclass
class ReconcileResult:
    order: StoredOrder
    state: ReconcileState


def new_order_fields(snapshot: OrderSnapshot, payment_provider: str) -> dict:
    return {
        **snapshot.to_record(),
        "order_number": snapshot.cart_ref,
        "payment_provider": payment_provider,
        "delivery_status": "pending",
        "delivery_messages": "[]",
        "abandoned_cart_processed": False,
        "recovery_email_sent": "",
        "refunded_at": None,
    }


def reconcile_order(store: RecordStore, snapshot: OrderSnapshot,
                    payment_provider: str = "paypal") -> ReconcileResult:
    active = find_active_cart(store, snapshot.device_hash, snapshot.cart_ref)

    if snapshot.payment_status == "completed":
        return _complete(store, snapshot, active, payment_provider)

    if active is None:
        order = StoredOrder.from_record(store.create(new_order_fields(snapshot, payment_provider)))
        logger.info("created abandoned cart %s for cart %s", order.id, snapshot.cart_ref)
        return ReconcileResult(order, ReconcileState.NO_ACTIVE_CART)

    if not has_changed(active, snapshot):
        logger.debug("cart %s unchanged, skipping write", snapshot.cart_ref)
        return ReconcileResult(active, ReconcileState.ACTIVE_CART_UNCHANGED)

    order = StoredOrder.from_record(store.update(active.id, snapshot.to_record()))
    logger.info("updated abandoned cart %s for cart %s", active.id, snapshot.cart_ref)
    return ReconcileResult(order, ReconcileState.ACTIVE_CART_CHANGED)


def _complete(store, snapshot, active, payment_provider) -> ReconcileResult:
    order = StoredOrder.from_record(store.create(new_order_fields(snapshot, payment_provider)))
    logger.info("created completed order %s for cart %s", order.id, snapshot.cart_ref)

    if active is not None:
        try:
            store.update(active.id, {"abandoned_cart_processed": True})
        except StoreError as e:
            logger.warning("could not mark cart %s processed: %s", active.id, e.message)
    return ReconcileResult(order, ReconcileState.COMPLETING)
