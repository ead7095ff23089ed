# licensestore/order/routes.py
from flask import current_app, request

from ..services.backends import open_record_store
from ..services.order_input import parse_order_submission
from ..services.reconciler import reconcile_order
from ..utils.api import ok
from . import bp


@bp.post("")
def submit_order():
    """
    Body:
      items                 array or JSON string of line items (required)
      info                  object or JSON string, must carry email (optional)
      subtotal, total       numbers (required)
      customer_device_hash  browser fingerprint (required)
      cart_ref              checkout reference (required)
      payment_status        abandoned | completed (default abandoned)
    """
    # validate before touching the record store
    snapshot = parse_order_submission(request.get_json(silent=True))

    store = open_record_store()
    result = reconcile_order(
        store, snapshot, payment_provider=current_app.config.get("PAYMENT_PROVIDER", "paypal")
    )
    return ok("order saved", {
        "order": result.order.to_record(),
        "reconciliation": result.state.value,
    })
