# licensestore/admin/routes.py
import json
from datetime import datetime, timezone

from flask import request

from ..services.backends import open_record_store
from ..utils.api import ok, err
from ..utils.decorators import role_required
from . import bp

ADMIN_ONLY = "Only admins can manage orders"


def _load_messages(raw):
    if not raw:
        return []
    if isinstance(raw, list):
        return raw
    try:
        messages = json.loads(raw)
    except ValueError:
        return []
    return messages if isinstance(messages, list) else []


@bp.get("/orders")
@role_required("admin", message=ADMIN_ONLY)
def list_orders():
    """
    Query params:
      - page, per_page
      - payment_status=abandoned|completed
      - delivery_status=pending|delivered
      - email=...
      - cart_ref=...
    """
    filters = {}
    for arg, field in (("payment_status", "payment_status"),
                       ("delivery_status", "delivery_status"),
                       ("email", "customer_email"),
                       ("cart_ref", "cart_ref")):
        value = request.args.get(arg)
        if value:
            filters[field] = value

    try:
        page = max(int(request.args.get("page", 1)), 1)
        per = min(max(int(request.args.get("per_page", 20)), 1), 100)
    except ValueError:
        return err("page and per_page must be integers", 400)

    items, total = open_record_store().list_records(filters, page=page, per_page=per)
    return ok("orders", {
        "page": page,
        "per_page": per,
        "total": total,
        "items": items,
    })


@bp.get("/orders/<order_id>")
@role_required("admin", message=ADMIN_ONLY)
def get_order(order_id):
    order = open_record_store().get(order_id)
    if not order:
        return err("order not found", 404)
    return ok("order", {"order": order})


@bp.post("/orders/<order_id>/deliver")
@role_required("admin", message=ADMIN_ONLY)
def deliver_order(order_id):
    """
    Body: { "message": str, "deliverables": { <item id>: <license key or text> } }
    """
    data = request.get_json(silent=True) or {}
    message = (data.get("message") or "").strip()
    deliverables = data.get("deliverables") or {}
    if not message and not deliverables:
        return err("message or deliverables is required", 400)
    if not isinstance(deliverables, dict):
        return err("deliverables must be an object", 400)

    store = open_record_store()
    order = store.get(order_id)
    if not order:
        return err("order not found", 404)
    if order.get("payment_status") != "completed":
        return err("only completed orders can be delivered", 409)

    messages = _load_messages(order.get("delivery_messages"))
    messages.append({
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "emailMessage": message,
        "deliverables": deliverables,
        "status": "delivered",
    })
    updated = store.update(order_id, {
        "delivery_messages": json.dumps(messages),
        "delivery_status": "delivered",
    })
    return ok("order delivered", {"order": updated})


@bp.post("/orders/<order_id>/refund")
@role_required("admin", message=ADMIN_ONLY)
def refund_order(order_id):
    store = open_record_store()
    order = store.get(order_id)
    if not order:
        return err("order not found", 404)
    if order.get("payment_status") != "completed":
        return err("only completed orders can be refunded", 409)
    if order.get("refunded_at"):
        return err("order already refunded", 409)

    updated = store.update(order_id, {"refunded_at": datetime.now(timezone.utc).isoformat()})
    return ok("order refunded", {"order": updated})
