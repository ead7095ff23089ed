# licensestore/invoice/routes.py
from flask import Response, request

from ..services.backends import open_payment_provider
from ..services.status_mapper import map_invoice_status
from ..utils.api import ok
from . import bp


@bp.post("/create-invoice")
def create_invoice():
    """
    Body: { "amount": number|str, "orderRef": str, "email": str }
    Returns the pay URL, invoice id and the amount billed.
    """
    data = request.get_json(silent=True) or {}
    invoice = open_payment_provider().create_invoice(
        data.get("amount"), data.get("orderRef"), data.get("email")
    )
    return ok("invoice created", invoice, 201)


@bp.get("/invoice-status/<invoice_id>")
def invoice_status(invoice_id: str):
    provider = open_payment_provider()
    status = map_invoice_status(provider.get_invoice_status(invoice_id))
    return ok("invoice status", {"invoice_id": invoice_id, "status": status})


@bp.get("/generate-qr/<invoice_id>")
def generate_qr(invoice_id: str):
    png = open_payment_provider().generate_qr(invoice_id)
    return Response(png, mimetype="image/png")
