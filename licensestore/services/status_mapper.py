# licensestore/services/status_mapper.py

# Provider vocabulary -> store vocabulary. Unlisted values pass through.
INVOICE_STATUS_MAP = {
    "PAID": "paid",
    "PAYMENT_PENDING": "pending",
}


def map_invoice_status(status: str) -> str:
    return INVOICE_STATUS_MAP.get(status, status)
