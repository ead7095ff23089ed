import logging
import time

import requests

from ..errors import AuthenticationFailed, BackendUnavailable, InvalidInput
from ..utils.money import D, round_money

logger = logging.getLogger(__name__)

SANDBOX_API = "https://api.sandbox.paypal.com"
LIVE_API = "https://api.paypal.com"
SANDBOX_PAY_URL = "https://www.sandbox.paypal.com/invoice/p/#"
LIVE_PAY_URL = "https://www.paypal.com/invoice/p/#"
CURRENCY = "USD"
QR_SIZE = 500


class PayPalClient:
    """Invoices against the PayPal REST API: create and send, status, pay QR."""

    def __init__(self, client_id: str, secret: str, mode: str = "sandbox", timeout: float = 10, http=None,
                 shop_name: str = "Store Name", shop_notes: str = "", shop_terms: str = ""):
        self.client_id = client_id
        self.secret = secret
        self.api_url = SANDBOX_API if mode == "sandbox" else LIVE_API
        self.pay_url = SANDBOX_PAY_URL if mode == "sandbox" else LIVE_PAY_URL
        self.timeout = timeout
        self.http = http or requests.Session()
        self.shop_name = shop_name
        self.shop_notes = shop_notes
        self.shop_terms = shop_terms

    def access_token(self) -> str:
        if not self.client_id or not self.secret:
            raise AuthenticationFailed("PayPal credentials are not configured")
        try:
            r = self.http.request(
                "POST",
                f"{self.api_url}/v1/oauth2/token",
                auth=(self.client_id, self.secret),
                headers={"Accept": "application/json"},
                data={"grant_type": "client_credentials"},
                timeout=self.timeout,
            )
            token = r.json().get("access_token") if r.ok else None
        except (requests.RequestException, ValueError) as e:
            logger.error("PayPal token request failed: %s", e)
            raise AuthenticationFailed("PayPal authentication failed")
        if not token:
            logger.error("PayPal token request rejected (HTTP %s)", r.status_code)
            raise AuthenticationFailed("PayPal authentication failed")
        return token

    def _send(self, method: str, path: str, token: str, failure: str, **kwargs):
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        headers.update(kwargs.pop("headers", {}))
        try:
            r = self.http.request(method, f"{self.api_url}{path}", headers=headers,
                                  timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("PayPal %s %s failed: %s", method, path, e)
            raise BackendUnavailable(failure)
        if not r.ok:
            logger.error("PayPal %s %s returned HTTP %s: %s", method, path, r.status_code, r.text[:500])
            raise BackendUnavailable(failure)
        return r

    def _json(self, r, failure: str) -> dict:
        try:
            body = r.json()
        except ValueError:
            logger.error("PayPal returned a non-JSON body")
            raise BackendUnavailable(failure)
        if not isinstance(body, dict):
            raise BackendUnavailable(failure)
        return body

    def invoice_payload(self, amount: str, order_ref: str, email: str) -> dict:
        first, _, last = self.shop_name.partition(" ")
        money = {"currency_code": CURRENCY, "value": amount}
        return {
            "detail": {
                "invoice_number": f"INV-{int(time.time() * 1000)}",
                "currency_code": CURRENCY,
                "note": self.shop_notes,
                "terms_and_conditions": self.shop_terms,
            },
            "invoicer": {"name": {"given_name": first, "surname": last}},
            "primary_recipients": [{"billing_info": {"email_address": email}}],
            "items": [{
                "name": f"Order {order_ref}",
                "description": "Support & Service provided",
                "quantity": "1",
                "unit_amount": money,
            }],
            "amount": {"breakdown": {"item_total": money}},
        }

    def create_invoice(self, amount, order_ref: str, email: str) -> dict:
        """Create a draft invoice, send it to ``email`` and return ``{url, id, total}``."""
        missing = [name for name, value in (("amount", amount), ("orderRef", order_ref), ("email", email))
                   if value in (None, "")]
        if missing:
            raise InvalidInput(f"Missing required fields: {', '.join(missing)}", {"missing": missing})
        try:
            total = round_money(D(amount))
            positive = total > 0
        except ArithmeticError:
            raise InvalidInput("amount must be a number")
        if not positive:
            raise InvalidInput("amount must be greater than zero")
        total = str(total)

        token = self.access_token()
        failure = "Failed to create invoice"
        created = self._json(
            self._send("POST", "/v2/invoicing/invoices", token, failure,
                       json=self.invoice_payload(total, str(order_ref), str(email))),
            failure,
        )
        invoice_id = (created.get("href") or "").rstrip("/").split("/")[-1] or created.get("id")
        if not invoice_id:
            logger.error("PayPal invoice draft has no id: %s", created)
            raise BackendUnavailable(failure)

        self._send("POST", f"/v2/invoicing/invoices/{invoice_id}/send", token, "Failed to send invoice",
                   headers={"Prefer": "return=representation"}, json={})
        logger.info("sent PayPal invoice %s for order %s", invoice_id, order_ref)
        return {"url": f"{self.pay_url}{invoice_id}", "id": invoice_id, "total": total}

    def get_invoice_status(self, invoice_id: str) -> str:
        token = self.access_token()
        failure = "Failed to get invoice status"
        invoice = self._json(self._send("GET", f"/v2/invoicing/invoices/{invoice_id}", token, failure), failure)
        if "status" not in invoice:
            logger.error("PayPal invoice %s has no status", invoice_id)
            raise BackendUnavailable(failure)
        return invoice["status"]

    def generate_qr(self, invoice_id: str) -> bytes:
        """PNG QR code that opens the pay page of ``invoice_id``."""
        token = self.access_token()
        r = self._send("POST", f"/v2/invoicing/invoices/{invoice_id}/generate-qr-code", token,
                       "Failed to generate QR code",
                       json={"width": QR_SIZE, "height": QR_SIZE, "action": "pay"})
        return r.content
