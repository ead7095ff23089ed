# tests/test_invoice_status.py
import pytest
import requests

from licensestore.errors import AuthenticationFailed, BackendUnavailable, InvalidInput
from licensestore.services.paypal import LIVE_API, SANDBOX_API, PayPalClient
from test_pocketbase import FakeHttp, FakeResponse


def test_sandbox_and_live_hosts():
    assert PayPalClient("id", "secret", mode="sandbox", http=FakeHttp()).api_url == SANDBOX_API
    assert PayPalClient("id", "secret", mode="live", http=FakeHttp()).api_url == LIVE_API


def test_invoice_status_lookup():
    http = FakeHttp(
        FakeResponse(200, {"access_token": "A21", "token_type": "Bearer"}),
        FakeResponse(200, {"id": "INV2-ABCD", "status": "PAYMENT_PENDING"}),
    )
    client = PayPalClient("id", "secret", http=http, timeout=4)

    assert client.get_invoice_status("INV2-ABCD") == "PAYMENT_PENDING"

    token_call, invoice_call = http.requests
    assert token_call[1] == f"{SANDBOX_API}/v1/oauth2/token"
    assert token_call[2]["auth"] == ("id", "secret")
    assert token_call[2]["data"] == {"grant_type": "client_credentials"}
    assert invoice_call[1] == f"{SANDBOX_API}/v2/invoicing/invoices/INV2-ABCD"
    assert invoice_call[2]["headers"]["Authorization"] == "Bearer A21"
    assert invoice_call[2]["timeout"] == 4


def test_missing_credentials():
    with pytest.raises(AuthenticationFailed):
        PayPalClient("", "", http=FakeHttp()).access_token()


@pytest.mark.parametrize("response", [FakeResponse(401, {"error": "invalid_client"}),
                                      requests.ConnectionError("refused")])
def test_token_failures(response):
    with pytest.raises(AuthenticationFailed):
        PayPalClient("id", "secret", http=FakeHttp(response)).access_token()


@pytest.mark.parametrize("response", [FakeResponse(404, {"name": "RESOURCE_NOT_FOUND"}),
                                      requests.Timeout("slow")])
def test_invoice_failures(response):
    http = FakeHttp(FakeResponse(200, {"access_token": "A21"}), response)
    with pytest.raises(BackendUnavailable):
        PayPalClient("id", "secret", http=http).get_invoice_status("INV2-XXXX")


class FakeProvider:
    def __init__(self, status=None, error=None):
        self.status = status
        self.error = error
        self.looked_up = []
        self.invoiced = []

    def create_invoice(self, amount, order_ref, email):
        self.invoiced.append((amount, order_ref, email))
        return {"url": "https://pay.example.com/#INV2-NEW", "id": "INV2-NEW", "total": str(amount)}

    def generate_qr(self, invoice_id):
        self.looked_up.append(invoice_id)
        return b"\x89PNG-qr"

    def get_invoice_status(self, invoice_id):
        self.looked_up.append(invoice_id)
        if self.error:
            raise self.error
        return self.status


@pytest.mark.parametrize("provider_status, expected", [
    ("PAID", "paid"),
    ("PAYMENT_PENDING", "pending"),
    ("SENT", "SENT"),
])
def test_invoice_status_route_maps_status(app, client, provider_status, expected):
    provider = FakeProvider(provider_status)
    app.extensions["payment_provider_factory"] = lambda: provider

    r = client.get("/api/invoice-status/INV2-ABCD")

    assert r.status_code == 200
    assert r.get_json()["data"]["status"] == expected
    assert provider.looked_up == ["INV2-ABCD"]


def test_invoice_status_route_failure(app, client):
    app.extensions["payment_provider_factory"] = lambda: FakeProvider(
        error=BackendUnavailable("Failed to get invoice status"))

    r = client.get("/api/invoice-status/INV2-ABCD")

    assert r.status_code == 500
    assert r.get_json()["data"]["kind"] == "backend-unavailable"


def test_invoice_status_route_without_credentials(client):
    r = client.get("/api/invoice-status/INV2-ABCD")

    assert r.status_code == 500
    assert r.get_json()["data"]["kind"] == "authentication-failed"


def invoice_client(*responses, **kwargs):
    http = FakeHttp(FakeResponse(200, {"access_token": "A21"}), *responses)
    return PayPalClient("id", "secret", http=http, shop_name="License Hub",
                        shop_notes="Thanks!", **kwargs), http


def test_create_invoice_drafts_and_sends():
    client, http = invoice_client(
        FakeResponse(201, {"rel": "self", "method": "GET",
                           "href": f"{SANDBOX_API}/v2/invoicing/invoices/INV2-Q7LU"}),
        FakeResponse(200, {"id": "INV2-Q7LU", "status": "SENT"}),
    )

    invoice = client.create_invoice(49.99, "CART-1001", "dana@example.com")

    assert invoice == {"url": "https://www.sandbox.paypal.com/invoice/p/#INV2-Q7LU",
                       "id": "INV2-Q7LU", "total": "49.99"}
    _, draft_call, send_call = http.requests
    draft = draft_call[2]["json"]
    assert draft_call[:2] == ("POST", f"{SANDBOX_API}/v2/invoicing/invoices")
    assert draft["invoicer"]["name"] == {"given_name": "License", "surname": "Hub"}
    assert draft["detail"]["note"] == "Thanks!"
    assert draft["detail"]["invoice_number"].startswith("INV-")
    assert draft["primary_recipients"][0]["billing_info"]["email_address"] == "dana@example.com"
    assert draft["items"][0]["name"] == "Order CART-1001"
    assert draft["items"][0]["unit_amount"] == {"currency_code": "USD", "value": "49.99"}
    assert draft["amount"]["breakdown"]["item_total"]["value"] == "49.99"
    assert send_call[:2] == ("POST", f"{SANDBOX_API}/v2/invoicing/invoices/INV2-Q7LU/send")
    assert send_call[2]["headers"]["Prefer"] == "return=representation"


def test_live_invoice_pay_url():
    client, _ = invoice_client(
        FakeResponse(201, {"href": f"{LIVE_API}/v2/invoicing/invoices/INV2-LIVE"}),
        FakeResponse(200, {}),
        mode="live",
    )
    assert client.create_invoice("10", "CART-9", "a@example.com")["url"] == \
        "https://www.paypal.com/invoice/p/#INV2-LIVE"


@pytest.mark.parametrize("amount, order_ref, email, message", [
    (None, "CART-1", "", "Missing required fields: amount, email"),
    ("", "", "a@example.com", "Missing required fields: amount, orderRef"),
    ("ten", "CART-1", "a@example.com", "amount must be a number"),
    (0, "CART-1", "a@example.com", "amount must be greater than zero"),
])
def test_create_invoice_rejects_bad_input(amount, order_ref, email, message):
    http = FakeHttp()
    with pytest.raises(InvalidInput) as exc:
        PayPalClient("id", "secret", http=http).create_invoice(amount, order_ref, email)
    assert exc.value.message == message
    assert http.requests == []


def test_create_invoice_send_failure():
    client, _ = invoice_client(
        FakeResponse(201, {"href": f"{SANDBOX_API}/v2/invoicing/invoices/INV2-Q7LU"}),
        FakeResponse(422, {"name": "UNPROCESSABLE_ENTITY"}),
    )
    with pytest.raises(BackendUnavailable) as exc:
        client.create_invoice(49.99, "CART-1001", "dana@example.com")
    assert exc.value.message == "Failed to send invoice"


def test_generate_qr_returns_png_bytes():
    client, http = invoice_client(FakeResponse(200, content=b"\x89PNG\r\n"))

    assert client.generate_qr("INV2-Q7LU") == b"\x89PNG\r\n"
    method, url, kwargs = http.requests[1]
    assert (method, url) == ("POST", f"{SANDBOX_API}/v2/invoicing/invoices/INV2-Q7LU/generate-qr-code")
    assert kwargs["json"] == {"width": 500, "height": 500, "action": "pay"}


def test_generate_qr_failure():
    client, _ = invoice_client(FakeResponse(404, {"name": "RESOURCE_NOT_FOUND"}))
    with pytest.raises(BackendUnavailable):
        client.generate_qr("INV2-NONE")


def test_create_invoice_route(app, client):
    provider = FakeProvider()
    app.extensions["payment_provider_factory"] = lambda: provider

    r = client.post("/api/create-invoice",
                    json={"amount": 49.99, "orderRef": "CART-1001", "email": "dana@example.com"})

    assert r.status_code == 201
    assert r.get_json()["data"]["id"] == "INV2-NEW"
    assert provider.invoiced == [(49.99, "CART-1001", "dana@example.com")]


def test_create_invoice_route_validates_before_auth(client):
    r = client.post("/api/create-invoice", json={"orderRef": "CART-1001"})

    assert r.status_code == 400
    body = r.get_json()
    assert body["data"]["kind"] == "invalid-input"
    assert body["data"]["missing"] == ["amount", "email"]


def test_generate_qr_route(app, client):
    provider = FakeProvider()
    app.extensions["payment_provider_factory"] = lambda: provider

    r = client.get("/api/generate-qr/INV2-Q7LU")

    assert r.status_code == 200
    assert r.mimetype == "image/png"
    assert r.data == b"\x89PNG-qr"
    assert provider.looked_up == ["INV2-Q7LU"]
