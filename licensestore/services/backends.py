"""Builds the per-request record store and payment provider from app config.

Tests (or alternative deployments) may register their own factories under
``app.extensions["record_store_factory"]`` / ``["payment_provider_factory"]``.
Outbound clients built here share one ``requests.Session`` per app context,
closed by ``close_http_session`` on teardown.
"""
import requests
from flask import current_app, g

from .paypal import PayPalClient
from .pocketbase import AdminSession, PocketBaseRecordStore
from .sql_store import SqlRecordStore


def http_session() -> requests.Session:
    if "http_session" not in g:
        g.http_session = requests.Session()
    return g.http_session


def close_http_session(exc=None):
    session = g.pop("http_session", None)
    if session is not None:
        session.close()


def default_record_store():
    cfg = current_app.config
    if not cfg.get("POCKETBASE_URL"):
        return SqlRecordStore()
    http = http_session()
    session = AdminSession(
        cfg["POCKETBASE_URL"],
        cfg.get("POCKETBASE_ADMIN_EMAIL", ""),
        cfg.get("POCKETBASE_ADMIN_PASSWORD", ""),
        timeout=cfg.get("BACKEND_TIMEOUT", 10),
        http=http,
    )
    return PocketBaseRecordStore(
        cfg["POCKETBASE_URL"],
        session.authenticate(),
        collection=cfg.get("ORDERS_COLLECTION", "store_orders"),
        timeout=cfg.get("BACKEND_TIMEOUT", 10),
        http=http,
    )


def default_payment_provider():
    cfg = current_app.config
    return PayPalClient(
        cfg.get("PAYPAL_CLIENT_ID", ""),
        cfg.get("PAYPAL_SECRET", ""),
        mode=cfg.get("PAYPAL_MODE", "sandbox"),
        timeout=cfg.get("BACKEND_TIMEOUT", 10),
        http=http_session(),
        shop_name=cfg.get("SHOP_NAME", "Store Name"),
        shop_notes=cfg.get("SHOP_NOTES", ""),
        shop_terms=cfg.get("SHOP_TERMS", ""),
    )


def open_record_store():
    factory = current_app.extensions.get("record_store_factory", default_record_store)
    return factory()


def open_payment_provider():
    factory = current_app.extensions.get("payment_provider_factory", default_payment_provider)
    return factory()
