from datetime import datetime, timezone
from ..extensions import db
from ..utils.money import D, to_float


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class StoreOrder(db.Model):
    """Local copy of the ``store_orders`` collection.

    Column names match the remote record-store fields so records read the same
    whichever backend holds them. ``items``, ``info`` and ``delivery_messages``
    are kept as JSON text, the way the storefront writes them.
    """
    __tablename__ = "store_orders"

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(64), index=True)

    items = db.Column(db.Text, nullable=False, default="[]")
    info = db.Column(db.Text)
    customer_email = db.Column(db.String(255), index=True)

    subtotal = db.Column(db.Numeric(12, 2))
    total = db.Column(db.Numeric(12, 2))

    customer_device_hash = db.Column(db.String(128), index=True)
    cart_ref = db.Column(db.String(128), index=True)
    payment_status = db.Column(db.String(20), default="abandoned", index=True)
    payment_provider = db.Column(db.String(32))

    delivery_status = db.Column(db.String(20), default="pending", index=True)
    delivery_messages = db.Column(db.Text, default="[]")
    abandoned_cart_processed = db.Column(db.Boolean, default=False, nullable=False)
    recovery_email_sent = db.Column(db.String(64), default="")
    refunded_at = db.Column(db.String(40))

    created = db.Column(db.DateTime, default=_utcnow, index=True)
    updated = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    MONEY_FIELDS = ("subtotal", "total")

    @classmethod
    def writable_fields(cls):
        return {c.name for c in cls.__table__.columns} - {"id", "created", "updated"}

    def assign(self, data: dict):
        for key, value in data.items():
            if key in self.MONEY_FIELDS and value is not None:
                value = D(value)
            setattr(self, key, value)

    def as_record(self):
        return {
            "id": str(self.id),
            "order_number": self.order_number,
            "items": self.items,
            "info": self.info,
            "customer_email": self.customer_email,
            "subtotal": to_float(self.subtotal),
            "total": to_float(self.total),
            "customer_device_hash": self.customer_device_hash,
            "cart_ref": self.cart_ref,
            "payment_status": self.payment_status,
            "payment_provider": self.payment_provider,
            "delivery_status": self.delivery_status,
            "delivery_messages": self.delivery_messages,
            "abandoned_cart_processed": bool(self.abandoned_cart_processed),
            "recovery_email_sent": self.recovery_email_sent,
            "refunded_at": self.refunded_at,
            "created": self.created.isoformat() if self.created else None,
            "updated": self.updated.isoformat() if self.updated else None,
        }
