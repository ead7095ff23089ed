# licensestore/services/record_store.py
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict


class StoredOrder(BaseModel):
    """An order record as held by the record store.

    Unknown store fields (timestamps, collection metadata) are kept so the
    record can be handed back to the client untouched.
    """
    model_config = ConfigDict(extra="allow")

    id: Union[str, int]
    items: Any = None
    info: Any = None
    subtotal: Optional[float] = None
    total: Optional[float] = None
    customer_device_hash: Optional[str] = None
    cart_ref: Optional[str] = None
    payment_status: Optional[str] = None
    order_number: Optional[str] = None
    payment_provider: Optional[str] = None
    delivery_status: Optional[str] = "pending"
    delivery_messages: Any = "[]"
    abandoned_cart_processed: bool = False
    recovery_email_sent: Optional[str] = ""
    refunded_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: Optional[dict]) -> Optional["StoredOrder"]:
        return cls.model_validate(record) if record is not None else None

    def to_record(self) -> dict:
        return self.model_dump()


class RecordStore:
    """Capability interface over the ``store_orders`` collection.

    Implementations raise ``BackendUnavailable`` when the store cannot be
    reached; "no such record" is ``None``, never an error.
    """

    def find_first(self, filters: dict) -> Optional[dict]:
        raise NotImplementedError

    def create(self, data: dict) -> dict:
        raise NotImplementedError

    def update(self, record_id, data: dict) -> dict:
        raise NotImplementedError

    def get(self, record_id) -> Optional[dict]:
        raise NotImplementedError

    def list_records(self, filters: dict, page: int = 1, per_page: int = 20) -> tuple[list[dict], int]:
        raise NotImplementedError
