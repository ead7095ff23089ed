# licensestore/services/order_input.py
"""Canonical order types and the boundary parser for order submissions.

The storefront posts ``items`` and ``info`` either as JSON text or as already
decoded JSON. Everything past ``parse_order_submission`` works with the
structured models defined here.
"""
import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import InvalidInput
from ..utils.money import round_money

NonEmptyStr = Annotated[str, Field(min_length=1)]
Identifier = Union[int, NonEmptyStr]
Amount = Annotated[float, Field(ge=0)]

PAYMENT_STATUSES = ("abandoned", "completed")
REQUIRED_FIELDS = ("items", "subtotal", "total", "customer_device_hash", "cart_ref")


class Variant(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Identifier
    name: NonEmptyStr


class LineItem(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    product_id: Identifier = Field(
        validation_alias=AliasChoices("id", "productId"), serialization_alias="id"
    )
    name: NonEmptyStr
    variant: Variant
    price: Amount
    original_price: Amount = Field(
        validation_alias=AliasChoices("originalPrice", "original_price"),
        serialization_alias="originalPrice",
    )
    quantity: int = Field(ge=1)


class CustomerInfo(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: Optional[str] = None
    email: NonEmptyStr
    whatsapp: Optional[str] = None
    discount_code: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("discountCode", "discount_code"),
        serialization_alias="discountCode",
    )


class OrderSnapshot(BaseModel):
    """Proposed state of an order as submitted by the storefront."""
    model_config = ConfigDict(populate_by_name=True)

    items: list[LineItem] = Field(min_length=1)
    customer_info: Optional[CustomerInfo] = Field(default=None, alias="info")
    subtotal: Amount
    total: Amount
    device_hash: NonEmptyStr = Field(alias="customer_device_hash")
    cart_ref: NonEmptyStr
    payment_status: Literal["abandoned", "completed"] = "abandoned"

    @field_validator("subtotal", "total")
    @classmethod
    def _cents(cls, v: float) -> float:
        # stored amounts keep two decimals
        return float(round_money(v))

    def items_json(self) -> str:
        return json.dumps([i.model_dump(by_alias=True) for i in self.items])

    def info_json(self) -> Optional[str]:
        if self.customer_info is None:
            return None
        return json.dumps(self.customer_info.model_dump(by_alias=True))

    def to_record(self) -> dict:
        """Record-store fields carried by the snapshot itself."""
        record = {
            "items": self.items_json(),
            "subtotal": self.subtotal,
            "total": self.total,
            "payment_status": self.payment_status,
            "customer_device_hash": self.device_hash,
            "cart_ref": self.cart_ref,
        }
        if self.customer_info is not None:
            record["info"] = self.info_json()
            record["customer_email"] = self.customer_info.email
        return record


def decode_json_field(value: Any, field: str) -> Any:
    """Return ``value`` decoded when it arrives as JSON text."""
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        raise InvalidInput(f"Invalid {field} JSON")


def parse_line_items(value: Any) -> list[LineItem]:
    """Parse a line-item sequence given as JSON text, dicts or ``LineItem``s."""
    data = decode_json_field(value, "items")
    if not isinstance(data, list):
        raise InvalidInput("Items must be an array")
    try:
        return [i if isinstance(i, LineItem) else LineItem.model_validate(i) for i in data]
    except ValidationError as e:
        raise InvalidInput("Invalid item structure", {"errors": _error_list(e)})


def parse_customer_info(value: Any) -> Optional[CustomerInfo]:
    """Parse customer info; ``""``, ``null`` or missing info is absent."""
    if isinstance(value, CustomerInfo):
        return value
    if value is None or value == "":
        return None
    data = decode_json_field(value, "info")
    if data is None:
        return None
    if not isinstance(data, dict):
        raise InvalidInput("Info must be an object")
    if not data.get("email"):
        raise InvalidInput("Email is required in info")
    try:
        return CustomerInfo.model_validate(data)
    except ValidationError as e:
        raise InvalidInput("Invalid info", {"errors": _error_list(e)})


def parse_order_submission(body: Any) -> OrderSnapshot:
    if not isinstance(body, dict):
        raise InvalidInput("Request body must be a JSON object")

    missing = [f for f in REQUIRED_FIELDS if body.get(f) in (None, "")]
    if missing:
        raise InvalidInput("Missing required fields", {"missing": missing})

    payment_status = body.get("payment_status") or "abandoned"
    if payment_status not in PAYMENT_STATUSES:
        raise InvalidInput(
            f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}"
        )

    items = parse_line_items(body["items"])
    if not items:
        raise InvalidInput("Items must not be empty")

    try:
        return OrderSnapshot.model_validate({
            "items": items,
            "info": parse_customer_info(body.get("info")),
            "subtotal": body["subtotal"],
            "total": body["total"],
            "customer_device_hash": body["customer_device_hash"],
            "cart_ref": body["cart_ref"],
            "payment_status": payment_status,
        })
    except ValidationError as e:
        raise InvalidInput("Invalid order submission", {"errors": _error_list(e)})


def _error_list(exc: ValidationError) -> list[dict]:
    return [
        {"field": ".".join(str(p) for p in e["loc"]), "message": e["msg"]}
        for e in exc.errors()
    ]
