from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from order_sms.utils.templates import first_non_empty

FALLBACK_NAME = "Customer"


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class Customer:
    first_name: Optional[Any] = None
    phone: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Customer":
        return cls(first_name=data.get("first_name"), phone=data.get("phone"))


@dataclass(frozen=True)
class Address:
    first_name: Optional[Any] = None
    phone: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Address":
        return cls(first_name=data.get("first_name"), phone=data.get("phone"))


@dataclass(frozen=True)
class Order:
    """
    The handful of Shopify order fields the confirmation SMS needs.

    Shopify omits or nulls most of these depending on the checkout, so every
    field is optional and `from_payload` accepts any JSON value.
    """

    customer: Customer = field(default_factory=Customer)
    shipping_address: Address = field(default_factory=Address)
    billing_address: Address = field(default_factory=Address)
    name: Optional[Any] = None
    order_number: Optional[Any] = None
    total_price: Optional[Any] = None
    order_status_url: Optional[Any] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "Order":
        if not isinstance(payload, dict):
            return cls()
        return cls(
            customer=Customer.from_dict(_section(payload, "customer")),
            shipping_address=Address.from_dict(_section(payload, "shipping_address")),
            billing_address=Address.from_dict(_section(payload, "billing_address")),
            name=payload.get("name"),
            order_number=payload.get("order_number"),
            total_price=payload.get("total_price"),
            order_status_url=payload.get("order_status_url"),
        )

    @property
    def phone(self) -> str:
        return first_non_empty(
            self.shipping_address.phone,
            self.customer.phone,
            self.billing_address.phone,
        )

    @property
    def display_name(self) -> str:
        return first_non_empty(
            self.customer.first_name,
            self.shipping_address.first_name,
            default=FALLBACK_NAME,
        )

    @property
    def order_no(self) -> str:
        return first_non_empty(self.name, default="#" + first_non_empty(self.order_number))

    @property
    def total(self) -> str:
        return first_non_empty(self.total_price)

    @property
    def status_url(self) -> str:
        return first_non_empty(self.order_status_url)
