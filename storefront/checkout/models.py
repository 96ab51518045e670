"""
Schémas d'entrée (pydantic) et types de domaine (dataclasses) du checkout.
Montants: toujours en centimes (int), jamais en float.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

# module storefront.checkout.models

class ProductStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    REMOVED = "REMOVED"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class AddressType(str, Enum):
    SHIPPING = "SHIPPING"
    BILLING = "BILLING"


# --- Requêtes API (camelCase côté JSON) ---

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class AddressIn(_CamelModel):
    street: str = Field(min_length=1, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(alias="postalCode", min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=100)


class ContactInfoIn(_CamelModel):
    first_name: str = Field(alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(alias="lastName", min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=20)


class FinalizeCheckoutRequest(_CamelModel):
    payment_reference: str = Field(alias="paymentReference", min_length=1, max_length=255)
    shipping_address: AddressIn = Field(alias="shippingAddress")
    billing_address: Optional[AddressIn] = Field(default=None, alias="billingAddress")
    shipping_method: Literal["standard", "express"] = Field(alias="shippingMethod")
    contact_info: ContactInfoIn = Field(alias="contactInfo")


class PaymentIntentItemIn(_CamelModel):
    product_id: str = Field(alias="productId", min_length=1)
    quantity: int = Field(default=1, ge=1)


class CreatePaymentIntentRequest(_CamelModel):
    items: List[PaymentIntentItemIn] = Field(min_length=1)
    shipping: int = Field(default=0, ge=0)
    tax: int = Field(default=0, ge=0)


# --- Types de domaine ---

@dataclass(frozen=True)
class CartLine:
    product_id: str
    unit_price: int
    quantity: int

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class SharedCosts:
    shipping: int = 0
    tax: int = 0


@dataclass(frozen=True)
class PaymentAuthorization:
    """Vue en lecture seule d'un PaymentIntent renvoyé par le gateway."""
    id: str
    status: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    amount: Optional[int] = None

    @property
    def buyer_id(self) -> Optional[str]:
        return self.metadata.get("buyerId")


@dataclass(frozen=True)
class ProductSnapshot:
    id: str
    seller_id: str
    price: int
    status: str

    @property
    def is_available(self) -> bool:
        return self.status == ProductStatus.AVAILABLE.value


@dataclass(frozen=True)
class Allocation:
    product_id: str
    allocated_amount: int


@dataclass(frozen=True)
class OrderSummary:
    id: str
    seller_id: str
    product_id: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sellerId": self.seller_id,
            "productId": self.product_id,
            "amount": self.amount,
        }
