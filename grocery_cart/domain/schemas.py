# grocery_cart/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

ZERO = Decimal("0.00")


class OrderType(str, Enum):
    PRIORITY = "priority"
    GROUP = "group"


class Product(BaseModel):
    """Produkt z katalogu (zewnetrzny serwis, JSON w camelCase)."""

    id: str
    name: str
    slug: str
    image_url: str | None = None
    unit: str
    unit_size: Decimal
    mrp: Decimal
    selling_price: Decimal
    min_order_qty: int = 1
    max_order_qty: int | None = None
    category_id: str
    category_name: str
    is_active: bool = True

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartItem(BaseModel):
    id: str
    product_id: str

    # snapshot z katalogu w momencie dodania, nie jest synchronizowany
    name: str
    slug: str
    image_url: str | None = None
    unit: str
    unit_size: Decimal
    category_id: str
    category_name: str

    mrp: Decimal
    selling_price: Decimal
    quantity: int
    min_order_qty: int = 1
    max_order_qty: int | None = None

    order_type: OrderType
    group_order_id: str | None = None
    expires_at: datetime | None = None

    @property
    def identity_key(self) -> Tuple[str, OrderType, str | None]:
        return (self.product_id, self.order_type, self.group_order_id)


class Cart(BaseModel):
    """
    Agregat koszyka.
    Pola total_* sa wyliczane przez calculate_totals, nigdy ustawiane recznie.
    version = 0 oznacza koszyk jeszcze nie zapisany w bazie.
    """

    id: str
    user_id: str | None = None
    session_token: str | None = None
    items: List[CartItem] = Field(default_factory=list)

    total_items: int = 0
    subtotal: Decimal = ZERO
    total_discount: Decimal = ZERO
    total_amount: Decimal = ZERO

    version: int = 0
    created_at: datetime
    updated_at: datetime

    def find_item(self, item_id: str) -> CartItem | None:
        return next((i for i in self.items if i.id == item_id), None)

    def find_line(self, key: Tuple[str, OrderType, str | None]) -> CartItem | None:
        return next((i for i in self.items if i.identity_key == key), None)


class RejectionReason(str, Enum):
    PRODUCT_UNAVAILABLE = "PRODUCT_UNAVAILABLE"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    ABOVE_MAXIMUM = "ABOVE_MAXIMUM"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    GROUP_ORDER_REQUIRED = "GROUP_ORDER_REQUIRED"


class Rejection(BaseModel):
    reason: RejectionReason
    message: str
    product_id: str | None = None
    item_id: str | None = None
    requested: int | None = None
    limit: int | None = None
    # o ile przekroczono granice
    difference: int | None = None

    @property
    def is_not_found(self) -> bool:
        return self.reason in (RejectionReason.PRODUCT_NOT_FOUND, RejectionReason.ITEM_NOT_FOUND)


class MergeWarning(BaseModel):
    product_id: str
    order_type: OrderType
    group_order_id: str | None = None
    requested: int
    clamped_to: int
    message: str


class CartResult(BaseModel):
    """Wynik mutacji: koszyk + ewentualne odrzucenie albo ostrzezenia."""

    cart: Cart
    rejection: Rejection | None = None
    warnings: List[MergeWarning] = Field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.rejection is None


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: str = Field(..., min_length=1, description="ID produktu z katalogu")
    quantity: int = Field(..., gt=0, description="Ilosc produktu (musi byc > 0)")
    order_type: OrderType
    group_order_id: str | None = None

    @model_validator(mode="after")
    def _group_needs_batch(self):
        if self.order_type == OrderType.GROUP and not self.group_order_id:
            raise ValueError("group_order_id is required for group orders")
        return self


class QuantityIn(BaseModel):
    """Schema dla zmiany ilosci (0 usuwa pozycje)."""

    quantity: int = Field(..., ge=0)


class MergeIn(BaseModel):
    session_token: str | None = None


class CartOut(BaseModel):
    cart: Cart
    warnings: List[MergeWarning] = Field(default_factory=list)
