# grocery_cart/domain/totals.py
from decimal import Decimal
from typing import Iterable, NamedTuple

from grocery_cart.domain.schemas import Cart, CartItem

_CENT = Decimal("0.01")


class CartTotals(NamedTuple):
    total_items: int
    subtotal: Decimal
    total_discount: Decimal
    total_amount: Decimal


def calculate_totals(items: Iterable[CartItem]) -> CartTotals:
    total_items = 0
    subtotal = Decimal("0.00")
    discount = Decimal("0.00")
    amount = Decimal("0.00")

    for item in items:
        total_items += item.quantity
        subtotal += item.mrp * item.quantity
        discount += (item.mrp - item.selling_price) * item.quantity
        amount += item.selling_price * item.quantity

    return CartTotals(
        total_items=total_items,
        subtotal=subtotal.quantize(_CENT),
        total_discount=discount.quantize(_CENT),
        total_amount=amount.quantize(_CENT),
    )


def apply_totals(cart: Cart) -> Cart:
    """Przelicza sumy i zapisuje je w koszyku - wolane po kazdej zmianie items."""
    totals = calculate_totals(cart.items)
    cart.total_items = totals.total_items
    cart.subtotal = totals.subtotal
    cart.total_discount = totals.total_discount
    cart.total_amount = totals.total_amount
    return cart
