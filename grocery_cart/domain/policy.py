# grocery_cart/domain/policy.py
from grocery_cart.domain.schemas import Product, Rejection, RejectionReason


def validate(product: Product, requested_qty: int) -> Rejection | None:
    """
    Sprawdza ilosc wzgledem aktualnych granic produktu z katalogu.
    None = ok, inaczej Rejection z detalem (ktora granica i o ile).
    """
    if not product.is_active:
        return Rejection(
            reason=RejectionReason.PRODUCT_UNAVAILABLE,
            message=f"Product {product.name} is not available",
            product_id=product.id,
            requested=requested_qty,
        )

    minimum = max(product.min_order_qty, 1)
    if requested_qty < minimum:
        return Rejection(
            reason=RejectionReason.BELOW_MINIMUM,
            message=f"Minimum order quantity is {minimum}",
            product_id=product.id,
            requested=requested_qty,
            limit=minimum,
            difference=minimum - requested_qty,
        )

    if product.max_order_qty is not None and requested_qty > product.max_order_qty:
        return Rejection(
            reason=RejectionReason.ABOVE_MAXIMUM,
            message=f"Maximum order quantity is {product.max_order_qty}",
            product_id=product.id,
            requested=requested_qty,
            limit=product.max_order_qty,
            difference=requested_qty - product.max_order_qty,
        )

    return None


def product_not_found(product_id: str) -> Rejection:
    return Rejection(
        reason=RejectionReason.PRODUCT_NOT_FOUND,
        message=f"Product {product_id} not found",
        product_id=product_id,
    )


def item_not_found(item_id: str) -> Rejection:
    return Rejection(
        reason=RejectionReason.ITEM_NOT_FOUND,
        message="Cart item not found",
        item_id=item_id,
    )


def group_order_required(product_id: str) -> Rejection:
    return Rejection(
        reason=RejectionReason.GROUP_ORDER_REQUIRED,
        message="Group order ID is required for group orders",
        product_id=product_id,
    )
