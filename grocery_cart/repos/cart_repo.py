# grocery_cart/repos/cart_repo.py
from datetime import datetime, timezone
from typing import List

from sqlalchemy import delete, insert, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from grocery_cart.data.models.cart import CartModel
from grocery_cart.data.models.cart_item import CartItemModel
from grocery_cart.domain.errors import CartVersionConflict, DurableStoreUnavailable
from grocery_cart.domain.identity import CartIdentity
from grocery_cart.domain.schemas import Cart, CartItem, OrderType
from grocery_cart.utils.logging import get_logger

logger = get_logger(__name__)


def _utc(value: datetime | None) -> datetime | None:
    #sqlite gubi strefe czasowa
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CartRepo:
    """
    System of record dla koszykow.
    upsert = pelna podmiana pol koszyka + usun i utworz od nowa wszystkie pozycje.
    Optimistic locking na polu version (compare-and-swap).
    """

    def __init__(self, db: Session):
        self.db = db

    def load_by_identity(self, identity: CartIdentity) -> Cart | None:
        stmt = (
            select(CartModel)
            .options(selectinload(CartModel.items))
            .where(CartModel.id == identity.cart_id)
            .execution_options(populate_existing=True)
        )
        try:
            row = self.db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            self._fail(f"load {identity.cart_id}", e)

        if row is None:
            return None
        return self._to_domain(row)

    def upsert(self, cart: Cart, discard: CartIdentity | None = None) -> Cart:
        """
        Zapis koszyka. discard - inny koszyk (gosc po merge) usuwany w tej samej transakcji.
        """
        new_version = cart.version + 1
        scalars = {
            "total_items": cart.total_items,
            "subtotal": cart.subtotal,
            "total_discount": cart.total_discount,
            "total_amount": cart.total_amount,
            "version": new_version,
            "updated_at": cart.updated_at,
        }

        try:
            if cart.version == 0:
                self.db.execute(
                    insert(CartModel).values(
                        id=cart.id,
                        user_id=cart.user_id,
                        session_token=cart.session_token,
                        created_at=cart.created_at,
                        **scalars,
                    )
                )
            else:
                #update set version v+1 where id and version v
                result = self.db.execute(
                    update(CartModel)
                    .where(CartModel.id == cart.id, CartModel.version == cart.version)
                    .values(**scalars)
                )
                if result.rowcount == 0:
                    self.db.rollback()
                    raise CartVersionConflict(cart.id, cart.version)

                self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart.id))

            if cart.items:
                self.db.execute(insert(CartItemModel), self._item_rows(cart))

            if discard is not None:
                self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == discard.cart_id))
                self.db.execute(delete(CartModel).where(CartModel.id == discard.cart_id))

            self.db.commit()
        except IntegrityError:
            #insert nowego koszyka ktory ktos juz utworzyl
            self.db.rollback()
            raise CartVersionConflict(cart.id, cart.version)
        except SQLAlchemyError as e:
            self._fail(f"upsert {cart.id}", e)

        cart.version = new_version
        logger.info(f"Zapisano koszyk {cart.id} ({len(cart.items)} pozycji), wersja {new_version}")
        return cart

    def delete_by_identity(self, identity: CartIdentity) -> bool:
        cart_id = identity.cart_id
        try:
            self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
            result = self.db.execute(delete(CartModel).where(CartModel.id == cart_id))
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail(f"delete {cart_id}", e)

        return result.rowcount > 0

    def purge_guest_carts(self, updated_before: datetime) -> int:
        stale = (
            select(CartModel.id)
            .where(CartModel.user_id.is_(None), CartModel.updated_at < updated_before)
        )
        try:
            ids: List[str] = list(self.db.execute(stale).scalars())
            if ids:
                self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id.in_(ids)))
                self.db.execute(delete(CartModel).where(CartModel.id.in_(ids)))
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("purge guest carts", e)

        return len(ids)

    def ping(self) -> bool:
        try:
            self.db.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Baza niedostepna: {e}")
            self.db.rollback()
            return False

    def _fail(self, operation: str, error: Exception):
        logger.error(f"Blad bazy podczas {operation}: {error}")
        self.db.rollback()
        raise DurableStoreUnavailable(f"Durable cart store failed during {operation}") from error

    @staticmethod
    def _item_rows(cart: Cart) -> List[dict]:
        return [
            {
                "id": item.id,
                "cart_id": cart.id,
                "product_id": item.product_id,
                "position": position,
                "name": item.name,
                "slug": item.slug,
                "image_url": item.image_url,
                "unit": item.unit,
                "unit_size": item.unit_size,
                "category_id": item.category_id,
                "category_name": item.category_name,
                "mrp": item.mrp,
                "selling_price": item.selling_price,
                "quantity": item.quantity,
                "min_order_qty": item.min_order_qty,
                "max_order_qty": item.max_order_qty,
                "order_type": item.order_type.value,
                "group_order_id": item.group_order_id,
                "expires_at": item.expires_at,
            }
            for position, item in enumerate(cart.items)
        ]

    @staticmethod
    def _to_domain(row: CartModel) -> Cart:
        return Cart(
            id=row.id,
            user_id=row.user_id,
            session_token=row.session_token,
            items=[
                CartItem(
                    id=i.id,
                    product_id=i.product_id,
                    name=i.name,
                    slug=i.slug,
                    image_url=i.image_url,
                    unit=i.unit,
                    unit_size=i.unit_size,
                    category_id=i.category_id,
                    category_name=i.category_name,
                    mrp=i.mrp,
                    selling_price=i.selling_price,
                    quantity=i.quantity,
                    min_order_qty=i.min_order_qty,
                    max_order_qty=i.max_order_qty,
                    order_type=OrderType(i.order_type),
                    group_order_id=i.group_order_id,
                    expires_at=_utc(i.expires_at),
                )
                for i in row.items
            ],
            total_items=row.total_items,
            subtotal=row.subtotal,
            total_discount=row.total_discount,
            total_amount=row.total_amount,
            version=row.version,
            created_at=_utc(row.created_at),
            updated_at=_utc(row.updated_at),
        )

