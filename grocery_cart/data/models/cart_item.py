from sqlalchemy import Column, Integer, ForeignKey, Numeric, String, DateTime
from sqlalchemy.orm import relationship

from grocery_cart.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(String(64), primary_key=True)
    cart_id = Column(String(255), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(64), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    name = Column(String, nullable=False)
    slug = Column(String, nullable=False)
    image_url = Column(String, nullable=True)
    unit = Column(String(32), nullable=False)
    unit_size = Column(Numeric(10, 3), nullable=False)
    category_id = Column(String(64), nullable=False)
    category_name = Column(String, nullable=False)

    mrp = Column(Numeric(12, 2), nullable=False)
    selling_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    min_order_qty = Column(Integer, nullable=False, default=1)
    max_order_qty = Column(Integer, nullable=True)

    order_type = Column(String(16), nullable=False)  # priority, group
    group_order_id = Column(String(64), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    cart = relationship("CartModel", back_populates="items")
