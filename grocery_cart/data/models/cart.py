#grocery_cart/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Numeric
from sqlalchemy.orm import relationship

from grocery_cart.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    # "user:<id>" albo "guest:<token>"
    id = Column(String(255), primary_key=True)
    user_id = Column(String(64), unique=True, nullable=True)
    session_token = Column(String(128), unique=True, nullable=True)

    total_items = Column(Integer, nullable=False, default=0)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    total_discount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.position",
    )
