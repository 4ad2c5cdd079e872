from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CatalogItem(Base):
    __tablename__ = "catalog_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(precision=18, scale=2), nullable=False)


class Basket(Base):
    __tablename__ = "baskets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    buyer_id: Mapped[str] = mapped_column(String(length=256), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    items: Mapped[list[BasketItem]] = relationship(
        back_populates="basket",
        cascade="all, delete-orphan",
        order_by="BasketItem.id",
    )


class BasketItem(Base):
    __tablename__ = "basket_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    basket_id: Mapped[int] = mapped_column(ForeignKey("baskets.id", ondelete="CASCADE"), nullable=False, index=True)
    catalog_item_id: Mapped[int] = mapped_column(ForeignKey("catalog_items.id"), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(precision=18, scale=2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    basket: Mapped[Basket] = relationship(back_populates="items")
    catalog_item: Mapped[CatalogItem] = relationship()


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    buyer_id: Mapped[str] = mapped_column(String(length=256), nullable=False, index=True)
    order_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    ship_to_street: Mapped[str] = mapped_column(String(length=180), nullable=False)
    ship_to_city: Mapped[str] = mapped_column(String(length=100), nullable=False, default="")
    ship_to_state: Mapped[str] = mapped_column(String(length=60), nullable=False, default="")
    ship_to_country: Mapped[str] = mapped_column(String(length=90), nullable=False, default="")
    ship_to_zipcode: Mapped[str] = mapped_column(String(length=18), nullable=False, default="")

    items: Mapped[list[OrderItem]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    catalog_item_id: Mapped[int] = mapped_column(Integer, nullable=False)
    product_name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(precision=18, scale=2), nullable=False)
    units: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped[Order] = relationship(back_populates="items")
