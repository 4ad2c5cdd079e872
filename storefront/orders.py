from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from storefront.basket import BasketNotFoundError
from storefront.models import Basket, Order, OrderItem
from storefront.schemas import Address

logger = logging.getLogger(__name__)


class EmptyBasketOnCheckoutError(RuntimeError):
    def __init__(self, *, basket_id: int) -> None:
        super().__init__(f"Basket with id {basket_id} is empty")
        self.basket_id = basket_id


class OrderService:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_order(self, basket_id: int, shipping_address: Address) -> Order:
        basket = self._session.get(Basket, basket_id)
        if basket is None:
            raise BasketNotFoundError(basket_id=basket_id)
        if not basket.items:
            raise EmptyBasketOnCheckoutError(basket_id=basket_id)

        order = Order(
            buyer_id=basket.buyer_id,
            ship_to_street=shipping_address.street,
            ship_to_city=shipping_address.city,
            ship_to_state=shipping_address.state,
            ship_to_country=shipping_address.country,
            ship_to_zipcode=shipping_address.zipcode,
            items=[
                OrderItem(
                    catalog_item_id=item.catalog_item_id,
                    product_name=item.catalog_item.name,
                    unit_price=item.unit_price,
                    units=item.quantity,
                )
                for item in basket.items
            ],
        )
        self._session.add(order)
        self._session.commit()
        logger.info("Created order %s for buyer %s from basket %s", order.id, order.buyer_id, basket_id)
        return order
