from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.models import Basket, BasketItem, CatalogItem
from storefront.schemas import BasketItemView, BasketView

logger = logging.getLogger(__name__)


class BasketNotFoundError(RuntimeError):
    def __init__(self, *, basket_id: int) -> None:
        super().__init__(f"Basket {basket_id} not found")
        self.basket_id = basket_id


class BasketService:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_or_create_basket_for_user(self, shopper_id: str) -> BasketView:
        basket = self._find_basket_for_buyer(shopper_id)
        if basket is None:
            basket = Basket(buyer_id=shopper_id)
            self._session.add(basket)
            self._session.commit()
            self._session.refresh(basket)
            logger.info("Created basket %s for buyer %s", basket.id, shopper_id)
        return self._to_view(basket)

    def add_item_to_basket(self, basket_id: int, *, catalog_item_id: int, price: Decimal, quantity: int = 1) -> None:
        basket = self._load_basket(basket_id)
        for item in basket.items:
            if item.catalog_item_id == catalog_item_id:
                item.quantity += quantity
                break
        else:
            basket.items.append(
                BasketItem(catalog_item_id=catalog_item_id, unit_price=price, quantity=quantity)
            )
        self._session.commit()

    def set_quantities(self, basket_id: int, quantities: dict[str, int]) -> None:
        basket = self._load_basket(basket_id)
        for item in basket.items:
            if str(item.id) in quantities:
                item.quantity = quantities[str(item.id)]
        basket.items[:] = [item for item in basket.items if item.quantity > 0]
        self._session.commit()

    def delete_basket(self, basket_id: int) -> None:
        basket = self._load_basket(basket_id)
        self._session.delete(basket)
        self._session.commit()

    def _find_basket_for_buyer(self, buyer_id: str) -> Basket | None:
        return self._session.scalars(
            select(Basket)
            .where(Basket.buyer_id == buyer_id)
            .options(selectinload(Basket.items).selectinload(BasketItem.catalog_item))
            .order_by(Basket.id)
        ).first()

    def _load_basket(self, basket_id: int) -> Basket:
        basket = self._session.get(Basket, basket_id)
        if basket is None:
            raise BasketNotFoundError(basket_id=basket_id)
        return basket

    @staticmethod
    def _to_view(basket: Basket) -> BasketView:
        return BasketView(
            id=basket.id,
            buyerId=basket.buyer_id,
            items=[
                BasketItemView(
                    id=item.id,
                    catalogItemId=item.catalog_item_id,
                    productName=item.catalog_item.name,
                    unitPrice=item.unit_price,
                    quantity=item.quantity,
                )
                for item in basket.items
            ],
        )
