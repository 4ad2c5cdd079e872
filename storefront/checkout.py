from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

from pydantic import ValidationError

from storefront.basket import BasketService
from storefront.notifications import NotificationDispatcher
from storefront.orders import EmptyBasketOnCheckoutError, OrderService
from storefront.schemas import Address, BasketView, CheckoutItem, CheckoutRequest

logger = logging.getLogger(__name__)

OutcomeKind = Literal["committed", "empty_basket", "validation_failed", "fatal"]


@dataclass(frozen=True)
class CheckoutOutcome:
    kind: OutcomeKind
    quantities: dict[str, int] = field(default_factory=dict)
    shipping_address: str | None = None
    final_price: Decimal | None = None
    order_id: int | None = None
    detail: str | None = None
    error: Exception | None = None

    @classmethod
    def committed(
        cls,
        *,
        quantities: dict[str, int],
        shipping_address: str,
        final_price: Decimal,
        order_id: int,
    ) -> "CheckoutOutcome":
        return cls(
            kind="committed",
            quantities=quantities,
            shipping_address=shipping_address,
            final_price=final_price,
            order_id=order_id,
        )

    @classmethod
    def empty_basket(cls, *, detail: str) -> "CheckoutOutcome":
        return cls(kind="empty_basket", detail=detail)

    @classmethod
    def validation_failed(cls, *, detail: str) -> "CheckoutOutcome":
        return cls(kind="validation_failed", detail=detail)

    @classmethod
    def fatal(cls, error: Exception) -> "CheckoutOutcome":
        return cls(kind="fatal", detail=str(error), error=error)


def build_quantity_update(items: list[CheckoutItem]) -> dict[str, int]:
    # later duplicates overwrite earlier ones
    return {str(item.id): item.quantity for item in items}


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(messages)


class CheckoutWorkflow:
    """Turns a shopper's basket into an order and announces it downstream."""

    def __init__(
        self,
        *,
        basket_service: BasketService,
        order_service: OrderService,
        notifier: NotificationDispatcher,
    ) -> None:
        self._baskets = basket_service
        self._orders = order_service
        self._notifier = notifier

    def load_basket(self, shopper_id: str) -> BasketView:
        return self._baskets.get_or_create_basket_for_user(shopper_id)

    def commit(self, basket: BasketView, payload: Any) -> CheckoutOutcome:
        """Apply the submitted quantities, place the order and delete the basket.

        Steps run strictly in that order. A basket that ends up empty yields an
        ``empty_basket`` outcome with no order created and the basket left in place.
        """
        try:
            request = CheckoutRequest.model_validate(payload)
            address = Address.parse(request.shippingAddress)
        except ValidationError as exc:
            return CheckoutOutcome.validation_failed(detail=_format_validation_error(exc))

        quantities = build_quantity_update(request.items)
        final_price = basket.total_with_quantities(quantities)
        try:
            self._baskets.set_quantities(basket.id, quantities)
            try:
                order = self._orders.create_order(basket.id, address)
            except EmptyBasketOnCheckoutError as exc:
                logger.warning("%s", exc)
                return CheckoutOutcome.empty_basket(detail=str(exc))
            order_id = order.id
            self._baskets.delete_basket(basket.id)
        except Exception as exc:
            return CheckoutOutcome.fatal(exc)

        logger.info("Committed order %s from basket %s for %s", order_id, basket.id, basket.buyerId)
        return CheckoutOutcome.committed(
            quantities=quantities,
            shipping_address=request.shippingAddress,
            final_price=final_price,
            order_id=order_id,
        )

    async def notify(self, outcome: CheckoutOutcome) -> None:
        if outcome.kind != "committed":
            return
        await self._notifier.dispatch(
            shipping_address=outcome.shipping_address or "",
            quantities=outcome.quantities,
            final_price=outcome.final_price or Decimal("0"),
        )

    async def place_order(self, shopper_id: str, payload: Any) -> CheckoutOutcome:
        basket = self.load_basket(shopper_id)
        outcome = self.commit(basket, payload)
        await self.notify(outcome)
        return outcome
