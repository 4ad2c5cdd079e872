from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any
from uuid import uuid4

import httpx
import orjson

from storefront.config import settings
from storefront.messaging import QueuePublisher
from storefront.schemas import DeliveryNotification

logger = logging.getLogger(__name__)

DELIVERY_PATH = "/api/OrderItemsDeliveryServiceRun"
RESERVATION_PATH = "/api/ReservationOfOrderItems"


class NotificationError(RuntimeError):
    def __init__(self, *, message: str, status_code: int = 502) -> None:
        super().__init__(message)
        self.status_code = status_code


def serialize_quantities(quantities: dict[str, int]) -> bytes:
    return orjson.dumps(quantities)


class NotificationDispatcher:
    """Tells the delivery processor, the reservation service and the order queue about a
    committed checkout.

    Delivery runs alongside the queue-then-reservation pair. Queue failures are only
    logged. Delivery and reservation failures are raised as ``NotificationError`` once
    every branch has finished, unless ``best_effort`` is set, in which case they are
    logged as well.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        queue_publisher: QueuePublisher,
        delivery_base_url: str,
        reserver_base_url: str,
        best_effort: bool = False,
    ) -> None:
        self._http = http_client
        self._queue = queue_publisher
        self._delivery_url = f"{delivery_base_url.rstrip('/')}{DELIVERY_PATH}"
        self._reservation_url = f"{reserver_base_url.rstrip('/')}{RESERVATION_PATH}"
        self._best_effort = best_effort

    async def dispatch(
        self,
        *,
        shipping_address: str,
        quantities: dict[str, int],
        final_price: Decimal,
    ) -> None:
        delivery = DeliveryNotification(
            id=str(uuid4()),
            shippingAddress=shipping_address,
            listOfItems=quantities,
            finalPrice=final_price,
        )
        results = await asyncio.gather(
            self.send_delivery(delivery),
            self._publish_then_reserve(quantities),
            return_exceptions=True,
        )
        to_raise: BaseException | None = None
        for failure in (result for result in results if isinstance(result, BaseException)):
            if self._best_effort and isinstance(failure, NotificationError):
                logger.warning("Ignoring notification failure: %s", failure, exc_info=failure)
            elif to_raise is None:
                to_raise = failure
            else:
                logger.warning("Additional notification failure: %s", failure, exc_info=failure)
        if to_raise is not None:
            raise to_raise

    async def send_delivery(self, delivery: DeliveryNotification) -> None:
        await self._post_json(
            url=self._delivery_url,
            payload=delivery.model_dump(mode="json"),
            channel="delivery",
        )

    async def send_reservation(self, quantities: dict[str, int]) -> None:
        await self._post_json(url=self._reservation_url, payload=quantities, channel="reservation")

    async def publish_to_queue(self, quantities: dict[str, int]) -> bool:
        try:
            await self._queue.publish(serialize_quantities(quantities))
        except Exception:
            logger.warning(
                "Failed to publish order items to queue %s",
                self._queue.queue_name,
                exc_info=True,
            )
            return False
        return True

    async def _publish_then_reserve(self, quantities: dict[str, int]) -> None:
        await self.publish_to_queue(quantities)
        await self.send_reservation(quantities)

    async def _post_json(self, *, url: str, payload: dict[str, Any], channel: str) -> str:
        try:
            response = await self._http.post(url, json=payload)
        except httpx.RequestError as exc:
            raise NotificationError(message=f"Network error while sending {channel} notification: {exc}") from exc

        body = response.text
        if response.status_code >= 400:
            logger.warning(
                "%s notification answered %s: %s",
                channel.capitalize(),
                response.status_code,
                body,
            )
        return body


def build_notification_dispatcher(http_client: httpx.AsyncClient, queue_publisher: QueuePublisher) -> NotificationDispatcher:
    return NotificationDispatcher(
        http_client=http_client,
        queue_publisher=queue_publisher,
        delivery_base_url=settings.delivery_processor_base_url,
        reserver_base_url=settings.order_items_reserver_base_url,
        best_effort=settings.NOTIFICATIONS_BEST_EFFORT,
    )
