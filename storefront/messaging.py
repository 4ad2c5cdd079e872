from __future__ import annotations

import redis.asyncio as aioredis

from storefront.config import settings


class QueuePublisher:
    """Pushes one message onto a durable Redis list per call.

    A connection is opened for every publish and closed afterwards, whether or not the
    push succeeded.
    """

    def __init__(
        self,
        *,
        connection_string: str,
        queue_name: str,
        timeout_seconds: float,
    ) -> None:
        self.connection_string = connection_string
        self.queue_name = queue_name
        self._timeout = timeout_seconds

    async def publish(self, body: bytes) -> None:
        client = aioredis.from_url(
            self.connection_string,
            socket_timeout=self._timeout,
            socket_connect_timeout=self._timeout,
        )
        try:
            await client.rpush(self.queue_name, body)
        finally:
            await client.aclose()


def build_queue_publisher() -> QueuePublisher:
    return QueuePublisher(
        connection_string=settings.ServiceBusConnectionString,
        queue_name=settings.ServiceBusQueueName,
        timeout_seconds=settings.NOTIFICATION_TIMEOUT_SECONDS,
    )
