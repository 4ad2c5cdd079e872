from __future__ import annotations

from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_QUEUE_URL_SCHEMES = ("redis://", "rediss://", "unix://")


class Settings(BaseSettings):
    DeliveryOrderProcessorUri: AnyHttpUrl
    OrderItemsReserverUri: AnyHttpUrl
    ServiceBusConnectionString: str
    ServiceBusQueueName: str

    STOREFRONT_DB_URL: str = "sqlite:///./storefront.db"
    STOREFRONT_SESSION_SECRET: str
    NOTIFICATION_TIMEOUT_SECONDS: float = 20.0
    NOTIFICATIONS_BEST_EFFORT: bool = False
    BASKET_COOKIE_SECURE: bool = False

    @field_validator("ServiceBusQueueName")
    @classmethod
    def validate_queue_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("ServiceBusQueueName must not be blank")
        return name

    @field_validator("ServiceBusConnectionString")
    @classmethod
    def validate_connection_string(cls, value: str) -> str:
        url = value.strip()
        if not url.startswith(_QUEUE_URL_SCHEMES):
            raise ValueError(
                "ServiceBusConnectionString must be a redis://, rediss:// or unix:// URL"
            )
        return url

    @property
    def delivery_processor_base_url(self) -> str:
        return str(self.DeliveryOrderProcessorUri).rstrip("/")

    @property
    def order_items_reserver_base_url(self) -> str:
        return str(self.OrderItemsReserverUri).rstrip("/")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
