from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field, field_serializer, field_validator

_CENTS = Decimal("0.01")
# largest value the Integer quantity columns hold
MAX_LINE_QUANTITY = 2**31 - 1


class BasketItemView(BaseModel):
    id: int
    catalogItemId: int
    productName: str
    unitPrice: Decimal
    quantity: int = Field(ge=0)

    @field_serializer("unitPrice")
    def serialize_unit_price(self, value: Decimal) -> float:
        return float(value)


class BasketView(BaseModel):
    id: int
    buyerId: str
    items: list[BasketItemView] = Field(default_factory=list)

    def total(self) -> Decimal:
        return sum(
            (item.unitPrice * item.quantity for item in self.items),
            Decimal("0"),
        ).quantize(_CENTS, rounding=ROUND_HALF_UP)

    def total_with_quantities(self, quantities: dict[str, int]) -> Decimal:
        """Total of the basket after ``quantities`` is applied to its lines.

        Lines missing from ``quantities`` keep their current quantity.
        """
        return sum(
            (item.unitPrice * quantities.get(str(item.id), item.quantity) for item in self.items),
            Decimal("0"),
        ).quantize(_CENTS, rounding=ROUND_HALF_UP)


class AddBasketItemRequest(BaseModel):
    catalogItemId: int
    quantity: int = Field(default=1, ge=1, le=MAX_LINE_QUANTITY)


class CheckoutItem(BaseModel):
    id: int
    quantity: int = Field(ge=0, le=MAX_LINE_QUANTITY)


class CheckoutRequest(BaseModel):
    items: list[CheckoutItem]
    shippingAddress: str = Field(min_length=1)

    @field_validator("shippingAddress")
    @classmethod
    def validate_shipping_address(cls, value: str) -> str:
        address = value.strip()
        if not address:
            raise ValueError("shippingAddress must not be blank")
        return address


class Address(BaseModel):
    street: str = Field(min_length=1, max_length=180)
    city: str = Field(default="", max_length=100)
    state: str = Field(default="", max_length=60)
    country: str = Field(default="", max_length=90)
    zipcode: str = Field(default="", max_length=18)

    @classmethod
    def parse(cls, value: str) -> "Address":
        """Build an address from ``street, city, state, country, zip`` text.

        Trailing parts may be omitted; anything past the fifth comma stays in the zip code.
        """
        parts = [part.strip() for part in value.split(",", 4)]
        parts.extend([""] * (5 - len(parts)))
        street, city, state, country, zipcode = parts
        return cls(street=street, city=city, state=state, country=country, zipcode=zipcode)


class DeliveryNotification(BaseModel):
    id: str
    shippingAddress: str
    listOfItems: dict[str, int]
    finalPrice: Decimal

    @field_serializer("finalPrice")
    def serialize_final_price(self, value: Decimal) -> float:
        return float(value)


class CheckoutSuccessResponse(BaseModel):
    ok: bool = True
    message: str = "Thanks for your order!"
