from __future__ import annotations

from decimal import Decimal

import pytest

from storefront.schemas import Address, BasketView, CheckoutRequest, DeliveryNotification


def _basket() -> BasketView:
    return BasketView(
        id=1,
        buyerId="demouser",
        items=[
            {"id": 42, "catalogItemId": 1, "productName": "Mug", "unitPrice": Decimal("8.50"), "quantity": 1},
            {"id": 7, "catalogItemId": 2, "productName": "Cap", "unitPrice": Decimal("12.00"), "quantity": 3},
        ],
    )


def test_basket_total_sums_lines():
    assert _basket().total() == Decimal("44.50")


def test_basket_total_with_quantities_applies_overrides():
    assert _basket().total_with_quantities({"42": 2, "7": 0}) == Decimal("17.00")
    assert _basket().total_with_quantities({"42": 2}) == Decimal("53.00")


def test_checkout_request_rejects_negative_quantity():
    with pytest.raises(ValueError):
        CheckoutRequest(items=[{"id": 1, "quantity": -1}], shippingAddress="1 Main St")


def test_checkout_request_rejects_blank_shipping_address():
    with pytest.raises(ValueError):
        CheckoutRequest(items=[{"id": 1, "quantity": 1}], shippingAddress="   ")


def test_checkout_request_requires_items_list():
    with pytest.raises(ValueError):
        CheckoutRequest.model_validate({"shippingAddress": "1 Main St"})


def test_address_parse_splits_comma_separated_parts():
    address = Address.parse("123 Main St., Kent, OH, United States, 44240")

    assert address == Address(
        street="123 Main St.",
        city="Kent",
        state="OH",
        country="United States",
        zipcode="44240",
    )


def test_address_parse_leaves_missing_parts_empty():
    address = Address.parse("221B Baker Street, London")

    assert address.street == "221B Baker Street"
    assert address.city == "London"
    assert address.state == ""
    assert address.zipcode == ""


def test_address_parse_rejects_missing_street():
    with pytest.raises(ValueError):
        Address.parse(", Kent, OH")


def test_delivery_notification_serializes_wire_names():
    payload = DeliveryNotification(
        id="a3f1",
        shippingAddress="1 Main St",
        listOfItems={"42": 2, "7": 0},
        finalPrice=Decimal("17.00"),
    ).model_dump(mode="json")

    assert payload == {
        "id": "a3f1",
        "shippingAddress": "1 Main St",
        "listOfItems": {"42": 2, "7": 0},
        "finalPrice": 17.0,
    }


def test_checkout_request_rejects_quantity_beyond_column_range():
    with pytest.raises(ValueError):
        CheckoutRequest(items=[{"id": 1, "quantity": 2**31}], shippingAddress="1 Main St")

    request = CheckoutRequest(items=[{"id": 1, "quantity": 2**31 - 1}], shippingAddress="1 Main St")
    assert request.items[0].quantity == 2**31 - 1


def test_address_parse_rejects_parts_longer_than_columns():
    with pytest.raises(ValueError):
        Address.parse("1 Main St, Kent, OH, United States, " + "4" * 19)

    with pytest.raises(ValueError):
        Address.parse("x" * 181)
