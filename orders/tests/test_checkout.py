import json
from decimal import Decimal

import pytest
from common.exceptions import ValidationError
from orders.checkout import (
    METADATA_VALUE_LIMIT,
    build_line_items,
    create_checkout_session,
    decode_cart_metadata,
    encode_cart_metadata,
    to_minor_units,
)


def entries(count, *, id_len=10):
    return [{"id": f"p{n:03d}".ljust(id_len, "x"), "quantity": 1, "stripe_price_id": f"price_{n}"} for n in range(count)]


@pytest.mark.parametrize(
    "price,cents",
    [(Decimal("20.00"), 2000), ("19.99", 1999), (0.1, 10), ("0.005", 1)],
)
def test_to_minor_units(price, cents):
    assert to_minor_units(price) == cents


def test_small_cart_uses_single_key():
    metadata = encode_cart_metadata(entries(2))

    assert set(metadata) == {"items"}
    assert decode_cart_metadata(metadata) == [
        {"id": "p000xxxxxx", "quantity": 1, "stripe_price_id": "price_0"},
        {"id": "p001xxxxxx", "quantity": 1, "stripe_price_id": "price_1"},
    ]


def test_large_cart_is_split_within_value_limit():
    items = entries(40, id_len=40)

    metadata = encode_cart_metadata(items)

    parts = int(metadata["items_parts"])
    assert parts > 1
    assert all(len(metadata[f"items_{n}"]) <= METADATA_VALUE_LIMIT for n in range(parts))
    assert len(metadata) == parts + 1
    assert decode_cart_metadata(metadata) == items


def test_cart_exceeding_key_budget_raises():
    with pytest.raises(ValidationError):
        encode_cart_metadata(entries(300, id_len=100))


def test_empty_price_id_is_stored_as_null():
    metadata = encode_cart_metadata([{"id": "p1", "quantity": 1, "stripe_price_id": ""}])

    assert json.loads(metadata["items"])[0]["stripe_price_id"] is None


@pytest.mark.parametrize(
    "metadata",
    [None, {}, {"items": "not json"}, {"items": '{"id": "p1"}'}, {"items_parts": "x"}],
)
def test_decode_tolerates_unusable_metadata(metadata):
    assert decode_cart_metadata(metadata) == []


def test_line_item_without_image_omits_images():
    (line,) = build_line_items([{"name": "Sticker", "price": Decimal("3.50"), "quantity": 4, "stripe_price_id": ""}])

    assert line["price_data"]["product_data"] == {"name": "Sticker"}
    assert line["price_data"]["unit_amount"] == 350
    assert line["quantity"] == 4


@pytest.mark.parametrize(
    "kwargs,detail",
    [
        ({"items": [], "customer_email": "a@b.com"}, "No items in cart"),
        ({"items": entries(1), "customer_email": ""}, "Customer email is required"),
    ],
)
def test_create_checkout_session_validates_input(kwargs, detail):
    with pytest.raises(ValidationError) as exc:
        create_checkout_session(**kwargs)

    assert exc.value.detail == detail
