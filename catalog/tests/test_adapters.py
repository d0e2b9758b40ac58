from decimal import Decimal

import pytest
from catalog.adapters import adapt_listings, split_options
from catalog.tests.factories import listing


def test_groups_by_base_name():
    listings = [
        listing("KSO Hoodie - Black / M"),
        listing("KSO Hoodie - Black / L"),
        listing("KSO Tee - White / S"),
        listing("Sticker Pack"),
    ]

    products = adapt_listings(listings)

    assert [p.name for p in products] == ["KSO Hoodie", "KSO Tee", "Sticker Pack"]
    assert [len(p.variants) for p in products] == [2, 1, 1]
    assert sum(len(p.variants) for p in products) == len(listings)


def test_variant_group_metadata_overrides_name_convention():
    listings = [
        listing("Hoodie - Black / M", metadata={"variant_group_id": "101"}),
        listing("Hoodie (Heavy) - Black / M", metadata={"variant_group_id": "101"}),
        listing("Hoodie - Red / S", metadata={"variant_group_id": "202"}),
    ]

    products = adapt_listings(listings)

    assert [len(p.variants) for p in products] == [2, 1]
    assert products[0].name == "Hoodie"


def test_representative_supplies_product_fields():
    first = listing(
        "KSO Hoodie - Black / M",
        unit_amount=4500,
        metadata={"category": "Apparel", "printful_product_id": "101", "printful_variant_id": "5001"},
    )
    second = listing("KSO Hoodie - Black / L", unit_amount=4700, metadata={"printful_variant_id": "5002"})

    (product,) = adapt_listings([first, second])

    assert product.id == first["id"]
    assert product.price == Decimal("45")
    assert product.stripe_price_id == first["default_price"]["id"]
    assert product.category == "Apparel"
    assert product.image == first["images"][0]
    assert product.printful_product_id == "101"
    assert product.is_active is True
    assert [v.price for v in product.variants] == [Decimal("45"), Decimal("47")]
    assert [v.printful_variant_id for v in product.variants] == ["5001", "5002"]


@pytest.mark.parametrize(
    "label,expected",
    [
        ("Black / M", ("Black", "M")),
        ("Black", ("Black", "Default")),
        (" / M", ("Default", "M")),
        ("Black / ", ("Black", "Default")),
    ],
)
def test_split_options(label, expected):
    assert split_options(label) == expected


def test_variant_names_and_defaults():
    (product,) = adapt_listings([listing("Sticker Pack", price=False, images=[])])
    (variant,) = product.variants

    assert variant.name == "Default / Default"
    assert variant.color == "Default"
    assert variant.price == Decimal("0")
    assert variant.stripe_price_id == ""
    assert variant.printful_variant_id == ""
    assert product.image == "/placeholder-product.jpg"


def test_inventory_count_rules():
    dropship, counted, bogus, missing = adapt_listings(
        [
            listing("A", metadata={"printful_product_id": "1", "inventory_count": "3"}),
            listing("B", metadata={"inventory_count": "12"}),
            listing("C", metadata={"inventory_count": "lots"}),
            listing("D"),
        ]
    )

    assert dropship.inventory_count == 999
    assert counted.inventory_count == 12
    assert bogus.inventory_count == 0
    assert missing.inventory_count == 0


def test_description_prefers_listing_then_prefix(settings):
    settings.CATALOG_DESCRIPTION_PREFIX = "KSO"
    described, plain = adapt_listings(
        [listing("Mug - Blue", description="Ceramic mug"), listing("Tote - Natural")]
    )

    assert described.description == "Ceramic mug"
    assert plain.description == "KSO Tote"


def test_empty_input_yields_no_products():
    assert adapt_listings([]) == []
