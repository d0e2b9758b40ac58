from unittest import mock

import pytest
import stripe
from catalog.services import sync_printful_products, variant_display_name
from common.exceptions import UpstreamError
from django.core.management import call_command
from rest_framework.test import APIClient
from users.tests.factories import UserFactory


class FakePrintful:
    def __init__(self, products):
        self.products = products

    def get_store_products(self):
        return [p["sync_product"] for p in self.products]

    def get_sync_product(self, product_id):
        return next(p for p in self.products if p["sync_product"]["id"] == product_id)

    def close(self):
        pass


HOODIE = {
    "sync_product": {"id": 101, "name": "KSO Hoodie", "thumbnail_url": "https://files.example.com/hoodie.png"},
    "sync_variants": [
        {"id": 5001, "name": "KSO Hoodie - Black / M", "retail_price": "45.00", "is_enabled": True},
        {"id": 5002, "name": "KSO Hoodie - Black / L", "retail_price": "47.50", "is_enabled": True},
        {"id": 5003, "name": "KSO Hoodie - Pink / XS", "retail_price": "45.00", "is_enabled": False},
    ],
}


def page(products):
    return mock.Mock(auto_paging_iter=mock.Mock(return_value=iter(products)))


def created(**kwargs):
    n = kwargs["metadata"]["printful_variant_id"]
    return {"id": f"prod_{n}", "default_price": {"id": f"price_{n}", "unit_amount": kwargs["default_price_data"]["unit_amount"]}}


def test_variant_display_name_strips_product_prefix():
    assert variant_display_name("KSO Hoodie", "KSO Hoodie - Black / M") == "Black / M"
    assert variant_display_name("KSO Hoodie", "Black / M") == "Black / M"
    assert variant_display_name("KSO Hoodie", "") == "Default"


def test_sync_creates_one_stripe_product_per_enabled_variant():
    with mock.patch("stripe.Product.list", return_value=page([])), mock.patch(
        "stripe.Product.create", side_effect=created
    ) as create:
        result = sync_printful_products(printful=FakePrintful([HOODIE]))

    assert result["total"] == 2
    assert result["deleted"] == 0
    first_call = create.call_args_list[0].kwargs
    assert first_call["name"] == "KSO Hoodie - Black / M"
    assert first_call["default_price_data"] == {"currency": "usd", "unit_amount": 4500}
    assert first_call["metadata"]["printful_variant_id"] == "5001"
    assert first_call["metadata"]["variant_group_id"] == "101"
    assert create.call_args_list[1].kwargs["default_price_data"]["unit_amount"] == 4750


def test_sync_updates_existing_product_and_switches_price_when_amount_changes():
    existing = {
        "id": "prod_existing",
        "active": True,
        "metadata": {"printful_product_id": "101", "printful_variant_id": "5001"},
        "default_price": {"id": "price_old", "unit_amount": 4000},
    }
    hoodie = {"sync_product": HOODIE["sync_product"], "sync_variants": HOODIE["sync_variants"][:1]}
    with mock.patch("stripe.Product.list", return_value=page([existing])), mock.patch(
        "stripe.Product.modify", side_effect=lambda pid, **kw: {"id": pid}
    ) as modify, mock.patch("stripe.Price.create", return_value={"id": "price_new"}) as price_create, mock.patch(
        "stripe.Product.create"
    ) as create:
        result = sync_printful_products(printful=FakePrintful([hoodie]))

    create.assert_not_called()
    price_create.assert_called_once_with(product="prod_existing", unit_amount=4500, currency="usd")
    modify.assert_any_call("prod_existing", default_price="price_new")
    assert result["synced"][0]["stripe_price_id"] == "price_new"
    assert result["synced"][0]["created"] is False


def test_sync_keeps_price_when_amount_matches():
    existing = {
        "id": "prod_existing",
        "active": True,
        "metadata": {"printful_product_id": "101", "printful_variant_id": "5001"},
        "default_price": {"id": "price_same", "unit_amount": 4500},
    }
    hoodie = {"sync_product": HOODIE["sync_product"], "sync_variants": HOODIE["sync_variants"][:1]}
    with mock.patch("stripe.Product.list", return_value=page([existing])), mock.patch(
        "stripe.Product.modify", side_effect=lambda pid, **kw: {"id": pid}
    ), mock.patch("stripe.Price.create") as price_create:
        result = sync_printful_products(printful=FakePrintful([hoodie]))

    price_create.assert_not_called()
    assert result["synced"][0]["stripe_price_id"] == "price_same"


def test_sync_removes_orphaned_printful_products_only():
    orphan = {"id": "prod_orphan", "active": True, "metadata": {"printful_variant_id": "9999"}, "default_price": None}
    manual = {"id": "prod_manual", "active": True, "metadata": {}, "default_price": None}
    with mock.patch("stripe.Product.list", return_value=page([orphan, manual])), mock.patch(
        "stripe.Product.create", side_effect=created
    ), mock.patch("stripe.Product.delete") as delete:
        result = sync_printful_products(printful=FakePrintful([HOODIE]))

    delete.assert_called_once_with("prod_orphan")
    assert result["deleted"] == 1


def test_orphan_with_prices_is_archived():
    orphan = {"id": "prod_orphan", "active": True, "metadata": {"printful_variant_id": "9999"}, "default_price": None}
    with mock.patch("stripe.Product.list", return_value=page([orphan])), mock.patch(
        "stripe.Product.delete", side_effect=stripe.InvalidRequestError("has prices", param=None)
    ), mock.patch("stripe.Product.modify") as modify:
        result = sync_printful_products(printful=FakePrintful([]))

    modify.assert_called_once_with("prod_orphan", active=False)
    assert result["deleted"] == 1


def test_stripe_failure_becomes_upstream_error():
    with mock.patch("stripe.Product.list", side_effect=stripe.APIConnectionError("down")):
        with pytest.raises(UpstreamError):
            sync_printful_products(printful=FakePrintful([HOODIE]))


@pytest.mark.django_db
def test_sync_endpoint_for_shop_admin():
    client = APIClient()
    client.force_authenticate(user=UserFactory(is_admin=True))
    result = {"synced": [], "deleted": 0, "total": 0}

    with mock.patch("catalog.views.sync_printful_products", return_value=result):
        r = client.post("/api/v1/catalog/sync/")

    assert r.status_code == 200
    assert r.json() == result


def test_sync_products_command(capsys):
    result = {
        "synced": [
            {
                "name": "KSO Hoodie - Black / M",
                "stripe_product_id": "prod_1",
                "stripe_price_id": "price_1",
                "printful_variant_id": "5001",
                "created": True,
            }
        ],
        "deleted": 2,
        "total": 1,
    }
    with mock.patch("catalog.management.commands.sync_products.sync_printful_products", return_value=result):
        call_command("sync_products")

    assert "Synced 1 product(s) (1 new), deleted 2 orphaned." in capsys.readouterr().out
