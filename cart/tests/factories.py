from decimal import Decimal

import factory
from cart.models import CartItem
from factory.django import DjangoModelFactory
from users.tests.factories import UserFactory


class CartItemFactory(DjangoModelFactory):
    class Meta:
        model = CartItem

    user = factory.SubFactory(UserFactory)
    product_id = factory.Sequence(lambda n: f"prod_{n}")
    variant_id = ""
    product_name = factory.Sequence(lambda n: f"KSO Tee {n}")
    price = Decimal("25.00")
    product_image = "https://files.example.com/tee.png"
    quantity = 1
    stripe_price_id = factory.Sequence(lambda n: f"price_{n}")
