"""Cart URL routes (v1)."""

from django.urls import path

from .views import CartItemDeleteView, CartView

app_name = "cart"

urlpatterns = [
    path("", CartView.as_view(), name="cart"),
    path("<str:item_id>/", CartItemDeleteView.as_view(), name="cart-delete-item"),
]
