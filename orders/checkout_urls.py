"""Checkout route, mounted at /api/v1/checkout/."""

from django.urls import path

from .views import CheckoutSessionView

app_name = "checkout"

urlpatterns = [
    path("", CheckoutSessionView.as_view(), name="checkout-session"),
]
