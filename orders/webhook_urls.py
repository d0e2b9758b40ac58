"""Inbound webhooks, mounted at /api/v1/webhooks/."""

from django.urls import path

from .views import StripeWebhookView

app_name = "webhooks"

urlpatterns = [
    path("stripe/", StripeWebhookView.as_view(), name="stripe-webhook"),
]
