"""URL routes for the orders app (v1)."""

from django.urls import path

from .views import OrderBySessionView, OrderListView

app_name = "orders"

urlpatterns = [
    path("", OrderListView.as_view(), name="order-list"),
    path("session/<str:session_id>/", OrderBySessionView.as_view(), name="order-by-session"),
]
