"""URL routes for the catalog app."""

from django.urls import path

from .views import ProductListView, ProductSyncView

app_name = "catalog"

urlpatterns = [
    path("products/", ProductListView.as_view(), name="product-list"),
    path("sync/", ProductSyncView.as_view(), name="product-sync"),
]
