"""
URL configuration for the shop backend.

All API routes are versioned under /api/v1/. The Stripe webhook lives under
/api/v1/webhooks/stripe/ and must be registered with the same path in the
Stripe dashboard.
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from .health import health

admin.site.site_header = "KSO Shop Admin"
admin.site.index_title = "Admin"

urlpatterns = [
    path("admin/", admin.site.urls),
    # API schema and Swagger UI
    path("api/schema/", SpectacularAPIView.as_view(), name="api-schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="api-schema"), name="api-docs"),
    # Healthcheck
    path("health/", health, name="health"),
    # Versioned v1 routes only
    path("api/v1/", include("users.urls")),
    path("api/v1/catalog/", include("catalog.urls")),
    path("api/v1/cart/", include("cart.urls")),
    path("api/v1/checkout/", include("orders.checkout_urls")),
    path("api/v1/webhooks/", include("orders.webhook_urls")),
    path("api/v1/orders/", include("orders.urls")),
]
