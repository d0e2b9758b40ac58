from django.contrib import admin

from .models import IdempotencyKey, Order, PaymentEvent


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "stripe_session_id", "status", "user", "customer_email", "total_amount", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("stripe_session_id", "customer_email", "customer_name", "fulfillment_order_id")
    readonly_fields = ("stripe_session_id", "items", "shipping_address", "created_at", "updated_at")
    date_hierarchy = "created_at"


@admin.register(PaymentEvent)
class PaymentEventAdmin(admin.ModelAdmin):
    list_display = ("id", "event_id", "event_type", "stripe_session_id", "fulfilled", "reason", "order", "created_at")
    list_filter = ("fulfilled", "reason", "event_type")
    search_fields = ("event_id", "stripe_session_id")
    readonly_fields = ("event_id", "event_type", "stripe_session_id", "created_at", "updated_at")
    date_hierarchy = "created_at"


@admin.register(IdempotencyKey)
class IdempotencyKeyAdmin(admin.ModelAdmin):
    list_display = ("id", "key", "scope", "path", "method", "response_code", "created_at")
    list_filter = ("method", "response_code", "created_at")
    search_fields = ("key", "scope", "path")
    date_hierarchy = "created_at"
