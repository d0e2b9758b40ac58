import json

from django.core.management.base import BaseCommand
from orders.models import PaymentEvent
from orders.webhooks import CHECKOUT_COMPLETED


class Command(BaseCommand):
    help = "List paid checkout sessions that did not produce a fulfillment order"

    def add_arguments(self, parser):
        parser.add_argument("--reason", help="Only events recorded with this reason")
        parser.add_argument("--json", action="store_true", help="Print one JSON object per line")

    def handle(self, *args, **options):
        qs = PaymentEvent.objects.filter(event_type=CHECKOUT_COMPLETED, fulfilled=False).exclude(reason="duplicate")
        if options.get("reason"):
            qs = qs.filter(reason=options["reason"])

        count = 0
        for event in qs.order_by("created_at"):
            count += 1
            if options["json"]:
                row = {
                    "event_id": event.event_id,
                    "stripe_session_id": event.stripe_session_id,
                    "reason": event.reason,
                    "detail": event.detail,
                    "created_at": event.created_at.isoformat(),
                }
                self.stdout.write(json.dumps(row))
            else:
                self.stdout.write(
                    f"{event.created_at:%Y-%m-%d %H:%M} {event.stripe_session_id} {event.reason or '-'} {event.detail}"
                )
        if not options["json"]:
            self.stdout.write(self.style.SUCCESS(f"{count} unfulfilled checkout sessions."))
