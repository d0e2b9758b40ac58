"""Mirror Printful store products into Stripe.

Usage:
  python manage.py sync_products
  python manage.py sync_products --json
"""

import json

from catalog.services import sync_printful_products
from common.exceptions import UpstreamError
from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = "Create/update a Stripe product per enabled Printful variant and remove orphaned ones."

    def add_arguments(self, parser):
        parser.add_argument("--json", action="store_true", help="Print the full result as JSON.")

    def handle(self, *args, **options):
        try:
            result = sync_printful_products()
        except UpstreamError as exc:
            raise CommandError(exc.detail) from exc

        if options.get("json"):
            self.stdout.write(json.dumps(result, indent=2))
            return
        created = sum(1 for item in result["synced"] if item["created"])
        self.stdout.write(
            self.style.SUCCESS(
                f"Synced {result['total']} product(s) ({created} new), deleted {result['deleted']} orphaned."
            )
        )
