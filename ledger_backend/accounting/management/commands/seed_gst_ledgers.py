# accounting/management/commands/seed_gst_ledgers.py

from django.core.management.base import BaseCommand

from accounting.services.ledger_setup import seed_standard_ledgers


class Command(BaseCommand):
    help = "Seed the standard GST ledger groups and ledgers (idempotent)"

    def handle(self, *args, **options):
        self.stdout.write("Seeding standard GST ledgers...")

        result = seed_standard_ledgers()

        self.stdout.write(
            self.style.SUCCESS(
                "Groups created: {groups_created}, ledgers created: {ledgers_created}, "
                "ledgers updated: {ledgers_updated}".format(**result)
            )
        )
