# accounting/management/commands/resolve_posting_halt.py

from django.core.management.base import BaseCommand, CommandError

from accounting.services.posting_guard import active_halt, resolve_halts


class Command(BaseCommand):
    help = "Lift an active posting halt once the ledger imbalance has been investigated"

    def add_arguments(self, parser):
        parser.add_argument("--note", required=True, help="What was found and how it was fixed.")

    def handle(self, *args, **options):
        halt = active_halt()
        if halt is None:
            self.stdout.write("No active posting halt.")
            return

        self.stdout.write(f"Active halt since {halt.created_at:%Y-%m-%d %H:%M}: {halt.reason}")

        try:
            count = resolve_halts(note=options["note"])
        except ValueError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(self.style.SUCCESS(f"Resolved {count} halt(s); postings are open again."))
