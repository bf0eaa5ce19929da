# accounting/management/commands/verify_ledger_integrity.py

from __future__ import annotations

from datetime import datetime

from django.core.management.base import BaseCommand
from django.db.models import Sum

from accounting.balance import from_totals
from accounting.models import Ledger, Posting
from accounting.money import ZERO, q2
from accounting.services.posting_engine import rebuild_ledger_balance
from accounting.services.trial_balance_service import TrialBalanceService


def _parse_date(s: str | None):
    """
    Parse YYYY-MM-DD into a date, or None.
    """
    if not s:
        return None
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


class Command(BaseCommand):
    help = (
        "Compare every ledger's cached balance with its posting history, "
        "optionally rebuild drifted caches, and check the trial balance."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--as-of",
            dest="as_of",
            help="Trial balance date YYYY-MM-DD (default: today)",
        )
        parser.add_argument(
            "--rebuild",
            action="store_true",
            help="Rewrite drifted cached balances from the posting history.",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any problem is found.",
        )

    def handle(self, *args, **options):
        as_of = _parse_date(options.get("as_of"))
        rebuild = bool(options.get("rebuild"))
        strict = bool(options.get("strict"))

        if options.get("as_of") and not as_of:
            self.stderr.write(self.style.ERROR("Invalid --as-of date. Use YYYY-MM-DD"))
            return self._exit(strict)

        self.stdout.write(self.style.MIGRATE_HEADING("Ledger integrity check"))
        errors = 0

        # -----------------------------
        # 1) Cached balance vs posting fold
        # -----------------------------
        totals = {
            r["ledger_id"]: (r["debit"] or ZERO, r["credit"] or ZERO)
            for r in Posting.objects.values("ledger_id").annotate(debit=Sum("debit"), credit=Sum("credit"))
        }

        drifted = 0
        for ledger in Ledger.objects.select_related("group").order_by("code"):
            debit, credit = totals.get(ledger.pk, (ZERO, ZERO))
            expected = from_totals(ledger.nature, ledger.opening_balance, debit, credit).signed(ledger.nature)
            if q2(ledger.current_balance) == expected:
                continue

            drifted += 1
            if rebuild:
                rebuild_ledger_balance(ledger)
                self.stdout.write(
                    self.style.WARNING(f"[FIXED] {ledger.code}: cached={ledger.current_balance} rebuilt={expected}")
                )
            else:
                errors += 1
                self.stderr.write(
                    self.style.ERROR(f"[FAIL] {ledger.code}: cached={ledger.current_balance} expected={expected}")
                )

        if not drifted:
            self.stdout.write(self.style.SUCCESS("[OK] Cached ledger balances match posting history"))

        # -----------------------------
        # 2) Trial balance
        # -----------------------------
        report = TrialBalanceService().generate(as_of)
        t = report["totals"]

        if t["posting_difference"] != ZERO:
            errors += 1
            self.stderr.write(
                self.style.ERROR(
                    f"[FAIL] Trial balance as of {report['as_of_date']} off by {t['posting_difference']} "
                    f"(debit={t['debit']} credit={t['credit']}); postings halted"
                )
            )
        elif t["opening_difference"] != ZERO:
            self.stdout.write(
                self.style.WARNING(
                    f"[WARN] Opening balances differ by {t['opening_difference']} "
                    f"(debit={t['debit']} credit={t['credit']})"
                )
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(f"[OK] Trial balance as of {report['as_of_date']}: debit={t['debit']} credit={t['credit']}")
            )

        if errors == 0:
            self.stdout.write(self.style.SUCCESS("VALIDATION PASSED"))
        else:
            self.stderr.write(self.style.ERROR(f"VALIDATION FOUND ISSUES: {errors} problem(s)"))

        return self._exit(strict and errors > 0)

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
