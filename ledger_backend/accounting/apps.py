# accounting/apps.py

"""
ACCOUNTING APP CONFIG

GST double-entry ledger engine:
- Ledger groups / ledgers
- Vouchers (draft -> posted -> cancelled by reversal)
- Immutable posting log, statements, trial balance
"""

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Accounting"
