# accounting/balance.py

"""
LEDGER BALANCE FOLD (FRAMEWORK-AGNOSTIC)

A ledger's balance is ALWAYS derived from:
    opening balance (on the nature's normal side) + every posted movement

It is never a stored Dr/Cr flag. The side is recomputed from the arithmetic
every time, so it cannot drift.

Conventions:
- Debit-normal ledgers (assets, expenses) open on the Dr side
- Credit-normal ledgers (liabilities, income, equity) open on the Cr side
- A debit movement grows a Dr balance or shrinks a Cr balance (and flips
  the side when it crosses zero); credit movements are symmetric
- A zero balance sits on the nature's normal side
- "signed" values are positive when the balance is on the normal side
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Tuple

from accounting.money import ZERO, q2

DEBIT = "Dr"
CREDIT = "Cr"

DEBIT_NORMAL = "debit_normal"
CREDIT_NORMAL = "credit_normal"


def normal_side(nature: str) -> str:
    if nature == DEBIT_NORMAL:
        return DEBIT
    if nature == CREDIT_NORMAL:
        return CREDIT
    raise ValueError(f"Unknown ledger nature: {nature!r}")


@dataclass(frozen=True)
class Balance:
    side: str
    amount: Decimal

    def __post_init__(self):
        if self.side not in (DEBIT, CREDIT):
            raise ValueError(f"Invalid balance side: {self.side!r}")
        if self.amount < 0:
            raise ValueError("Balance amount is a magnitude and cannot be negative")

    @property
    def net_debit(self) -> Decimal:
        return self.amount if self.side == DEBIT else -self.amount

    @property
    def is_zero(self) -> bool:
        return self.amount == ZERO

    def signed(self, nature: str) -> Decimal:
        if self.side == normal_side(nature):
            return self.amount
        return -self.amount

    def __str__(self):
        return f"{self.amount} {self.side}"


def from_net_debit(net_debit, nature: str) -> Balance:
    net = q2(net_debit)
    if net > 0:
        return Balance(DEBIT, net)
    if net < 0:
        return Balance(CREDIT, -net)
    return Balance(normal_side(nature), ZERO)


def from_signed(signed_amount, nature: str) -> Balance:
    signed_amount = q2(signed_amount)
    net = signed_amount if normal_side(nature) == DEBIT else -signed_amount
    return from_net_debit(net, nature)


def opening_balance_of(nature: str, amount) -> Balance:
    amount = q2(amount)
    if amount < 0:
        raise ValueError("Opening balance is a magnitude and cannot be negative")
    return Balance(normal_side(nature), amount)


def apply_movement(balance: Balance, nature: str, debit=ZERO, credit=ZERO) -> Balance:
    return from_net_debit(balance.net_debit + q2(debit) - q2(credit), nature)


def fold(nature: str, opening_amount, movements: Iterable[Tuple[Decimal, Decimal]]) -> Balance:
    """
    Replay (debit, credit) movements over the opening balance.
    """
    balance = opening_balance_of(nature, opening_amount)
    for debit, credit in movements:
        balance = apply_movement(balance, nature, debit, credit)
    return balance


def from_totals(nature: str, opening_amount, total_debit, total_credit) -> Balance:
    """
    Closed form of fold() when only the column totals are known.

    The fold is linear, so aggregating movements first gives the same result
    as replaying them one by one.
    """
    opening = opening_balance_of(nature, opening_amount)
    return from_net_debit(opening.net_debit + q2(total_debit) - q2(total_credit), nature)
