# accounting/amount_words.py

"""
AMOUNT IN WORDS (INDIAN NUMBERING)

Renders a rupee amount the way it is printed on invoices and receipts:

    9800.50   -> "Nine Thousand Eight Hundred Rupees and Fifty Paise Only"
    10000000  -> "One Crore Rupees Only"
    0         -> "Zero Rupees Only"

Rules:
- Grouping is crore (10^7), lakh (10^5), thousand, then hundreds
- Paise are the fractional part rounded half-up to 2dp
- Negative amounts are rejected; callers render the sign (Dr/Cr) themselves
- Pure function: no settings, no locale, no side effects
"""

from __future__ import annotations

from accounting.money import q2

ONES = (
    "",
    "One",
    "Two",
    "Three",
    "Four",
    "Five",
    "Six",
    "Seven",
    "Eight",
    "Nine",
    "Ten",
    "Eleven",
    "Twelve",
    "Thirteen",
    "Fourteen",
    "Fifteen",
    "Sixteen",
    "Seventeen",
    "Eighteen",
    "Nineteen",
)

TENS = (
    "",
    "",
    "Twenty",
    "Thirty",
    "Forty",
    "Fifty",
    "Sixty",
    "Seventy",
    "Eighty",
    "Ninety",
)

CRORE = 10_000_000
LAKH = 100_000
THOUSAND = 1_000


def _below_hundred(n: int) -> str:
    if n < 20:
        return ONES[n]
    tens, ones = divmod(n, 10)
    if ones:
        return f"{TENS[tens]} {ONES[ones]}"
    return TENS[tens]


def _below_thousand(n: int) -> str:
    hundreds, rest = divmod(n, 100)
    parts = []
    if hundreds:
        parts.append(f"{ONES[hundreds]} Hundred")
    if rest:
        parts.append(_below_hundred(rest))
    return " ".join(parts)


def integer_in_words(n: int) -> str:
    """
    Words for a non-negative integer using Indian grouping.

    Counts above 99 crore are rendered recursively ("One Hundred Crore").
    """
    if n < 0:
        raise ValueError("integer_in_words() does not accept negative numbers")
    if n == 0:
        return "Zero"

    crore, rest = divmod(n, CRORE)
    lakh, rest = divmod(rest, LAKH)
    thousand, rest = divmod(rest, THOUSAND)

    parts = []
    if crore:
        parts.append(f"{integer_in_words(crore)} Crore")
    if lakh:
        parts.append(f"{_below_hundred(lakh)} Lakh")
    if thousand:
        parts.append(f"{_below_hundred(thousand)} Thousand")
    if rest:
        parts.append(_below_thousand(rest))

    return " ".join(parts)


def amount_in_words(amount) -> str:
    value = q2(amount)
    if value < 0:
        raise ValueError(
            "amount_in_words() expects a non-negative amount; pass abs(amount) and render the sign separately"
        )

    rupees = int(value)
    paise = int((value - rupees) * 100)

    if rupees == 0 and paise == 0:
        return "Zero Rupees Only"

    parts = []
    if rupees:
        parts.append(f"{integer_in_words(rupees)} Rupees")
    if paise:
        parts.append(f"{_below_hundred(paise)} Paise")

    return f"{' and '.join(parts)} Only"
