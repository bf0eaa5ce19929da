# accounting/gst.py

"""
GST TAX SPLIT (FRAMEWORK-AGNOSTIC)

Purpose:
- Split a line's GST into CGST + SGST (intra-state) or IGST (inter-state)
- Add cess (always additive, independent of the supply type)
- Aggregate invoice totals and compute the document round-off
- Normalize state inputs (name / code / GSTIN) to the 2-digit GST state code
- Validate GSTIN structure and check character

Rounding:
- Every tax component is rounded half-up to 2dp PER LINE
- Intra-state: cgst = sgst = round(taxable * rate / 200, 2)
- Inter-state: igst = round(taxable * rate / 100, 2)
- Document level: round_off = round(grand_total, unit) - grand_total_unrounded
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Tuple

from accounting.money import TWOPLACES, ZERO, MoneyError, q2, round_to, to_decimal

HUNDRED = Decimal("100")

STATE_CODES = {
    "jammu and kashmir": "01",
    "himachal pradesh": "02",
    "punjab": "03",
    "chandigarh": "04",
    "uttarakhand": "05",
    "haryana": "06",
    "delhi": "07",
    "rajasthan": "08",
    "uttar pradesh": "09",
    "bihar": "10",
    "sikkim": "11",
    "arunachal pradesh": "12",
    "nagaland": "13",
    "manipur": "14",
    "mizoram": "15",
    "tripura": "16",
    "meghalaya": "17",
    "assam": "18",
    "west bengal": "19",
    "jharkhand": "20",
    "odisha": "21",
    "chhattisgarh": "22",
    "madhya pradesh": "23",
    "gujarat": "24",
    "dadra and nagar haveli and daman and diu": "26",
    "maharashtra": "27",
    "andhra pradesh": "28",
    "karnataka": "29",
    "goa": "30",
    "lakshadweep": "31",
    "kerala": "32",
    "tamil nadu": "33",
    "puducherry": "34",
    "andaman and nicobar islands": "35",
    "telangana": "36",
    "ladakh": "38",
}

GSTIN_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")
GSTIN_CHARSET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# "27-Maharashtra", "27 - Maharashtra"
_CODE_PREFIX = re.compile(r"^(\d{1,2})\s*-\s*\S")


class GSTError(ValueError):
    """Raised on invalid GST inputs (rates, amounts, GSTIN)."""


# ------------------------------------------------------------
# STATES / GSTIN
# ------------------------------------------------------------


def normalize_state(value) -> str:
    """
    Normalize a state reference to its 2-digit GST state code.

    Accepts a code ("27", "7"), a name ("Maharashtra", any case), a
    "27-Maharashtra" label or a full GSTIN. Unknown names come back as
    normalized lowercase text so equal spellings still compare equal.
    """
    text = str(value or "").strip()
    if not text:
        return ""

    upper = text.upper()
    if len(upper) == 15 and upper[:2].isdigit():
        return upper[:2]

    if text.isdigit() and len(text) <= 2:
        return text.zfill(2)

    match = _CODE_PREFIX.match(text)
    if match:
        return match.group(1).zfill(2)

    lowered = " ".join(text.lower().split())
    return STATE_CODES.get(lowered, lowered)


def is_intrastate(supplier_state, place_of_supply) -> bool:
    supplier = normalize_state(supplier_state)
    destination = normalize_state(place_of_supply)

    # Missing either side: treat as a local supply
    if not supplier or not destination:
        return True

    return supplier == destination


def gstin_check_character(first_fourteen: str) -> str:
    total = 0
    for index, char in enumerate(first_fourteen):
        value = GSTIN_CHARSET.index(char)
        product = value * (2 if index % 2 else 1)
        total += product // 36 + product % 36
    return GSTIN_CHARSET[(36 - total % 36) % 36]


@dataclass(frozen=True)
class GSTINInfo:
    gstin: str
    state_code: str
    pan: str
    entity_number: str
    check_character: str


def validate_gstin(gstin) -> GSTINInfo:
    clean = str(gstin or "").strip().upper()

    if len(clean) != 15:
        raise GSTError("GSTIN must be exactly 15 characters long")

    if not GSTIN_PATTERN.match(clean):
        raise GSTError(f"GSTIN format is invalid: {clean}")

    state_code = clean[:2]
    if state_code not in STATE_CODES.values():
        raise GSTError(f"Invalid state code in GSTIN: {state_code}")

    expected = gstin_check_character(clean[:14])
    if clean[14] != expected:
        raise GSTError(f"GSTIN check character mismatch for {clean}")

    return GSTINInfo(
        gstin=clean,
        state_code=state_code,
        pan=clean[2:12],
        entity_number=clean[12],
        check_character=clean[14],
    )


# ------------------------------------------------------------
# TAX SPLIT
# ------------------------------------------------------------


@dataclass(frozen=True)
class TaxSplit:
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    cess: Decimal

    @property
    def gst(self) -> Decimal:
        return self.cgst + self.sgst + self.igst

    @property
    def total_tax(self) -> Decimal:
        return self.gst + self.cess


def _amount(value, label: str) -> Decimal:
    try:
        amount = to_decimal(value)
    except MoneyError as exc:
        raise GSTError(f"Invalid {label}: {value!r}") from exc
    if amount < 0:
        raise GSTError(f"{label} cannot be negative")
    return amount


def _percent(value, label: str) -> Decimal:
    pct = _amount(value, label)
    if pct > HUNDRED:
        raise GSTError(f"{label} must be between 0 and 100")
    return pct


def _split(taxable: Decimal, gst_rate: Decimal, cess_rate: Decimal, intrastate: bool) -> TaxSplit:
    cess = q2(taxable * cess_rate / HUNDRED)

    if intrastate:
        half = q2(taxable * gst_rate / (2 * HUNDRED))
        return TaxSplit(cgst=half, sgst=half, igst=ZERO, cess=cess)

    return TaxSplit(cgst=ZERO, sgst=ZERO, igst=q2(taxable * gst_rate / HUNDRED), cess=cess)


def split_tax(
    taxable_amount,
    gst_rate,
    supplier_state,
    place_of_supply,
    cess_rate=0,
) -> TaxSplit:
    taxable = _amount(taxable_amount, "taxable_amount")
    rate = _percent(gst_rate, "gst_rate")
    cess_pct = _percent(cess_rate, "cess_rate")

    return _split(taxable, rate, cess_pct, is_intrastate(supplier_state, place_of_supply))


# ------------------------------------------------------------
# LINES / INVOICE
# ------------------------------------------------------------


@dataclass(frozen=True)
class LineTax:
    quantity: Decimal
    rate: Decimal
    discount_percent: Decimal
    gross_amount: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    gst_rate: Decimal
    cess_rate: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    cess_amount: Decimal
    total_amount: Decimal


def compute_line(
    quantity,
    rate,
    gst_rate,
    *,
    intrastate: bool,
    discount_percent=0,
    cess_rate=0,
) -> LineTax:
    qty = _amount(quantity, "quantity")
    if qty == 0:
        raise GSTError("quantity must be greater than zero")

    unit_rate = _amount(rate, "rate")
    gst_pct = _percent(gst_rate, "gst_rate")
    cess_pct = _percent(cess_rate, "cess_rate")
    discount_pct = _percent(discount_percent, "discount_percent")

    gross = q2(qty * unit_rate)
    discount = q2(gross * discount_pct / HUNDRED)
    taxable = gross - discount

    tax = _split(taxable, gst_pct, cess_pct, intrastate)

    return LineTax(
        quantity=qty,
        rate=q2(unit_rate),
        discount_percent=discount_pct,
        gross_amount=gross,
        discount_amount=discount,
        taxable_amount=taxable,
        gst_rate=gst_pct,
        cess_rate=cess_pct,
        cgst_amount=tax.cgst,
        sgst_amount=tax.sgst,
        igst_amount=tax.igst,
        cess_amount=tax.cess,
        total_amount=taxable + tax.total_tax,
    )


@dataclass(frozen=True)
class InvoiceTotals:
    lines: Tuple[LineTax, ...]
    is_intrastate: bool
    subtotal: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_igst: Decimal
    total_cess: Decimal
    grand_total_unrounded: Decimal
    grand_total: Decimal
    round_off: Decimal

    @property
    def total_tax(self) -> Decimal:
        return self.total_cgst + self.total_sgst + self.total_igst + self.total_cess


def compute_invoice(
    lines: Iterable[Mapping],
    *,
    supplier_state,
    place_of_supply,
    round_off_unit=TWOPLACES,
) -> InvoiceTotals:
    """
    Compute every line, then a single document-level round-off.

    Line mappings need quantity, rate and gst_rate; discount_percent and
    cess_rate are optional. The intra/inter-state decision is made ONCE for
    the whole document.
    """
    intrastate = is_intrastate(supplier_state, place_of_supply)

    computed = []
    for index, raw in enumerate(lines or []):
        try:
            computed.append(
                compute_line(
                    raw.get("quantity"),
                    raw.get("rate"),
                    raw.get("gst_rate"),
                    intrastate=intrastate,
                    discount_percent=raw.get("discount_percent") or 0,
                    cess_rate=raw.get("cess_rate") or 0,
                )
            )
        except GSTError as exc:
            raise GSTError(f"Line {index + 1}: {exc}") from exc

    if not computed:
        raise GSTError("An invoice needs at least one line item")

    subtotal = sum((line.taxable_amount for line in computed), ZERO)
    cgst = sum((line.cgst_amount for line in computed), ZERO)
    sgst = sum((line.sgst_amount for line in computed), ZERO)
    igst = sum((line.igst_amount for line in computed), ZERO)
    cess = sum((line.cess_amount for line in computed), ZERO)

    unrounded = sum((line.total_amount for line in computed), ZERO)
    grand_total = round_to(unrounded, round_off_unit)

    return InvoiceTotals(
        lines=tuple(computed),
        is_intrastate=intrastate,
        subtotal=subtotal,
        total_cgst=cgst,
        total_sgst=sgst,
        total_igst=igst,
        total_cess=cess,
        grand_total_unrounded=unrounded,
        grand_total=grand_total,
        round_off=grand_total - unrounded,
    )
