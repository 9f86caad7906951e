"""
Coercion of untrusted loan data into LoanOffer values.

Form fields and language-model output arrive as loosely typed JSON. Every numeric
field is coerced here with a per-field default so the optimizer only ever sees valid
numbers.
"""
import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from optimizer import DEFAULT_TERM_YEARS
from schemas import LoanOffer

logger = logging.getLogger(__name__)

# Accepted spellings per field: API snake_case, form camelCase, parser shorthand
FIELD_ALIASES = {
    "interest_rate": ("interest_rate", "interestRate", "interestRatePercent", "rate"),
    "origination_fee_percent": ("origination_fee_percent", "originationFeePercent", "feePct", "fee"),
    "borrowing_cap": ("borrowing_cap", "borrowingCap", "cap"),
    "term_years": ("term_years", "termYears", "repaymentTermYears", "term"),
    "in_school_months": ("in_school_months", "inSchoolMonths", "accrualMonths"),
    "subsidized_in_school": ("subsidized_in_school", "subsidizedInSchool", "subsidized"),
}


def to_number(value: Any) -> Optional[float]:
    """Parse a number from JSON or form text; None when missing or not finite."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").replace("%", "").strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _pick(raw: Dict[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        if key in raw:
            return raw[key]
    return None


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on", "y")
    return bool(value)


def coerce_offer(raw: Dict[str, Any], index: int = 1) -> LoanOffer:
    rate = to_number(_pick(raw, "interest_rate"))
    fee = to_number(_pick(raw, "origination_fee_percent"))
    cap = to_number(_pick(raw, "borrowing_cap"))
    term = to_number(_pick(raw, "term_years"))
    months = to_number(_pick(raw, "in_school_months"))
    name = str(raw.get("name") or "").strip()

    return LoanOffer(
        name=name or f"Loan {index}",
        interest_rate=max(0.0, rate or 0.0),
        origination_fee_percent=max(0.0, fee or 0.0),
        borrowing_cap=cap,
        term_years=term if term and term > 0 else DEFAULT_TERM_YEARS,
        in_school_months=max(0.0, months or 0.0),
        subsidized_in_school=_to_bool(_pick(raw, "subsidized_in_school")),
    )


def coerce_offers(raw_loans: Iterable[Any]) -> List[LoanOffer]:
    offers = []
    for i, raw in enumerate(raw_loans, start=1):
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring loan entry {i}: expected an object, got {type(raw).__name__}")
            continue
        offers.append(coerce_offer(raw, index=len(offers) + 1))
    return offers


def coerce_target(value: Any) -> Optional[float]:
    """Positive target amount, or None so the caller can re-prompt."""
    target = to_number(value)
    if target is None or target <= 0:
        return None
    return target
