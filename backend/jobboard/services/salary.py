"""
Salary normalization.

Recruiters type salaries as free text ("₹50,000", "$120k - $150k", "12 LPA",
"Competitive"). The text is kept for display and a numeric amount is extracted
once, at write time, so listing filters can compare plain integers.
"""
import re
from dataclasses import dataclass
from typing import Any

_UNIT = r"(k|m|lpa|lakhs?)(?![A-Za-z])"
_NUMBER = r"\d[\d,]*(?:\.\d+)?"
_AMOUNT_RE = re.compile(rf"({_NUMBER})(?:\s*{_UNIT})?", re.IGNORECASE)
# Upper end of a range ("- $150k", "to 15 LPA"); its unit also applies to the lower end.
_RANGE_TAIL_RE = re.compile(rf"\s*(?:-|\u2013|to)\s*[^\d\s]{{0,3}}\s*{_NUMBER}\s*{_UNIT}", re.IGNORECASE)

_MULTIPLIERS = {
    "k": 1_000,
    "m": 1_000_000,
    "lpa": 100_000,
    "lakh": 100_000,
    "lakhs": 100_000,
}

_CURRENCY_SYMBOLS = {
    "₹": "INR",
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "¥": "JPY",
}
_CURRENCY_CODES = {"INR", "USD", "EUR", "GBP", "JPY", "CAD", "AUD", "SGD", "AED", "CHF"}
_CODE_RE = re.compile(r"(?<![A-Za-z])([A-Za-z]{3})(?![A-Za-z])")

MAX_SALARY_AMOUNT = 10**9


@dataclass(frozen=True)
class SalaryInfo:
    text: str | None
    amount: int | None
    currency: str | None


def parse_salary_amount(text: str | None) -> int | None:
    """
    Extract the first amount in ``text`` as an integer.

    Ranges resolve to their lower end. Returns None when no number is present.
    """
    if not text:
        return None
    m = _AMOUNT_RE.search(text)
    if not m:
        return None
    try:
        value = float(m.group(1).replace(",", ""))
    except ValueError:
        return None
    suffix = m.group(2)
    if suffix is None:
        tail = _RANGE_TAIL_RE.match(text, m.end())
        suffix = tail.group(1) if tail else ""
    suffix = suffix.lower()
    value *= _MULTIPLIERS.get(suffix, 1)
    amount = int(round(value))
    if amount < 0 or amount > MAX_SALARY_AMOUNT:
        return None
    return amount


def detect_currency(text: str | None) -> str | None:
    if not text:
        return None
    for symbol, code in _CURRENCY_SYMBOLS.items():
        if symbol in text:
            return code
    if "lpa" in text.lower() or "lakh" in text.lower():
        return "INR"
    for m in _CODE_RE.finditer(text):
        code = m.group(1).upper()
        if code in _CURRENCY_CODES:
            return code
    return None


def normalize_salary(salary: Any, *, amount: Any = None, currency: str | None = None) -> SalaryInfo:
    """
    Build the stored salary triple from request input.

    ``salary`` may be text or a bare number. An explicit ``amount`` wins over the
    amount parsed from the text; an explicit ``currency`` wins over the detected one.
    """
    if salary is None or salary == "":
        text = None
    elif isinstance(salary, bool):
        raise ValueError("Salary must be text or a number")
    elif isinstance(salary, (int, float)):
        text = str(int(salary)) if float(salary).is_integer() else str(salary)
    elif isinstance(salary, str):
        text = salary.strip() or None
    else:
        raise ValueError("Salary must be text or a number")

    if text is not None and len(text) > 100:
        raise ValueError("Salary must not exceed 100 characters")

    resolved_amount: int | None
    if amount is not None and amount != "":
        try:
            resolved_amount = int(amount)
        except (TypeError, ValueError):
            raise ValueError("Salary amount must be a whole number") from None
        if resolved_amount < 0 or resolved_amount > MAX_SALARY_AMOUNT:
            raise ValueError("Salary amount is out of range")
    else:
        resolved_amount = parse_salary_amount(text)

    resolved_currency = (currency or "").strip().upper() or detect_currency(text)
    if resolved_currency and len(resolved_currency) > 5:
        raise ValueError("Salary currency must not exceed 5 characters")

    return SalaryInfo(text=text, amount=resolved_amount, currency=resolved_currency)
