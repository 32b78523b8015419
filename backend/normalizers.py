"""
Normalizers for noisy, human-entered values.

Legacy entries were typed by hand ("19,6 kg", "$ 4.900", "1/2 comprimido
cada 12hs"). These helpers recover structured values from them. They are
total: bad input gives None (or an empty/partial dict), never an exception.

Weight and price disagree on what a dot means:
- weight: a dot followed by more than two digits is a thousands separator,
  so "19.600" becomes 19600 and is then rejected by the 0-100 kg range.
- price: every dot is a thousands separator ("4.900" -> 4900).
"""

import math
import re
from typing import Any, Dict, Optional

_WEIGHT_UNITS = re.compile(r"kilogramos|kilos|kg", re.IGNORECASE)
# Character class: strips "$" and the letters a, r, s in any case.
_CURRENCY_CHARS = re.compile(r"[$ars]", re.IGNORECASE)
_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_EVERY_N_HOURS = re.compile(r"cada\s+(\d+)\s*(?:hs?|horas?|h)")
_TIMES_PER_DAY = (
    (("2 veces al día", "dos veces al día"), 12),
    (("3 veces al día", "tres veces al día"), 8),
    (("4 veces al día", "cuatro veces al día"), 6),
)

_FRACTION = re.compile(r"(\d+)/(\d+)")
_MILLIGRAMS = re.compile(r"(\d+(?:\.\d+)?)\s*mg")
_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")

WEIGHT_CONTEXT_WORDS = ("peso", "kg", "kilo")
PRICE_CONTEXT_WORDS = ("precio", "compra", "costo")


def _parse_float(text: str) -> Optional[float]:
    # Reads the leading number and ignores trailing text ("18 de mayo" -> 18).
    match = _LEADING_FLOAT.match(text.strip())
    if not match:
        return None
    try:
        value = float(match.group(0))
    except ValueError:
        return None
    return None if math.isnan(value) else value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_weight(value: Any) -> Optional[float]:
    """Return a plausible dog weight in kg, or None.

    >>> normalize_weight("18 kg")
    18.0
    >>> normalize_weight("19.600") is None
    True
    """

    if value is None or value == "":
        return None

    if _is_number(value):
        parsed = float(value)
        if math.isnan(parsed) or not 0 < parsed < 1000:
            return None
    else:
        cleaned = _WEIGHT_UNITS.sub("", str(value).strip().lower()).strip()

        if "." in cleaned:
            whole, _, fraction = cleaned.partition(".")
            if "." not in fraction and len(fraction) > 2:
                cleaned = whole + fraction

        parsed = _parse_float(cleaned.replace(",", ".", 1))
        if parsed is None:
            return None

    if parsed <= 0 or parsed > 100:
        return None
    return parsed


def normalize_price(value: Any) -> Optional[float]:
    """Return a price in ARS (0 allowed), or None."""

    if value is None or value == "":
        return None

    if _is_number(value):
        parsed = float(value)
        if math.isnan(parsed) or parsed < 0:
            return None
        return parsed

    cleaned = _CURRENCY_CHARS.sub("", str(value).strip()).strip()
    cleaned = cleaned.replace(".", "").replace(",", ".", 1)

    parsed = _parse_float(cleaned)
    if parsed is None or parsed < 0:
        return None
    return parsed


def normalize_medication_name(name: Optional[str]) -> str:
    if not name:
        return ""
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.split())


def parse_medication_frequency(text: Optional[str]) -> Optional[int]:
    """Extract a dosing interval in hours ("cada 12hs" -> 12, "3 veces al día" -> 8)."""

    if not text:
        return None

    lower = text.lower()

    match = _EVERY_N_HOURS.search(lower)
    if match:
        return int(match.group(1))

    for phrases, hours in _TIMES_PER_DAY:
        if any(phrase in lower for phrase in phrases):
            return hours

    return None


def parse_medication_dose(text: Optional[str]) -> Dict[str, Any]:
    """Best-effort dose breakdown.

    Returns any of `fraction`, `amount`, `amount_mg`, `unit` and `form`.
    Detections are independent: "1/2 comprimido de 80mg" sets both the
    fraction and `amount_mg`.
    """

    if not text:
        return {}

    lower = text.strip().lower()
    result: Dict[str, Any] = {}

    fraction = _FRACTION.search(lower)
    if fraction:
        result["fraction"] = fraction.group(0)
        numerator, denominator = int(fraction.group(1)), int(fraction.group(2))
        if denominator:
            result["amount"] = numerator / denominator

    milligrams = _MILLIGRAMS.search(lower)
    if milligrams:
        result["amount_mg"] = float(milligrams.group(1))

    if "amount" not in result and "amount_mg" not in result:
        number = _NUMBER.search(lower)
        if number:
            result["amount"] = float(number.group(1))

    if "comprimido" in lower:
        result["unit"] = "comprimidos"
        result["form"] = "comprimido"
    elif "ml" in lower:
        result["unit"] = "ml"
        result["form"] = "líquido"
    elif "mg" in lower:
        result["unit"] = "mg"

    return result


def disambiguate_weight_or_price(value: Any, context: str = "") -> Dict[str, Any]:
    """Decide whether `value` is a weight or a price.

    Context words win outright. Without them both readings are computed:
    big numbers (> 50) read as prices, 1-50 reads as kg, and anything else
    defaults to price (whose value may be None).
    """

    context_lower = (context or "").lower()

    if any(word in context_lower for word in WEIGHT_CONTEXT_WORDS):
        return {"type": "weight", "value": normalize_weight(value)}

    if any(word in context_lower for word in PRICE_CONTEXT_WORDS):
        return {"type": "price", "value": normalize_price(value)}

    as_weight = normalize_weight(value)
    as_price = normalize_price(value)

    if as_price and as_price > 50 and (not as_weight or as_weight < 50):
        return {"type": "price", "value": as_price}

    if as_weight and 1 <= as_weight <= 50:
        return {"type": "weight", "value": as_weight}

    return {"type": "price", "value": as_price}
