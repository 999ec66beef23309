import html
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

import bleach

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# +, -, space and digits; 7 to 20 characters
PHONE_RE = re.compile(r"^[+]?[\d\s-]{7,20}$")


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and bool(EMAIL_RE.match(value))


def is_valid_phone_number(value: Optional[str]) -> bool:
    if not value:
        return True
    return bool(PHONE_RE.match(value))


def to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not d.is_finite():
        return None
    return d


# dishes.price is NUMERIC(10,2); order_items.quantity a 32-bit INTEGER
MAX_PRICE = Decimal("99999999.99")
MAX_QUANTITY = 2**31 - 1


def is_valid_price(value: Any) -> bool:
    d = to_decimal(value)
    return d is not None and 0 <= d <= MAX_PRICE


def is_valid_quantity(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        if not value.is_integer():
            return False
        value = int(value)
    elif isinstance(value, str):
        if not value.strip().isdecimal():
            return False
        value = int(value)
    if not isinstance(value, int):
        return False
    return 0 < value <= MAX_QUANTITY


# Business rule: amounts stored rounded to 2 decimals, half up

def round_amount(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def sanitize_text(value: Optional[str]) -> Optional[str]:
    """Clean a user-supplied free-text field before it is stored.

    - Removes NUL bytes
    - Strips HTML tags using bleach.clean(..., strip=True)
    - Undoes bleach's entity escaping so "Salt & Pepper" is stored as typed
    - Trims whitespace
    """
    if value is None:
        return None
    val = value.replace("\x00", "")
    val = bleach.clean(val, tags=set(), strip=True)
    return html.unescape(val).strip()
