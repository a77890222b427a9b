"""Identity resolution: which objects get pooled, and under which ref."""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

DEFAULT_TYPE_KEY = "type"


def _format_float(value: float) -> str:
    """Render a float the way JavaScript's Number#toString does.

    Integral values below 1e21 print without a fraction, and exponent form
    is used only below 1e-6 or from 1e21 up ("1e+21", "1.5e-7").
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    # repr() gives the shortest round-tripping digits.
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(map(str, digit_tuple))
    k = len(digits)
    n = exponent + k
    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        body = "0." + "0" * -n + digits
    else:
        mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
        body = f"{mantissa}e{'+' if n - 1 >= 0 else '-'}{abs(n - 1)}"
    return sign + body


def _format_id(value: Any) -> str | None:
    # bool is an int subclass but never a valid id.
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        # So 1 and 1.0 name the same entity.
        return _format_float(value)
    return None


def identify(obj: Mapping[str, Any], type_key: str = DEFAULT_TYPE_KEY) -> str | None:
    """Return "<type>:<id>" for an identifiable object, else None.

    An object is identifiable when its "id" is a string or number and its
    type_key field is a string. Anything else is inlined, not pooled.

        >>> identify({"id": 1, "type": "user"})
        'user:1'
        >>> identify({"id": 1}) is None
        True
    """
    ident = _format_id(obj.get("id"))
    kind = obj.get(type_key)
    if ident is None or not isinstance(kind, str):
        return None
    return f"{kind}:{ident}"
