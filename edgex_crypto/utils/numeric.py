"""
Numeric helpers for signing payloads.

The signed string has to match what the exchange reconstructs on its side,
which follows ECMAScript number stringification rather than Python's repr.
"""

import math
from decimal import Decimal


def js_number_to_string(value: float) -> str:
    """
    Render a float the way ECMAScript ``Number.prototype.toString()`` does.

    Args:
        value: Float to render

    Returns:
        Shortest round-trip representation in JS notation

    Examples:
        >>> js_number_to_string(1.0)
        '1'
        >>> js_number_to_string(0.1)
        '0.1'
        >>> js_number_to_string(1e-7)
        '1e-7'
        >>> js_number_to_string(1e21)
        '1e+21'
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    # repr() gives the shortest round-trip digits; Decimal splits them out
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = k + exponent

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        body = "0." + "0" * (-n) + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
        body = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"

    return sign + body
