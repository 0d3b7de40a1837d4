"""Single-precision arithmetic used by the evaluator. Values are numpy float32 scalars; sums and products of operand lists
are accumulated in double precision and rounded to float32 once, while the binary base operations (base - rest,
base / rest) are carried out in float32.

Source: https://numpy.org/doc/stable/user/basics.types.html
"""

import numpy as np


def fold_sum(values):
    """Sum of values, 0 for no values."""
    total = 0.0
    for value in values:
        total += float(value)
    with np.errstate(over="ignore"):  # out of float32 range gives inf
        return np.float32(total)


def fold_product(values):
    """Product of values, 1 for no values."""
    total = 1.0
    for value in values:
        total *= float(value)
    with np.errstate(over="ignore"):
        return np.float32(total)


def subtract(base, rest):
    """base minus the sum of rest."""
    with np.errstate(over="ignore"):
        return np.float32(base) - fold_sum(rest)


def divide(base, divisor):
    """base divided by divisor. Assumes divisor is not zero: callers check that first."""
    with np.errstate(over="ignore"):
        return np.float32(base) / np.float32(divisor)


def power(base, exponents):
    """Left-associative exponentiation: ((base ^ e0) ^ e1) ^ ..."""
    result = np.float32(base)
    with np.errstate(all="ignore"):  # negative base with fractional exponent gives nan, overflow gives inf
        for exponent in exponents:
            result = np.float32(np.power(np.float64(result), np.float64(exponent)))
    return result


def integer_range(start, end):
    """Inclusive whole numbers from start to end (both truncated), as float32."""
    return [np.float32(num) for num in range(int(start), int(end) + 1)]


def number_text(value):
    """Renders value: whole numbers without a fractional part, others as the shortest text that reads back as the same
    float32.
    """
    value = np.float32(value)
    if np.isfinite(value) and float(value).is_integer() and abs(value) < 1e16:
        return str(int(value))
    return str(value)
