"""
Order-key generation for fractional indexing.

An item's position is encoded as a float ``order`` key. Inserting between two
neighbours only needs a key strictly between theirs, so no other item is
rewritten. Keys are kept at a fixed decimal ``precision``; once two
neighbours are one unit apart at that precision there is no key left between
them (Overflow) and the caller must renumber the whole collection.

Manifesto:
    - **Pure functions:** No collection state, trivially testable
    - **Decimal-exact:** Rounding and nudging happen on decimal strings, not
      binary floats, so ``midpoint(1.0, 2.0)`` is exactly ``1.6``
    - **Even bias:** An even last digit leaves room for one more bisection at
      the same precision before overflow
    - **Overflow is a value:** ``compute_order`` returns ``None``; raising is
      reserved for caller errors

Architecture:
    ::

        compute_order(orders, position)
        ┌──────────────────────────────────────────────────────────┐
        │ empty collection     → step                              │
        │ position == 0        → midpoint(0, orders[0])            │
        │ position == len      → next_step_value(orders[-1], step) │
        │ otherwise            → midpoint(orders[p-1], orders[p])  │
        │                                                          │
        │ result ≤ lower or ≥ upper → None (Overflow)              │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> midpoint(1.0, 2.0, 4)
    1.6
    >>> midpoint(1.0, 1.2, 4)
    1.1
    >>> next_step_value(1500.0, 1000.0)
    2000.0
    >>> compute_order([1.0, 1.01], 1, step=10, precision=2) is None
    True

Tags:
    fractional-indexing, order-key, midpoint, precision, dragsort

Doc-Types:
    - API Reference
    - Algorithm Notes
"""

from __future__ import annotations

import math
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Sequence

# Lower bound used when inserting in front of the first item.
HEAD_LOWER_BOUND = 0.0


def _to_decimal(value: float) -> Decimal:
    if not math.isfinite(value):
        raise ValueError(f"order keys must be finite, got {value!r}")
    # repr() is the shortest string that round-trips, so 1.1 stays 1.1
    return Decimal(repr(float(value)))


def _fraction_digits(value: Decimal) -> str:
    """Fractional digits of ``value`` with trailing zeros dropped."""
    text = format(value, "f")
    if "." not in text:
        return ""
    return text.split(".", 1)[1].rstrip("0")


def _inside(value: Decimal, a: float, b: float) -> bool:
    candidate = float(value)
    return a < candidate < b


def midpoint(a: float, b: float, precision: int = 4) -> float:
    """
    Return a value between ``a`` and ``b`` kept to ``precision`` decimals.

    The midpoint is rounded half-up to ``precision`` digits. If its last
    retained digit is odd it is nudged up by one unit to make it even, but
    only when the nudged value still lies strictly inside ``(a, b)``. When
    rounding dropped trailing zeros (``1.5`` at precision 4) the nudge applies
    at the shorter length (``1.5`` → ``1.6``).

    The result is not guaranteed to be strictly inside ``(a, b)``; callers
    detect Overflow by comparing against their bounds.

    Args:
        a: One boundary (swapped with ``b`` if larger)
        b: Other boundary
        precision: Decimal digits to keep, >= 0

    Examples:
        >>> midpoint(2.9999, 3.0, 5)
        2.99996
        >>> midpoint(1.9999, 2.0001)
        2.0
        >>> midpoint(1.0, 3.0, 0)
        2.0
    """
    if precision < 0:
        raise ValueError(f"precision must be >= 0, got {precision}")
    if a > b:
        a, b = b, a

    quantum = Decimal(1).scaleb(-precision)
    middle = ((_to_decimal(a) + _to_decimal(b)) / 2).quantize(quantum, rounding=ROUND_HALF_UP)

    digits = _fraction_digits(middle)
    if precision == 0 or not digits:
        return float(middle)

    last_digit = int(digits[-1])
    if last_digit % 2 == 0:
        return float(middle)

    # Nudge at the length actually shown, which is shorter than precision
    # when rounding produced trailing zeros.
    unit = Decimal(1).scaleb(-min(len(digits), precision))
    adjusted = middle + unit
    if _inside(adjusted, a, b):
        return float(adjusted)
    return float(middle)


def next_step_value(last: float, step: float) -> float:
    """
    Smallest multiple of ``step`` strictly greater than ``last``.

    Examples:
        >>> next_step_value(10.0, 10.0)
        20.0
        >>> next_step_value(1.02, 10.0)
        10.0
        >>> next_step_value(0.3, 0.1)
        0.4
    """
    if not step > 0:
        raise ValueError(f"step must be > 0, got {step!r}")
    step_dec = _to_decimal(step)
    multiples = (_to_decimal(last) / step_dec).to_integral_value(rounding=ROUND_FLOOR)
    return float((multiples + 1) * step_dec)


def is_overflow(key: float, lower: float, upper: float | None = None) -> bool:
    """True if ``key`` is not strictly inside ``(lower, upper)``."""
    if key <= lower:
        return True
    return upper is not None and key >= upper


def compute_order(
    orders: Sequence[float],
    position: int,
    step: float,
    precision: int,
) -> float | None:
    """
    Compute the key for an item placed at ``position`` among ``orders``.

    ``orders`` are the keys of the collection *without* the item being
    placed, in storage order. Returns ``None`` on Overflow, meaning no key at
    ``precision`` fits between the neighbours and the collection must be
    renumbered.

    Args:
        orders: Existing keys, strictly increasing
        position: Target slot in ``[0, len(orders)]``
        step: Spacing for the tail case and the empty collection
        precision: Decimal digits kept in generated keys
    """
    if not 0 <= position <= len(orders):
        raise IndexError(f"position {position} outside [0, {len(orders)}]")

    if not orders:
        return float(step)

    if position == len(orders):
        last = orders[-1]
        key = next_step_value(last, step)
        return None if is_overflow(key, last) else key

    upper = orders[position]
    lower = HEAD_LOWER_BOUND if position == 0 else orders[position - 1]
    key = midpoint(lower, upper, precision)
    return None if is_overflow(key, lower, upper) else key


__all__ = [
    "HEAD_LOWER_BOUND",
    "midpoint",
    "next_step_value",
    "is_overflow",
    "compute_order",
]
