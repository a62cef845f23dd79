"""Utility helpers for calculator modules."""

from __future__ import annotations

import math
from collections.abc import Sequence
from decimal import Decimal
from numbers import Real
from typing import Protocol, TypeVar

from nominamx.config.schema import PayFrequency


class InvalidInputError(ValueError):
    """Raised when a calculator receives a negative or non-finite amount."""


class BracketLookupError(LookupError):
    """Raised when no bracket can be selected for an amount."""


class _Bracket(Protocol):
    @property
    def lower_limit(self) -> float: ...


BracketT = TypeVar("BracketT", bound=_Bracket)


def ensure_amount(value: float | Decimal, label: str = "amount") -> float:
    """Return ``value`` as a float, rejecting negative or non-finite input.

    Accepts any real number, including ``decimal.Decimal``; booleans and
    strings are rejected.
    """

    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        raise InvalidInputError(f"{label} must be a number")
    amount = float(value)
    if not math.isfinite(amount):
        raise InvalidInputError(f"{label} must be a finite number")
    if amount < 0:
        raise InvalidInputError(f"{label} cannot be negative")
    return amount


def ensure_frequency(frequency: PayFrequency | str) -> PayFrequency:
    try:
        return PayFrequency(frequency)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in PayFrequency)
        raise InvalidInputError(
            f"Unknown pay frequency '{frequency}' (expected one of: {allowed})"
        ) from exc


def select_bracket(brackets: Sequence[BracketT], amount: float) -> BracketT:
    """Return the single bracket of ``brackets`` that contains ``amount``.

    Brackets are scanned in ascending order. Lower bounds are inclusive and
    upper bounds exclusive, with the final bracket unbounded. Amounts below the
    first lower limit resolve to the first bracket.
    """

    if not brackets:
        raise BracketLookupError("Bracket table is empty")

    selected = brackets[0]
    for bracket in brackets[1:]:
        if amount < bracket.lower_limit:
            break
        selected = bracket
    return selected


def round_currency(value: float) -> float:
    """Round monetary amounts to two decimals."""

    return round(value, 2)


def round_rate(value: float) -> float:
    """Round rate values to four decimals."""

    return round(value, 4)


__all__ = [
    "BracketLookupError",
    "InvalidInputError",
    "ensure_amount",
    "ensure_frequency",
    "round_currency",
    "round_rate",
    "select_bracket",
]
