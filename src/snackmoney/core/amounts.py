"""
Parsing of human-facing USDC amount notations.

Three notations are understood, tried in this order:

* cents: ``50¢`` -> ``0.50``
* dollars: ``$0.5`` -> ``0.5`` (``$1`` is rejected, see
  :class:`~snackmoney.core.errors.ShellExpansionHazardError`)
* plain decimal: ``0.5``
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Union

from .errors import InvalidAmountError, ShellExpansionHazardError

__all__ = ["CENTS_SIGN", "AmountLike", "parse_amount"]

CENTS_SIGN = "¢"

AmountLike = Union[str, int, float, Decimal]

_DECIMAL_RE = re.compile(r"^[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)$")
_INTEGER_RE = re.compile(r"^[0-9]+$")


def _to_decimal(text: str, raw: AmountLike) -> Decimal:
    if not _DECIMAL_RE.fullmatch(text):
        raise InvalidAmountError(raw)
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise InvalidAmountError(raw) from exc


def _checked(value: Decimal, raw: AmountLike) -> Decimal:
    if not value.is_finite():
        raise InvalidAmountError(raw, "not a finite number")
    if value < 0:
        raise InvalidAmountError(raw, "must not be negative")
    # fractional amounts are sent as JSON floats and must survive the trip
    if value != value.to_integral_value() and Decimal(repr(float(value))) != value:
        raise InvalidAmountError(raw, "more precision than a JSON number can carry")
    return value


def parse_amount(value: AmountLike) -> Decimal:
    """
    Convert ``value`` into a USDC quantity.

    Numbers that were already parsed (for example amounts read from a JSON
    document) are returned as a :class:`~decimal.Decimal` of the same value.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(value)
    if isinstance(value, Decimal):
        return _checked(value, value)
    if isinstance(value, int):
        return _checked(Decimal(value), value)
    if isinstance(value, float):
        # repr() gives the shortest round-tripping form, so 0.1 stays 0.1
        try:
            return _checked(Decimal(repr(value)), value)
        except InvalidOperation as exc:
            raise InvalidAmountError(value) from exc
    if not isinstance(value, str):
        raise InvalidAmountError(value)

    text = value.strip()

    if text.endswith(CENTS_SIGN):
        cents = _to_decimal(text[: -len(CENTS_SIGN)].strip(), value)
        return _checked(cents.scaleb(-2), value)

    if text.startswith("$"):
        dollar_part = text[1:]
        if _INTEGER_RE.fullmatch(dollar_part):
            raise ShellExpansionHazardError(value, int(dollar_part))
        return _checked(_to_decimal(dollar_part, value), value)

    return _checked(_to_decimal(text, value), value)
