"""Validation and formatting of Dominican taxpayer identifiers.

Two identifier families are handled:

* **RNC** (Registro Nacional del Contribuyente) – 9 digits, the last one a
  modulus 11 check digit, displayed as ``XXX-XXXXX-X``.
* **Cédula** (cédula de identidad y electoral) – 11 digits, the last one a
  Luhn style check digit, displayed as ``XXX-XXXXXXX-X``.

The ``validate_*`` and ``format_*`` helpers never raise: invalid input gives
``False`` or is returned untouched, so they are safe to call on raw form
input.
"""

from __future__ import annotations

import re

RNC_LENGTH = 9
CEDULA_LENGTH = 11
REGISTRY_LENGTH = 11

RNC_WEIGHTS = (7, 9, 8, 6, 5, 4, 3, 2)
CEDULA_WEIGHTS = (1, 2, 1, 2, 1, 2, 1, 2, 1, 2)

_NON_DIGITS = re.compile(r"\D")


def digits_only(value: str | None) -> str:
    """Return ``value`` stripped of every non digit character."""

    if not value:
        return ""
    return _NON_DIGITS.sub("", str(value))


def rnc_check_digit(body: str) -> int:
    """Compute the RNC check digit for the first eight digits in ``body``."""

    if len(body) != len(RNC_WEIGHTS) or not body.isdigit():
        raise ValueError(f"RNC body must have {len(RNC_WEIGHTS)} digits: {body!r}")

    total = sum(int(digit) * weight for digit, weight in zip(body, RNC_WEIGHTS))
    check = 11 - (total % 11)
    if check >= 10:
        check -= 9
    return check


def cedula_check_digit(body: str) -> int:
    """Compute the cédula check digit for the first ten digits in ``body``."""

    if len(body) != len(CEDULA_WEIGHTS) or not body.isdigit():
        raise ValueError(
            f"Cedula body must have {len(CEDULA_WEIGHTS)} digits: {body!r}"
        )

    total = 0
    for digit, weight in zip(body, CEDULA_WEIGHTS):
        product = int(digit) * weight
        if product >= 10:
            product = product // 10 + product % 10
        total += product

    remainder = total % 10
    return 0 if remainder == 0 else 10 - remainder


def validate_rnc(value: str | None) -> bool:
    """Return ``True`` when ``value`` is a well formed RNC."""

    clean = digits_only(value)
    if len(clean) != RNC_LENGTH:
        return False
    return int(clean[-1]) == rnc_check_digit(clean[:-1])


def validate_cedula(value: str | None) -> bool:
    """Return ``True`` when ``value`` is a well formed cédula."""

    clean = digits_only(value)
    if len(clean) != CEDULA_LENGTH:
        return False
    return int(clean[-1]) == cedula_check_digit(clean[:-1])


def identifier_kind(value: str | None) -> str | None:
    """Classify ``value`` by digit count: ``"rnc"``, ``"cedula"`` or ``None``."""

    length = len(digits_only(value))
    if length == RNC_LENGTH:
        return "rnc"
    if length == CEDULA_LENGTH:
        return "cedula"
    return None


def validate_identifier(value: str | None) -> bool:
    """Validate ``value`` as RNC or cédula depending on its length."""

    kind = identifier_kind(value)
    if kind == "rnc":
        return validate_rnc(value)
    if kind == "cedula":
        return validate_cedula(value)
    return False


def format_rnc(value: str | None) -> str:
    if not value:
        return ""
    clean = digits_only(value)
    if len(clean) != RNC_LENGTH:
        return value
    return f"{clean[:3]}-{clean[3:8]}-{clean[8:]}"


def format_cedula(value: str | None) -> str:
    if not value:
        return ""
    clean = digits_only(value)
    if len(clean) != CEDULA_LENGTH:
        return value
    return f"{clean[:3]}-{clean[3:10]}-{clean[10:]}"


def format_identifier(value: str | None) -> str:
    """Format ``value`` with the dash layout matching its length."""

    if identifier_kind(value) == "rnc":
        return format_rnc(value)
    return format_cedula(value)


def normalize_identifier(value: str | None) -> str:
    """Return the 11 digit, zero padded form used as registry key."""

    return digits_only(value).zfill(REGISTRY_LENGTH)


__all__ = [
    "CEDULA_LENGTH",
    "CEDULA_WEIGHTS",
    "REGISTRY_LENGTH",
    "RNC_LENGTH",
    "RNC_WEIGHTS",
    "cedula_check_digit",
    "digits_only",
    "format_cedula",
    "format_identifier",
    "format_rnc",
    "identifier_kind",
    "normalize_identifier",
    "rnc_check_digit",
    "validate_cedula",
    "validate_identifier",
    "validate_rnc",
]
