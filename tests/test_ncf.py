from __future__ import annotations

import pytest

from fiscaldo.ncf import (
    NCF_PREFIXES,
    ReceiptNumber,
    document_type_of,
    generate_ncf,
    parse_ncf,
    validate_ncf,
)


def test_generate_ncf_pads_sequence():
    assert generate_ncf("credit_fiscal", 1) == "B0100000001"
    assert generate_ncf("government", 12345678) == "B1512345678"


def test_generate_ncf_unknown_type_falls_back_to_consumer():
    assert generate_ncf("unknown", 7) == "B0200000007"


@pytest.mark.parametrize("document_type", sorted(NCF_PREFIXES))
def test_generated_numbers_validate(document_type):
    value = generate_ncf(document_type, 42)
    assert validate_ncf(value)
    assert document_type_of(value) == document_type


def test_validate_ncf_accepts_empty():
    assert validate_ncf("")
    assert validate_ncf(None)


@pytest.mark.parametrize(
    "value",
    [
        "B0500000001",
        "B010000001",
        "B01000000011",
        "A0100000001",
        "b0100000001",
        "B01ABCDEFGH",
        "Z9912345678",
        "B0100000001\n",
    ],
)
def test_validate_ncf_rejects_malformed(value):
    assert not validate_ncf(value)


def test_parse_ncf():
    parsed = parse_ncf("B1400000123")
    assert parsed == ReceiptNumber("B", "14", 123)
    assert parsed.prefix == "B14"
    assert str(parsed) == "B1400000123"


def test_parse_ncf_invalid_returns_none():
    assert parse_ncf("B9900000001") is None
    assert parse_ncf("") is None


def test_trailing_newline_is_not_an_ncf():
    assert document_type_of("B0100000001\n") is None
    assert parse_ncf("B0100000001\n") is None
