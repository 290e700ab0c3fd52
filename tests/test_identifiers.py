from __future__ import annotations

import pytest

from fiscaldo.identifiers import (
    cedula_check_digit,
    format_cedula,
    format_identifier,
    format_rnc,
    identifier_kind,
    normalize_identifier,
    rnc_check_digit,
    validate_cedula,
    validate_identifier,
    validate_rnc,
)

VALID_RNCS = ["131000002", "401000008", "401506254"]
VALID_CEDULAS = ["00113918205", "40200000004"]


@pytest.mark.parametrize("value", VALID_RNCS)
def test_validate_rnc_accepts_known_numbers(value):
    assert validate_rnc(value)
    assert validate_identifier(value)


def test_validate_rnc_ignores_formatting():
    assert validate_rnc("131-00000-2")
    assert validate_rnc(" 401 50625 4 ")


@pytest.mark.parametrize("value", ["", None, "13100000", "1310000021", "ABCDEFGHI"])
def test_validate_rnc_rejects_wrong_length(value):
    assert not validate_rnc(value)


def test_rnc_check_digit_mutation_is_rejected():
    for valid in VALID_RNCS:
        correct = int(valid[-1])
        for digit in "0123456789":
            if int(digit) == correct:
                continue
            assert not validate_rnc(valid[:-1] + digit)


def test_rnc_body_mutation_matches_recomputed_digit():
    # Some remainders share a check digit, so a body change is only caught
    # when the recomputed digit differs from the stored one.
    valid = VALID_RNCS[2]
    for position in range(8):
        for digit in "0123456789":
            mutated = valid[:position] + digit + valid[position + 1 :]
            expected = rnc_check_digit(mutated[:8]) == int(mutated[8])
            assert validate_rnc(mutated) is expected


def test_rnc_check_digit_rejects_bad_body():
    with pytest.raises(ValueError):
        rnc_check_digit("1234")
    with pytest.raises(ValueError):
        rnc_check_digit("1234567A")


@pytest.mark.parametrize("value", VALID_CEDULAS)
def test_validate_cedula_accepts_known_numbers(value):
    assert validate_cedula(value)
    assert validate_identifier(value)


def test_cedula_single_digit_mutations_are_rejected():
    for valid in VALID_CEDULAS:
        for position in range(11):
            for digit in "0123456789":
                if digit == valid[position]:
                    continue
                mutated = valid[:position] + digit + valid[position + 1 :]
                assert not validate_cedula(mutated), mutated


def test_cedula_check_digit_values():
    assert cedula_check_digit("0011391820") == 5
    assert cedula_check_digit("4020000000") == 4
    assert cedula_check_digit("0000000000") == 0


def test_identifier_kind_by_length():
    assert identifier_kind("131000002") == "rnc"
    assert identifier_kind("001-1391820-5") == "cedula"
    assert identifier_kind("1234") is None
    assert not validate_identifier("1234")


def test_format_rnc_and_cedula():
    assert format_rnc("131000002") == "131-00000-2"
    assert format_cedula("00113918205") == "001-1391820-5"
    assert format_identifier("131000002") == "131-00000-2"
    assert format_identifier("00113918205") == "001-1391820-5"


def test_format_leaves_wrong_length_untouched():
    assert format_rnc("12345") == "12345"
    assert format_cedula("12345") == "12345"
    assert format_rnc("") == ""
    assert format_cedula(None) == ""


def test_normalize_identifier_pads_to_eleven_digits():
    assert normalize_identifier("131-00000-2") == "00131000002"
    assert normalize_identifier("00113918205") == "00113918205"
