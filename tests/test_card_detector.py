from __future__ import annotations

import random
import re

import pytest

from pan_audit.card_detector import (
    CARD_BRAND_RULES,
    UNKNOWN_BRAND,
    CardBrandRule,
    CardMatch,
    check_rule_order,
    extract_candidates,
    identify_card_brand,
    luhn_checksum,
    scan_line,
    scan_text,
    validate_candidate,
)

VISA = "4532015112830366"


# Luhn

def test_luhn_accepts_known_valid_pan():
    assert luhn_checksum(VISA)


def test_luhn_rejects_wrong_check_digit():
    assert not luhn_checksum("4532015112830367")


@pytest.mark.parametrize("length", [1, 13, 16, 19, 25])
def test_luhn_rejects_all_zero_strings(length):
    assert not luhn_checksum("0" * length)


@pytest.mark.parametrize("value", ["4532-0151-1283-0366", "4532 0151 1283 0366", "45320151128303a6", "４５３２"])
def test_luhn_rejects_non_digit_characters(value):
    assert not luhn_checksum(value)


def test_luhn_rejects_empty_string():
    assert not luhn_checksum("")


# Brand classification

@pytest.mark.parametrize(
    "pan,brand",
    [
        (VISA, "Visa"),
        ("4222222222222", "Visa"),
        ("4000000000000000006", "Visa"),
        ("5555555555554444", "Mastercard"),
        ("2221000000000009", "Mastercard"),
        ("378282246310005", "American Express"),
        ("6011111111111117", "Discover"),
        ("3530111333300000", "JCB"),
        ("30569309025904", "Diners Club"),
        ("6200000000000005", "UnionPay"),
        ("1000000000000008", UNKNOWN_BRAND),
    ],
)
def test_identify_card_brand(pan, brand):
    assert luhn_checksum(pan)
    assert identify_card_brand(pan) == brand


def test_sixteen_digit_four_prefix_is_visa_not_unknown():
    assert identify_card_brand("4" + "0" * 15) == "Visa"


def test_length_outside_brand_lengths_falls_through_to_unknown():
    # Visa only accepts 13, 16 and 19 digits
    assert identify_card_brand("4" * 15) == UNKNOWN_BRAND


def test_classification_is_independent_of_call_order():
    pans = [VISA, "378282246310005", "6011111111111117", "1000000000000008", "3530111333300000"]
    expected = {pan: identify_card_brand(pan) for pan in pans}
    rng = random.Random(7)
    for _ in range(20):
        rng.shuffle(pans)
        assert {pan: identify_card_brand(pan) for pan in pans} == expected


def test_identify_card_brand_strips_separators():
    assert identify_card_brand("4532 0151-1283 0366") == "Visa"


def test_identify_card_brand_returns_none_outside_any_rule():
    assert identify_card_brand("123456789012") is None
    assert identify_card_brand("4" * 20) is None


def test_catch_all_rule_is_last():
    assert CARD_BRAND_RULES[-1].name == UNKNOWN_BRAND
    assert [r.name for r in CARD_BRAND_RULES].count(UNKNOWN_BRAND) == 1
    check_rule_order()


def test_check_rule_order_rejects_shadowing_catch_all():
    reordered = (CARD_BRAND_RULES[-1],) + CARD_BRAND_RULES[:-1]
    with pytest.raises(RuntimeError):
        check_rule_order(reordered)


def test_brand_rule_requires_prefix_and_length():
    rule = CardBrandRule("Test", re.compile(r"^9\d+"), frozenset({16}))
    assert rule.matches("9" * 16)
    assert not rule.matches("9" * 15)
    assert not rule.matches("8" * 16)


# Candidate extraction

def test_extract_plain_digits():
    assert list(extract_candidates(f"card={VISA};")) == [VISA]


def test_extract_strips_space_and_dash_separators():
    line = "a 4532 0151 1283 0366 b 4532-0151-1283-0366 c"
    assert list(extract_candidates(line)) == [VISA, VISA]


def test_extract_finds_every_candidate_left_to_right():
    line = f"{VISA},4111111111111111 and 378282246310005"
    assert list(extract_candidates(line)) == [VISA, "4111111111111111", "378282246310005"]


def test_extract_ignores_runs_embedded_in_longer_digit_runs():
    assert list(extract_candidates("id 12345678901234567890123 end")) == []


def test_extract_ignores_short_numbers():
    assert list(extract_candidates("call 555-0100 or 12345")) == []


def test_extract_is_lazy():
    gen = extract_candidates(VISA)
    assert next(gen) == VISA
    with pytest.raises(StopIteration):
        next(gen)


# Validation pipeline

def test_validate_candidate_builds_match():
    match = validate_candidate(VISA, "a.txt", 5, f"pan {VISA}")
    assert match == CardMatch(
        brand="Visa",
        full_pan=VISA,
        bin="453201",
        last_four="0366",
        length=16,
        file_path="a.txt",
        line_number=5,
        raw_line_content=f"pan {VISA}",
    )


def test_validate_candidate_rejects_bad_length_and_checksum():
    assert validate_candidate("4" * 12, "a", 1, "") is None
    assert validate_candidate("4000000000000000000006", "a", 1, "") is None
    assert validate_candidate("4532015112830367", "a", 1, "") is None


def test_scan_line_keeps_raw_line_and_invariants():
    line = "  Visa: 4532-0151-1283-0366 exp 12/29"
    matches = list(scan_line(line, "data.csv", 3))
    assert len(matches) == 1
    match = matches[0]
    assert match.raw_line_content == line
    assert match.bin == match.full_pan[:6]
    assert match.last_four == match.full_pan[-4:]
    assert 13 <= match.length <= 19
    assert luhn_checksum(match.full_pan)


def test_scan_text_numbers_lines_from_one():
    text = "nothing here\n\nVisa 4111111111111111\n"
    matches = scan_text(text, "t.txt")
    assert [(m.line_number, m.brand) for m in matches] == [(3, "Visa")]


def test_card_match_dict_round_trip_keeps_every_field():
    match = validate_candidate(VISA, "a.txt", 1, VISA)
    data = match.to_dict()
    assert set(data) == {
        "brand", "full_pan", "bin", "last_four", "length",
        "file_path", "line_number", "raw_line_content",
    }
    assert CardMatch.from_dict(data) == match
