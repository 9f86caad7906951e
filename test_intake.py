"""Tests for coercion of form / parser input into loan offers."""
import pytest

from intake import coerce_offer, coerce_offers, coerce_target, to_number


@pytest.mark.parametrize("raw, expected", [
    (6.53, 6.53),
    ("6.53", 6.53),
    ("$12,500", 12500.0),
    ("4.5%", 4.5),
    ("", None),
    ("abc", None),
    (None, None),
    (True, None),
    (float("nan"), None),
    ("inf", None),
    (10 ** 400, None),
])
def test_to_number(raw, expected):
    assert to_number(raw) == expected


def test_missing_fields_get_defaults():
    o = coerce_offer({}, index=3)
    assert o.name == "Loan 3"
    assert o.interest_rate == 0
    assert o.origination_fee_percent == 0
    assert o.borrowing_cap is None
    assert o.term_years == 10
    assert o.in_school_months == 0
    assert o.subsidized_in_school is False


def test_parser_field_names():
    o = coerce_offer({
        "name": "Stafford",
        "interestRate": 6.53,
        "feePct": "1.057",
        "cap": 5500,
        "termYears": 10,
        "accrualMonths": 48,
        "subsidized": "yes",
    })
    assert o.name == "Stafford"
    assert o.interest_rate == 6.53
    assert o.origination_fee_percent == 1.057
    assert o.borrowing_cap == 5500
    assert o.in_school_months == 48
    assert o.subsidized_in_school is True


def test_form_field_names():
    o = coerce_offer({
        "interestRatePercent": "7",
        "originationFeePercent": "2",
        "borrowingCap": "",
        "repaymentTermYears": "0",
        "inSchoolMonths": "-6",
    })
    assert o.interest_rate == 7
    assert o.borrowing_cap is None
    assert o.term_years == 10
    assert o.in_school_months == 0


def test_negative_rates_clamp_and_caps_pass_through():
    o = coerce_offer({"interest_rate": -3, "origination_fee_percent": -1, "borrowing_cap": 0})
    assert o.interest_rate == 0
    assert o.origination_fee_percent == 0
    # zero cap is kept; the allocator treats it as no capacity
    assert o.borrowing_cap == 0


def test_coerce_offers_skips_non_objects_and_numbers_names():
    offers = coerce_offers([{"interestRate": 5}, "junk", {"name": "  ", "interestRate": 6}])
    assert [o.name for o in offers] == ["Loan 1", "Loan 2"]


@pytest.mark.parametrize("raw, expected", [(20000, 20000.0), ("$5,000", 5000.0), (0, None), (-5, None), (None, None)])
def test_coerce_target(raw, expected):
    assert coerce_target(raw) == expected
