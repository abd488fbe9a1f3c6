from __future__ import annotations

import pytest

from jobscope.services.salary_extractor import (
    estimate_salary_from_title,
    extract_salary,
    job_level,
    round_half_up,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("$405K - $590K", (405, 590)),
        ("$405K – $590K", (405, 590)),
        ("$405k—$590k", (405, 590)),
        ("Compensation: $310K - $385K + equity", (310, 385)),
        ("$180000 - $240000", (180, 240)),
        ("USD 180 - 240", (180, 240)),
        ("usd 180K – 240K", (180, 240)),
    ],
)
def test_extract_salary_ranges(text: str, expected: tuple) -> None:
    salary = extract_salary(text)
    assert salary is not None
    assert (salary.min, salary.max) == expected


@pytest.mark.parametrize("low, high", [(200, 300), (245, 385), (405, 590)])
def test_comma_grouped_range_matches_k_form(low: int, high: int) -> None:
    comma = extract_salary(f"The base pay is ${low},000 - ${high},000 per year")
    k_form = extract_salary(f"The base pay is ${low}K - ${high}K per year")
    assert comma is not None and k_form is not None
    assert (comma.min, comma.max) == (k_form.min, k_form.max) == (low, high)


def test_comma_range_rounds_half_up() -> None:
    salary = extract_salary("$152,500 - $200,000")
    assert (salary.min, salary.max) == (153, 200)


def test_single_value_with_equity_marker() -> None:
    salary = extract_salary("$250K + Offers Equity")
    assert (salary.min, salary.max) == (200, 300)
    assert salary.raw == "$250K + Offers Equity"


@pytest.mark.parametrize(
    "text, value",
    [
        ("$300K +", 300),
        ("Base salary of $199K", 199),
        ("Starting at $150000 per year", 150),
        ("$275,000 plus bonus", 275),
    ],
)
def test_single_value_becomes_plus_minus_twenty_percent(text: str, value: int) -> None:
    salary = extract_salary(text)
    assert salary.min == round_half_up(value * 0.8)
    assert salary.max == round_half_up(value * 1.2)


def test_stipend_does_not_hide_later_salary() -> None:
    salary = extract_salary("Includes a $5,000 relocation stipend. Base pay $240,000 per year.")
    assert salary.raw == "$240,000"
    assert (salary.min, salary.max) == (192, 288)


def test_range_is_preferred_over_earlier_single_value() -> None:
    salary = extract_salary("Signing bonus $500 available. Pay: $200K - $260K")
    assert (salary.min, salary.max) == (200, 260)


def test_reversed_range_is_ordered() -> None:
    salary = extract_salary("$300K - $200K")
    assert salary.min <= salary.max
    assert (salary.min, salary.max) == (200, 300)


@pytest.mark.parametrize(
    "text",
    [
        "",
        None,
        "Competitive salary and equity",
        "Pay is $50 per hour",
        "We raised $6B in funding",
        "We raised $100M in funding",
        "Backed by $300m from investors",
        "We offer a $5,000 relocation stipend",
        "Annual $1,500 learning budget",
        "$25,000 signing bonus",
    ],
)
def test_no_dollar_figure_is_absent(text) -> None:
    assert extract_salary(text) is None


@pytest.mark.parametrize(
    "title, expected",
    [
        ("Principal Engineer, GPU Platform", (400, 600)),
        ("Distinguished Scientist", (400, 600)),
        ("Staff Software Engineer", (350, 500)),
        ("Senior Account Manager", (250, 400)),
        ("Director of Finance", (300, 500)),
        ("Product Manager", (200, 350)),
        ("Research Scientist", (180, 300)),
        ("Recruiter", (120, 250)),
        ("", (120, 250)),
    ],
)
def test_estimate_salary_from_title(title: str, expected: tuple) -> None:
    salary = estimate_salary_from_title(title)
    assert (salary.min, salary.max) == expected
    assert salary.raw == "estimated from title"


@pytest.mark.parametrize(
    "title, level",
    [
        ("VP of Sales", "VP"),
        ("Vice President, Engineering", "VP"),
        ("Director of Research", "Director"),
        ("Principal Engineer", "Principal"),
        ("Staff ML Engineer", "Staff"),
        ("Tech Lead, Inference", "Senior"),
        ("Senior Software Engineer", "Senior"),
        ("Engineering Manager", "Director"),
        ("Software Engineer", "Mid"),
    ],
)
def test_job_level(title: str, level: str) -> None:
    assert job_level(title) == level
