"""
Salary extraction from job page text.

Two strategies live here and are kept apart on purpose:

- extract_salary: recovers a figure actually printed on the page.
- estimate_salary_from_title: a level-keyword guess used only by the quick
  title-only analyzer. Its output is never stored as a scraped salary.

All figures are in thousands of USD.
"""
import logging
import math
import re
from typing import List, Optional, Tuple

from jobscope.models.job_model import SalaryRange # pylint: disable=import-error

logger = logging.getLogger(__name__)

_DASH = r'[-–—]'
# Three leading digits: "$5,000" is a stipend, not a salary
_COMMA_NUMBER = r'\d{3}(?:,\d{3})+'

# Ordered: first match wins, ranges before single values
RANGE_PATTERNS = [
    ("k_range", re.compile(rf'\$(\d{{3,}})([Kk])?\s*{_DASH}\s*\$(\d{{3,}})([Kk])?')),
    ("comma_range", re.compile(rf'\$({_COMMA_NUMBER})()\s*{_DASH}\s*\$({_COMMA_NUMBER})()')),
    ("usd_range", re.compile(rf'USD\s*(\d{{3,}})([Kk])?\s*{_DASH}\s*(\d{{3,}})([Kk])?', re.IGNORECASE)),
]

SINGLE_PATTERNS = [
    ("equity", re.compile(rf'\$({_COMMA_NUMBER}|\d{{3,}})([Kk])?\s*\+\s*Offers?\s*Equity', re.IGNORECASE)),
    ("plus", re.compile(rf'\$({_COMMA_NUMBER}|\d{{3,}})([Kk])?\s*\+')),
    ("bare", re.compile(rf'\$({_COMMA_NUMBER}|\d{{3,}})([Kk])?(?![\dKkMmBb]|\s*{_DASH})')),
]

# Single figures become a band of -20%/+20% around the printed value.
# This reproduces the historical approximation; it is not a market estimate.
SINGLE_VALUE_LOW = 0.8
SINGLE_VALUE_HIGH = 1.2

# (keywords, (min, max)) - first match wins
TITLE_SALARY_TABLE: List[Tuple[Tuple[str, ...], Tuple[int, int]]] = [
    (('principal', 'distinguished'), (400, 600)),
    (('staff',), (350, 500)),
    (('senior',), (250, 400)),
    (('director', 'vp'), (300, 500)),
    (('manager',), (200, 350)),
    (('engineer', 'scientist'), (180, 300)),
]
TITLE_SALARY_DEFAULT = (120, 250)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_thousands(digits: str, k_suffix: Optional[str] = None) -> float:
    """
    Normalize a matched number to thousands of dollars.

    "405" with K stays 405; "405000" or "405,000" becomes 405; a bare number
    below 1000 is assumed to already be in thousands.
    """
    value = float(digits.replace(',', ''))
    if k_suffix:
        return value
    if value > 1000:
        return value / 1000
    return value


def extract_salary(text: Optional[str]) -> Optional[SalaryRange]:
    """
    Find the first salary figure in ``text``.

    Args:
        text: Job page text (HTML tags already stripped works best)

    Returns:
        SalaryRange in thousands, or None when no dollar figure is present
    """
    if not text:
        return None

    for name, pattern in RANGE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        low = round_half_up(to_thousands(match.group(1), match.group(2)))
        high = round_half_up(to_thousands(match.group(3), match.group(4)))
        low, high = min(low, high), max(low, high)
        logger.debug(f"Salary matched {name}: {match.group(0)!r} -> {low}-{high}")
        return SalaryRange(raw=match.group(0).strip(), min=low, max=high)

    for name, pattern in SINGLE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        value = to_thousands(match.group(1), match.group(2))
        low = round_half_up(value * SINGLE_VALUE_LOW)
        high = round_half_up(value * SINGLE_VALUE_HIGH)
        logger.debug(f"Salary matched {name}: {match.group(0)!r} -> {low}-{high}")
        return SalaryRange(raw=match.group(0).strip(), min=low, max=high)

    return None


def estimate_salary_from_title(title: Optional[str]) -> SalaryRange:
    """Guess a band from seniority keywords in the title. Always returns a range."""
    title_lower = (title or "").lower()
    low, high = TITLE_SALARY_DEFAULT
    for keywords, band in TITLE_SALARY_TABLE:
        if any(keyword in title_lower for keyword in keywords):
            low, high = band
            break
    return SalaryRange(raw="estimated from title", min=low, max=high)


def job_level(title: Optional[str]) -> str:
    """Seniority label used by the quick analyzer."""
    title_lower = (title or "").lower()
    if 'vp' in title_lower or 'vice president' in title_lower:
        return 'VP'
    if 'director' in title_lower:
        return 'Director'
    if 'principal' in title_lower:
        return 'Principal'
    if 'staff' in title_lower:
        return 'Staff'
    if 'senior' in title_lower or 'lead' in title_lower:
        return 'Senior'
    if 'manager' in title_lower:
        return 'Director'
    return 'Mid'
