"""
Text cleanup helpers shared by the salary and skill extractors.

Every function here is total: any string (including "") is accepted and the
result is a string or list, never an exception.
"""
import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

REQUIREMENT_TRIGGERS = [
    'requirements',
    'qualifications',
    'what you',
    'you have',
    'must have',
    'skills',
    'experience with',
    'minimum qualifications',
]

# Ordered from most specific to most generic job-body containers
CONTENT_SELECTORS = [
    '[data-testid="job-description"]',
    '.job-description',
    '.job-content',
    '#content',
    '.content',
    'main',
    'article',
    '[role="main"]',
]

MIN_PARAGRAPH_LENGTH = 20
MIN_REQUIREMENTS_LENGTH = 50
FALLBACK_CHARS = 1000


def normalize_text(text: Optional[str]) -> str:
    """Lowercase and collapse every run of whitespace to one space."""
    if not text:
        return ""
    return re.sub(r'\s+', ' ', text).strip().lower()


def collapse_whitespace(text: Optional[str]) -> str:
    if not text:
        return ""
    return re.sub(r'\s+', ' ', text).strip()


def extract_page_content(html: Optional[str]) -> Tuple[str, List[str]]:
    """
    Pull the job body out of a job page.

    Args:
        html: Raw HTML of a single job page

    Returns:
        (description, list_items) where description keeps line breaks between
        blocks and list_items holds the text of every <li> inside it
    """
    if not html:
        return "", []

    soup = BeautifulSoup(html, 'html.parser')
    for tag in soup(['script', 'style', 'noscript']):
        tag.decompose()

    container = None
    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element and len(element.get_text(strip=True)) > 200:
            container = element
            break
    if container is None:
        container = soup.body or soup

    description = container.get_text(separator='\n', strip=True)
    list_items = [
        li.get_text(separator=' ', strip=True)
        for li in container.find_all('li')
    ]
    return description, [item for item in list_items if item]


def extract_requirements_text(description: Optional[str], list_items: Optional[List[str]] = None) -> str:
    """
    Narrow a job description to the part that states requirements.

    Lines mentioning a requirement trigger are kept. When they add up to
    too little text the <li> items are used instead, and failing that the
    first 1000 characters of the description. The full page is never used.
    """
    if not description:
        description = ""

    matched = [
        line for line in description.split('\n')
        if len(line) > MIN_PARAGRAPH_LENGTH
        and any(trigger in line.lower() for trigger in REQUIREMENT_TRIGGERS)
    ]
    requirements = ' '.join(matched)

    if len(requirements) < MIN_REQUIREMENTS_LENGTH:
        items_text = ' '.join(list_items or [])
        if len(items_text) > MIN_REQUIREMENTS_LENGTH:
            requirements = items_text
        else:
            requirements = description[:FALLBACK_CHARS]

    return normalize_text(requirements)
