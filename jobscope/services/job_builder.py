"""
Builds JobPosting records from listing-page links and job-page HTML
"""
import json
import logging
import re
from typing import List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from jobscope.models.job_model import ( # pylint: disable=import-error
    CompanyDataset,
    Department,
    JobLink,
    JobPosting,
    SkillStrategy,
)
from jobscope.services.salary_extractor import extract_salary # pylint: disable=import-error
from jobscope.services.skill_inferrer import get_rule_set, infer_skills # pylint: disable=import-error
from jobscope.services.text_normalizer import ( # pylint: disable=import-error
    collapse_whitespace,
    extract_page_content,
    extract_requirements_text,
)

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "San Francisco"

# First match wins
LOCATIONS = [
    'Remote',
    'New York',
    'London',
    'Singapore',
    'Tokyo',
    'Dublin',
    'Seattle',
]

DEPARTMENT_WORD_SUFFIXES = r'(Engineering|Products|Science|Infrastructure|Design|Operations|Success)([A-Z])'

# Priority order matters: "Data Security Engineer" lands in Security
DEPARTMENT_KEYWORDS = [
    (('Research', 'Scientist'), Department.RESEARCH),
    (('Manager', 'Director'), Department.MANAGEMENT),
    (('Sales', 'Account'), Department.SALES),
    (('Security',), Department.SECURITY),
    (('Data',), Department.DATA),
    (('Product',), Department.PRODUCT),
]

JOB_TITLE_KEYWORDS = ['Engineer', 'Scientist', 'Researcher', 'Manager', 'Director', 'Analyst']
JOB_PATH_MARKERS = ['/careers/', '/jobs/']

MIN_TITLE_LENGTH = 5
MAX_TITLE_LENGTH = 100

NO_SALARY_UNKNOWN = "Unknown"


def clean_title(raw: Optional[str]) -> str:
    """
    Reinsert the spaces some feeds drop between title, team and city.

    "Software Engineer, Real TimeApplied AI EngineeringSeattle" becomes
    "Software Engineer, Real Time Applied AI Engineering Seattle".
    """
    if not raw:
        return ""
    title = re.sub(r'([a-z])([A-Z][a-z])', r'\1 \2', raw)
    title = re.sub(DEPARTMENT_WORD_SUFFIXES, r'\1 \2', title)
    return collapse_whitespace(title)


def infer_location(container_text: Optional[str], default: str = DEFAULT_LOCATION) -> str:
    if not container_text:
        return default
    for location in LOCATIONS:
        if location in container_text:
            return location
    return default


def infer_department(title: Optional[str]) -> Department:
    if not title:
        return Department.ENGINEERING
    for keywords, department in DEPARTMENT_KEYWORDS:
        if any(keyword in title for keyword in keywords):
            return department
    return Department.ENGINEERING


def no_salary_reason(title: Optional[str], location: Optional[str]) -> str:
    """Human-readable explanation stored when a posting has no salary figure."""
    title_lower = (title or "").lower()

    if 'account director' in title_lower or 'sales' in title_lower or 'account' in title_lower:
        return "Sales position - likely commission-based"
    if 'customer success' in title_lower or 'manager' in title_lower:
        return "Management position - salary may be confidential"
    if location and location not in (DEFAULT_LOCATION, 'Remote'):
        return "International position - salary may vary by region"
    if 'director' in title_lower or re.search(r'\bvp\b', title_lower):
        return "Executive position - salary confidential"
    if 'finance' in title_lower or 'legal' in title_lower:
        return "Corporate function - salary may be confidential"
    return NO_SALARY_UNKNOWN


def is_job_title(text: str) -> bool:
    return (
        MIN_TITLE_LENGTH < len(text) < MAX_TITLE_LENGTH
        and any(keyword in text for keyword in JOB_TITLE_KEYWORDS)
    )


def extract_job_links(html: Optional[str], base_url: str) -> List[JobLink]:
    """
    Find job posting links on a careers listing page.

    Anchors without an href, with a non-job path, with a title that does not
    look like a role, or that resolve to a non-http URL are dropped silently.

    Args:
        html: Listing page HTML
        base_url: URL the listing was fetched from, used to resolve relative hrefs

    Returns:
        Links in page order, one per URL
    """
    if not html:
        return []

    soup = BeautifulSoup(html, 'html.parser')
    links: List[JobLink] = []
    seen = set()

    for anchor in soup.find_all('a', href=True):
        href = (anchor.get('href') or '').strip()
        text = anchor.get_text(separator=' ', strip=True)
        if not href or not text:
            continue
        if not any(marker in href for marker in JOB_PATH_MARKERS):
            continue

        title = clean_title(text)
        if not is_job_title(title):
            continue

        url = urljoin(base_url, href)
        parsed = urlparse(url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            logger.debug(f"Discarding malformed job link: {href}")
            continue
        if url in seen:
            continue
        seen.add(url)

        container = anchor.find_parent(['li', 'article', 'section', 'div'])
        context = container.get_text(separator=' ', strip=True) if container else text
        links.append(JobLink(title=title, url=url, context=context))

    return links


def extract_structured_postings(html: Optional[str], base_url: str) -> List[JobLink]:
    """
    Read schema.org JobPosting entries embedded as ld+json.

    Entries without a title or url are skipped. The posting description (and
    baseSalary, when present) goes into the link context so the normal
    builder path can extract from it.
    """
    if not html:
        return []

    soup = BeautifulSoup(html, 'html.parser')
    links: List[JobLink] = []
    for script in soup.find_all('script', type='application/ld+json'):
        try:
            data = json.loads(script.string or '{}')
        except ValueError:
            continue
        postings = data if isinstance(data, list) else [data]
        for posting in postings:
            if not isinstance(posting, dict) or posting.get('@type') != 'JobPosting':
                continue
            title = posting.get('title')
            url = posting.get('url')
            if not title or not url:
                continue
            locality = ''
            job_location = posting.get('jobLocation')
            if isinstance(job_location, dict) and isinstance(job_location.get('address'), dict):
                locality = job_location['address'].get('addressLocality') or ''
            parts = [locality, _salary_text(posting.get('baseSalary')), posting.get('description') or '']
            links.append(JobLink(
                title=clean_title(title),
                url=urljoin(base_url, url),
                context=' '.join(part for part in parts if part),
            ))
    return links


def _salary_text(base_salary) -> str:
    """Render a schema.org MonetaryAmount as "$min - $max" so the salary patterns can read it."""
    if not isinstance(base_salary, dict):
        return str(base_salary or '')
    value = base_salary.get('value')
    try:
        if isinstance(value, dict):
            low, high = value.get('minValue'), value.get('maxValue')
            if low and high:
                return f"${int(float(low))} - ${int(float(high))}"
            if value.get('value'):
                return f"${int(float(value['value']))}"
        elif value:
            return f"${int(float(value))}"
    except (TypeError, ValueError):
        logger.debug(f"Unreadable baseSalary value: {value!r}")
    return ''


def build_job_posting(
    link: JobLink,
    page_html: Optional[str] = None,
    strategy: SkillStrategy = SkillStrategy.TITLE,
    rules_version: Optional[str] = None,
    company: Optional[str] = None,
    default_location: str = DEFAULT_LOCATION,
) -> JobPosting:
    """
    Combine a discovered link and its (optional) job page into one posting.

    Args:
        link: Title, URL and surrounding text from the listing page
        page_html: Job page HTML, or None when it was not fetched
        strategy: Skill inference strategy
        rules_version: Title rule set version for the title strategy
        company: Company name stored on the posting
        default_location: Location used when the container names no city

    Returns:
        JobPosting. When no salary is found, ``description`` carries the reason.
    """
    title = clean_title(link.title)
    location = infer_location(link.context, default_location)
    department = infer_department(title)

    description, list_items = extract_page_content(page_html)
    salary = extract_salary(description) or extract_salary(link.context)

    requirements = extract_requirements_text(description, list_items) if description else ""
    skills = infer_skills(title, requirements, strategy, rules_version)

    if salary is None:
        description_out = no_salary_reason(title, location)
    else:
        description_out = description[:2000] if description else None

    return JobPosting(
        title=title,
        url=link.url,
        location=location,
        department=department,
        salary=salary,
        skills=skills,
        description=description_out,
        company=company,
    )


def apply_rules(dataset: CompanyDataset, rules_version: Optional[str] = None) -> List[JobPosting]:
    """
    Re-score a stored snapshot's postings with a title rule set.

    The snapshot is left untouched; new posting objects are returned.
    """
    rule_set = get_rule_set(rules_version)
    return [
        job.model_copy(update={'skills': rule_set.infer(job.title)})
        for job in dataset.jobs
    ]
