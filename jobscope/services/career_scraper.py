"""
Batch scraping of a company careers page.

The listing page is fetched first; if that fails the whole run fails. Each
job page is then fetched through a small worker pool. A job page that cannot
be fetched becomes a SkippedJob and the run carries on.
"""
import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Union

from jobscope.core.config import settings # pylint: disable=import-error
from jobscope.core.errors import FetchError # pylint: disable=import-error
from jobscope.models.job_model import ( # pylint: disable=import-error
    CompanyDataset,
    EstimatedJob,
    JobLink,
    JobPosting,
    SkillStrategy,
    SkippedJob,
)
from jobscope.services.aggregator import build_dataset # pylint: disable=import-error
from jobscope.services.job_builder import ( # pylint: disable=import-error
    build_job_posting,
    extract_job_links,
    extract_structured_postings,
    infer_department,
    infer_location,
)
from jobscope.services.salary_extractor import estimate_salary_from_title, job_level # pylint: disable=import-error
from jobscope.services.skill_inferrer import get_rule_set # pylint: disable=import-error

logger = logging.getLogger(__name__)

_last_fetch = 0
_request_lock = asyncio.Lock()


def fetch_listing(fetcher, url: str) -> str:
    """Fetch a listing page. Raises FetchError on network failure or a non-2xx status."""
    response = fetcher.fetch(url)
    if not response.ok:
        raise FetchError(url, f"HTTP {response.status}", response.status)
    logger.info(f"📄 Received listing page ({len(response.text)} bytes)")
    return response.text


def _scrape_job(
    fetcher,
    link: JobLink,
    company: str,
    strategy: SkillStrategy,
    rules_version: str,
    delay: float,
) -> Union[JobPosting, SkippedJob]:
    if delay > 0:
        time.sleep(delay)
    try:
        response = fetcher.fetch(link.url)
    except FetchError as e:
        logger.warning(f"Skipping {link.url}: {e.reason}")
        return SkippedJob(url=link.url, title=link.title, error=e.reason)
    if not response.ok:
        logger.warning(f"Skipping {link.url}: HTTP {response.status}")
        return SkippedJob(url=link.url, title=link.title, error=f"HTTP {response.status}")

    return build_job_posting(
        link,
        page_html=response.text,
        strategy=strategy,
        rules_version=rules_version,
        company=company,
        default_location=settings.DEFAULT_LOCATION,
    )


def _scrape_sync(
    company: str,
    url: str,
    fetcher,
    max_jobs: int,
    strategy: SkillStrategy,
    rules_version: str,
    delay: float,
    max_workers: int,
) -> CompanyDataset:
    listing_html = fetch_listing(fetcher, url)

    structured = extract_structured_postings(listing_html, url)
    structured_urls = {link.url for link in structured}
    links = [link for link in extract_job_links(listing_html, url) if link.url not in structured_urls]
    logger.info(f"📋 Found {len(structured)} embedded postings and {len(links)} job links for {company}")

    jobs: List[JobPosting] = [
        build_job_posting(
            link,
            page_html=link.context,
            strategy=strategy,
            rules_version=rules_version,
            company=company,
            default_location=settings.DEFAULT_LOCATION,
        )
        for link in structured[:max_jobs]
    ]
    links = links[:max(0, max_jobs - len(jobs))]

    results: Dict[int, Union[JobPosting, SkippedJob]] = {}
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = {
            pool.submit(_scrape_job, fetcher, link, company, strategy, rules_version, delay): index
            for index, link in enumerate(links)
        }
        for future in as_completed(futures):
            index = futures[future]
            results[index] = future.result()
            outcome = results[index]
            mark = "✓" if isinstance(outcome, JobPosting) else "✗"
            logger.info(f"  {mark} [{len(results)}/{len(links)}] {links[index].title}")

    skipped: List[SkippedJob] = []
    for index in range(len(links)):
        outcome = results[index]
        if isinstance(outcome, SkippedJob):
            skipped.append(outcome)
        else:
            jobs.append(outcome)

    dataset = build_dataset(
        company=company,
        jobs=jobs,
        rules_version=rules_version,
        skill_strategy=strategy,
        source_url=url,
        skipped=skipped,
        top_skills=settings.TOP_SKILLS_LIMIT,
        top_jobs=settings.TOP_PAYING_LIMIT,
    )
    logger.info(
        f"✅ {company}: {dataset.summary.total_jobs} jobs, "
        f"{dataset.summary.jobs_with_salary} with salary, {len(skipped)} skipped"
    )
    return dataset


async def _throttle():
    global _last_fetch

    async with _request_lock:
        now = time.monotonic()
        wait = settings.MIN_DELAY - (now - _last_fetch)
        if wait > 0:
            await asyncio.sleep(wait)
        _last_fetch = time.monotonic()


async def scrape_company(
    company: str,
    url: str,
    fetcher,
    max_jobs: Optional[int] = None,
    strategy: Optional[SkillStrategy] = None,
    rules_version: Optional[str] = None,
) -> CompanyDataset:
    """
    Scrape one company's careers page into a CompanyDataset.

    Args:
        company: Company name used for the snapshot
        url: Careers listing page URL
        fetcher: Object with ``fetch(url) -> FetchResponse``
        max_jobs: Maximum job pages to process (default MAX_JOBS_PER_RUN)
        strategy: Skill strategy (default SKILL_STRATEGY)
        rules_version: Title rule set version (default RULES_VERSION)

    Returns:
        CompanyDataset; jobs that could not be fetched are listed in ``skipped``

    Raises:
        FetchError: the listing page itself could not be fetched
        UnknownRulesVersionError: ``rules_version`` is not registered
    """
    strategy = strategy or SkillStrategy(settings.SKILL_STRATEGY)
    rules_version = get_rule_set(rules_version or settings.RULES_VERSION).version
    max_jobs = max_jobs if max_jobs is not None else settings.MAX_JOBS_PER_RUN

    logger.info(f"🔍 Scraping {company} careers: {url}")
    await _throttle()

    # Run the scraping in a thread pool to avoid blocking
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(
        None, _scrape_sync, company, url, fetcher, max_jobs, strategy, rules_version,
        settings.REQUEST_DELAY, settings.MAX_WORKERS,
    )


def _quick_analyze_sync(url: str, fetcher, max_jobs: int) -> List[EstimatedJob]:
    listing_html = fetch_listing(fetcher, url)
    seen_titles = set()
    jobs = []
    for link in extract_job_links(listing_html, url):
        if link.title in seen_titles:
            continue
        seen_titles.add(link.title)
        jobs.append(EstimatedJob(
            title=link.title,
            url=link.url,
            level=job_level(link.title),
            department=infer_department(link.title),
            location=infer_location(link.context, settings.DEFAULT_LOCATION),
            estimated_salary=estimate_salary_from_title(link.title),
        ))
        if len(jobs) >= max_jobs:
            break
    jobs.sort(key=lambda job: job.estimated_salary.max, reverse=True)
    return jobs


async def quick_analyze(url: str, fetcher, max_jobs: Optional[int] = None) -> List[EstimatedJob]:
    """
    Title-only analysis of a listing page without visiting job pages.

    Salaries are estimated from seniority keywords and are not comparable
    with scraped figures.
    """
    max_jobs = max_jobs if max_jobs is not None else settings.MAX_JOBS_PER_RUN
    await _throttle()
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, _quick_analyze_sync, url, fetcher, max_jobs)
