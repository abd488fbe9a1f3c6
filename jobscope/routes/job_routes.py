import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from jobscope.core.caching import ScrapeStatusTracker, get_cache, invalidate_cache, set_cache # pylint: disable=import-error
from jobscope.core.config import settings # pylint: disable=import-error
from jobscope.core.errors import DatasetNotFoundError, FetchError, UnknownRulesVersionError # pylint: disable=import-error
from jobscope.models.job_model import ( # pylint: disable=import-error
    CategoryStats,
    CompanyComparison,
    CompanyDataset,
    DatasetSummary,
    EstimatedJob,
    JobPosting,
    RuleSetInfo,
    ScrapeState,
    ScrapeStatusResponse,
    SkillStrategy,
    SkippedJob,
)
from jobscope.services.aggregator import ( # pylint: disable=import-error
    build_dataset,
    category_stats,
    compare_companies,
    jobs_with_skill,
    location_stats,
    summarize,
)
from jobscope.services.career_scraper import quick_analyze, scrape_company # pylint: disable=import-error
from jobscope.services.dataset_store import JsonDatasetStore, company_slug # pylint: disable=import-error
from jobscope.services.fetcher import create_fetcher # pylint: disable=import-error
from jobscope.services.job_builder import apply_rules # pylint: disable=import-error
from jobscope.services.skill_inferrer import DEFAULT_RULES_VERSION, RULE_SETS, get_rule_set # pylint: disable=import-error

logger = logging.getLogger(__name__)

router = APIRouter()

_store = None
_fetcher = None
_tracker = ScrapeStatusTracker(ttl=settings.SCRAPE_STATUS_TTL)


def get_store() -> JsonDatasetStore:
    global _store
    if _store is None:
        _store = JsonDatasetStore(settings.DATA_DIR)
    return _store


def get_fetcher():
    global _fetcher
    if _fetcher is None:
        _fetcher = create_fetcher()
    return _fetcher


def get_tracker() -> ScrapeStatusTracker:
    return _tracker


class ScrapeRequest(BaseModel):
    company: str
    url: str
    max_jobs: Optional[int] = None
    strategy: Optional[SkillStrategy] = None
    rules_version: Optional[str] = None


class ScrapeResult(BaseModel):
    company: str
    snapshot: str
    rules_version: str
    summary: DatasetSummary
    skipped: List[SkippedJob]


class SummaryResponse(BaseModel):
    company: str
    scraped_at: str
    rules_version: str
    summary: DatasetSummary


class CategoryResponse(BaseModel):
    company: str
    departments: List[CategoryStats]
    locations: List[CategoryStats]


class SimpleAnalyzeRequest(BaseModel):
    url: str
    max_jobs: Optional[int] = None


class SimpleAnalyzeResponse(BaseModel):
    url: str
    total_jobs: int
    jobs: List[EstimatedJob]


def _load_latest(store: JsonDatasetStore, company: str) -> CompanyDataset:
    try:
        return store.load_latest(company)
    except DatasetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _status_response(tracker: ScrapeStatusTracker, company: str) -> ScrapeStatusResponse:
    key = company_slug(company)
    state = tracker.status(key)
    elapsed = tracker.elapsed(key) if state == ScrapeState.ACTIVE else None
    if elapsed is not None:
        elapsed = round(elapsed, 1)
    return ScrapeStatusResponse(company=company, state=state, elapsed_seconds=elapsed)


@router.get("/health")
def health():
    return {"status": "ok", "version": settings.VERSION}


@router.post("/scrape", response_model=ScrapeResult)
async def scrape(
    request: ScrapeRequest,
    store: JsonDatasetStore = Depends(get_store),
    fetcher=Depends(get_fetcher),
    tracker: ScrapeStatusTracker = Depends(get_tracker),
):
    """
    Scrape a company careers page and save one snapshot.

    - 409 when a scrape for the same company is still running
    - 502 when the listing page cannot be fetched
    - Job pages that fail are returned in ``skipped`` and do not fail the run
    """
    # Keyed like the snapshots, so "OpenAI" and "openai" are one scrape
    key = company_slug(request.company)
    stamp = tracker.start(key)
    if stamp is None:
        raise HTTPException(status_code=409, detail=f"A scrape for '{request.company}' is already in progress")

    try:
        dataset = await scrape_company(
            request.company,
            request.url,
            fetcher,
            max_jobs=request.max_jobs,
            strategy=request.strategy,
            rules_version=request.rules_version,
        )
    except UnknownRulesVersionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FetchError as e:
        logger.error(f"Listing fetch failed for {request.company}: {e}")
        raise HTTPException(status_code=502, detail=f"Could not fetch careers page: {e.reason}")
    finally:
        tracker.clear(key, stamp)

    path = store.save(dataset)
    await invalidate_cache(f"summary:{company_slug(request.company)}")
    return ScrapeResult(
        company=dataset.company,
        snapshot=path.name,
        rules_version=dataset.rules_version,
        summary=dataset.summary,
        skipped=dataset.skipped,
    )


@router.get("/scraping-status/{company}", response_model=ScrapeStatusResponse)
def get_scraping_status(company: str, tracker: ScrapeStatusTracker = Depends(get_tracker)):
    return _status_response(tracker, company)


@router.post("/scraping-status/{company}", response_model=ScrapeStatusResponse)
def start_scraping_status(company: str, tracker: ScrapeStatusTracker = Depends(get_tracker)):
    """Mark a company as being scraped by an external worker."""
    if tracker.start(company_slug(company)) is None:
        raise HTTPException(status_code=409, detail=f"A scrape for '{company}' is already in progress")
    return _status_response(tracker, company)


@router.delete("/scraping-status/{company}", response_model=ScrapeStatusResponse)
def clear_scraping_status(company: str, tracker: ScrapeStatusTracker = Depends(get_tracker)):
    tracker.clear(company_slug(company))
    return _status_response(tracker, company)


@router.get("/summary/{company}", response_model=SummaryResponse)
async def get_summary(company: str, store: JsonDatasetStore = Depends(get_store)):
    """Summary of the latest snapshot, recomputed from its postings."""
    cache_key = f"summary:{company_slug(company)}"
    cached = await get_cache(cache_key)
    if cached:
        return cached

    dataset = _load_latest(store, company)
    response = SummaryResponse(
        company=dataset.company,
        scraped_at=dataset.scraped_at,
        rules_version=dataset.rules_version,
        summary=summarize(dataset.jobs, settings.TOP_SKILLS_LIMIT, settings.TOP_PAYING_LIMIT),
    )
    await set_cache(cache_key, response, settings.CACHE_TTL)
    return response


@router.get("/jobs", response_model=List[JobPosting])
def get_jobs(
    company: str = Query(..., description="Company name, e.g. 'openai'"),
    store: JsonDatasetStore = Depends(get_store),
):
    return _load_latest(store, company).jobs


@router.get("/jobs-by-skill", response_model=List[JobPosting])
def get_jobs_by_skill(
    skill: str = Query(..., description="Exact skill label, e.g. 'Python' or 'CUDA'"),
    company: Optional[str] = Query(None, description="Limit to one company; all companies when omitted"),
    store: JsonDatasetStore = Depends(get_store),
):
    """Postings listing the skill (case-sensitive), best paid first."""
    if company:
        jobs = _load_latest(store, company).jobs
    else:
        jobs = []
        for slug in store.list_companies():
            jobs.extend(store.load_latest(slug).jobs)
    return jobs_with_skill(jobs, skill)


@router.get("/categories/{company}", response_model=CategoryResponse)
def get_categories(company: str, store: JsonDatasetStore = Depends(get_store)):
    dataset = _load_latest(store, company)
    return CategoryResponse(
        company=dataset.company,
        departments=category_stats(dataset.jobs),
        locations=location_stats(dataset.jobs),
    )


@router.get("/compare", response_model=CompanyComparison)
def get_comparison(
    company_a: str = Query(..., description="First company, e.g. 'openai'"),
    company_b: str = Query(..., description="Second company, e.g. 'anthropic'"),
    store: JsonDatasetStore = Depends(get_store),
):
    return compare_companies(_load_latest(store, company_a), _load_latest(store, company_b))


@router.get("/rules", response_model=List[RuleSetInfo])
def get_rules():
    return [
        RuleSetInfo(
            version=rule_set.version,
            name=rule_set.name,
            changelog=list(rule_set.changelog),
            default=rule_set.version == DEFAULT_RULES_VERSION,
        )
        for rule_set in RULE_SETS.values()
    ]


@router.post("/reprocess/{company}", response_model=CompanyDataset)
def reprocess(
    company: str,
    rules_version: Optional[str] = Query(None, description="Title rule set version; default is the current set"),
    store: JsonDatasetStore = Depends(get_store),
):
    """
    Re-score the latest snapshot with a title rule set.

    The result is returned, not saved: the stored snapshot stays as scraped.
    """
    try:
        rule_set = get_rule_set(rules_version)
    except UnknownRulesVersionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    dataset = _load_latest(store, company)
    return build_dataset(
        company=dataset.company,
        jobs=apply_rules(dataset, rule_set.version),
        rules_version=rule_set.version,
        skill_strategy=SkillStrategy.TITLE,
        source_url=dataset.source_url,
        skipped=dataset.skipped,
        top_skills=settings.TOP_SKILLS_LIMIT,
        top_jobs=settings.TOP_PAYING_LIMIT,
        scraped_at=dataset.scraped_at,
    )


@router.post("/analyze/simple", response_model=SimpleAnalyzeResponse)
async def analyze_simple(request: SimpleAnalyzeRequest, fetcher=Depends(get_fetcher)):
    """
    Quick title-only pass over a listing page.

    Salaries here are estimated from seniority keywords in the title, not
    read from job pages.
    """
    try:
        jobs = await quick_analyze(request.url, fetcher, request.max_jobs)
    except FetchError as e:
        raise HTTPException(status_code=502, detail=f"Could not fetch careers page: {e.reason}")
    return SimpleAnalyzeResponse(url=request.url, total_jobs=len(jobs), jobs=jobs)


@router.get("/companies", response_model=List[str])
def list_companies(store: JsonDatasetStore = Depends(get_store)) -> List[str]:
    return store.list_companies()
