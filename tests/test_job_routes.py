from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import LISTING_URL
from jobscope.core.caching import ScrapeStatusTracker
from jobscope.main import app
from jobscope.models.job_model import JobPosting, SalaryRange
from jobscope.routes.job_routes import get_fetcher, get_store, get_tracker
from jobscope.services.aggregator import build_dataset
from jobscope.services.dataset_store import JsonDatasetStore


@pytest.fixture
def store(tmp_path) -> JsonDatasetStore:
    return JsonDatasetStore(tmp_path / "snapshots")


@pytest.fixture
def tracker() -> ScrapeStatusTracker:
    return ScrapeStatusTracker(ttl=1200)


@pytest.fixture
def client(store, tracker, openai_fetcher):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_tracker] = lambda: tracker
    app.dependency_overrides[get_fetcher] = lambda: openai_fetcher
    yield TestClient(app)
    app.dependency_overrides.clear()


def scrape_openai(client: TestClient):
    return client.post("/api/scrape", json={"company": "OpenAI", "url": LISTING_URL})


def save_anthropic(store: JsonDatasetStore) -> None:
    jobs = [
        JobPosting(
            title="Frontend Engineer",
            url="https://anthropic.com/careers/frontend",
            salary=SalaryRange(raw="$200K - $300K", min=200, max=300),
            skills=["React", "JavaScript", "Python"],
        ),
    ]
    store.save(build_dataset("Anthropic", jobs, rules_version="2"))


def test_root_and_health(client: TestClient) -> None:
    assert client.get("/").json() == {"message": "Welcome to Jobscope"}
    assert client.get("/api/health").json()["status"] == "ok"


def test_scrape_saves_snapshot(client: TestClient, store: JsonDatasetStore) -> None:
    response = scrape_openai(client)

    assert response.status_code == 200
    body = response.json()
    assert body["company"] == "OpenAI"
    assert body["snapshot"].startswith("openai-jobs-")
    assert body["rules_version"] == "2"
    assert body["summary"]["total_jobs"] == 3
    assert body["summary"]["jobs_with_salary"] == 2
    assert [skip["title"] for skip in body["skipped"]] == ["Research Engineer, Pretraining"]
    assert len(store.snapshots("OpenAI")) == 1


def test_scrape_rejects_concurrent_run(client: TestClient, tracker: ScrapeStatusTracker) -> None:
    tracker.start("openai")
    response = scrape_openai(client)
    assert response.status_code == 409
    assert client.get("/api/scraping-status/OpenAI").json()["state"] == "active"


def test_scrape_status_ignores_company_name_case(client: TestClient) -> None:
    assert client.post("/api/scraping-status/OpenAI").status_code == 200

    assert client.get("/api/scraping-status/openai").json()["state"] == "active"
    response = client.post("/api/scrape", json={"company": "openai", "url": LISTING_URL})
    assert response.status_code == 409

    client.delete("/api/scraping-status/OPENAI")
    assert client.get("/api/scraping-status/OpenAI").json()["state"] == "inactive"


def test_scrape_listing_failure(client: TestClient, fake_fetcher_cls, store: JsonDatasetStore) -> None:
    app.dependency_overrides[get_fetcher] = lambda: fake_fetcher_cls({})

    response = scrape_openai(client)

    assert response.status_code == 502
    assert "HTTP 404" in response.json()["detail"]
    assert store.snapshots("OpenAI") == []
    assert client.get("/api/scraping-status/OpenAI").json()["state"] == "inactive"


def test_scrape_unknown_rules_version(client: TestClient) -> None:
    response = client.post(
        "/api/scrape", json={"company": "OpenAI", "url": LISTING_URL, "rules_version": "99"}
    )
    assert response.status_code == 400


def test_scraping_status_flow(client: TestClient) -> None:
    idle = client.get("/api/scraping-status/anthropic").json()
    assert idle == {"company": "anthropic", "state": "inactive", "elapsed_seconds": None}

    started = client.post("/api/scraping-status/anthropic")
    assert started.status_code == 200
    assert started.json()["state"] == "active"
    assert started.json()["elapsed_seconds"] is not None

    assert client.post("/api/scraping-status/anthropic").status_code == 409
    assert client.delete("/api/scraping-status/anthropic").json()["state"] == "inactive"


def test_summary_jobs_and_categories(client: TestClient) -> None:
    scrape_openai(client)

    summary = client.get("/api/summary/openai").json()
    assert summary["company"] == "OpenAI"
    assert summary["summary"]["total_jobs"] == 3
    assert summary["summary"]["highest_paying_jobs"][0]["title"] == "Principal Engineer, GPU Platform"
    # second read is served from the cache
    assert client.get("/api/summary/openai").json() == summary

    jobs = client.get("/api/jobs", params={"company": "openai"}).json()
    assert [job["title"] for job in jobs][0] == "Frontend Engineer"
    assert jobs[0]["salary"] == {"raw": "$250K – $350K", "min": 250, "max": 350}

    categories = client.get("/api/categories/openai").json()
    assert categories["departments"][0]["name"] == "Engineering"
    assert categories["departments"][0]["total"] == 2
    assert {loc["name"] for loc in categories["locations"]} == {"San Francisco", "Remote", "New York"}


def test_unknown_company_is_404(client: TestClient) -> None:
    assert client.get("/api/summary/nobody").status_code == 404
    assert client.get("/api/jobs", params={"company": "nobody"}).status_code == 404
    assert client.get("/api/categories/nobody").status_code == 404
    assert client.post("/api/reprocess/nobody").status_code == 404


def test_jobs_by_skill(client: TestClient, store: JsonDatasetStore) -> None:
    scrape_openai(client)
    save_anthropic(store)

    all_react = client.get("/api/jobs-by-skill", params={"skill": "React"}).json()
    assert [(job["url"], job["salary"]["max"]) for job in all_react] == [
        ("https://openai.com/careers/frontend-engineer", 350),
        ("https://anthropic.com/careers/frontend", 300),
    ]

    openai_only = client.get("/api/jobs-by-skill", params={"skill": "React", "company": "openai"}).json()
    assert len(openai_only) == 1
    assert client.get("/api/jobs-by-skill", params={"skill": "react"}).json() == []


def test_compare(client: TestClient, store: JsonDatasetStore) -> None:
    scrape_openai(client)
    save_anthropic(store)

    comparison = client.get("/api/compare", params={"company_a": "openai", "company_b": "anthropic"}).json()

    # OpenAI: (250 + 405) / 2 -> 328, (350 + 590) / 2 -> 470, mean 399
    assert comparison["salary"]["winner"] == "OpenAI"
    assert comparison["salary"]["company_a_avg"] == 399
    assert comparison["salary"]["company_b_avg"] == 250
    assert "Python" in comparison["skills"]["common"]
    assert client.get("/api/companies").json() == ["anthropic", "openai"]


def test_rules_listing(client: TestClient) -> None:
    rules = client.get("/api/rules").json()
    assert [rule["version"] for rule in rules] == ["1", "2"]
    assert [rule["default"] for rule in rules] == [False, True]
    assert all(rule["changelog"] for rule in rules)


def test_reprocess_does_not_rewrite_snapshot(client: TestClient, store: JsonDatasetStore) -> None:
    scrape_openai(client)

    response = client.post("/api/reprocess/openai", params={"rules_version": "1"})

    assert response.status_code == 200
    assert response.json()["rules_version"] == "1"
    assert len(store.snapshots("openai")) == 1
    assert store.load_latest("openai").rules_version == "2"
    assert client.post("/api/reprocess/openai", params={"rules_version": "99"}).status_code == 400


def test_analyze_simple(client: TestClient) -> None:
    response = client.post("/api/analyze/simple", json={"url": LISTING_URL})

    assert response.status_code == 200
    body = response.json()
    assert body["total_jobs"] == 4
    assert body["jobs"][0]["level"] == "Principal"
    assert body["jobs"][0]["estimated_salary"]["max"] == 600
