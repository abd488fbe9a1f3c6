from __future__ import annotations

from typing import Dict, List, Union

import pytest

from jobscope.core import caching
from jobscope.core.config import settings
from jobscope.core.errors import FetchError
from jobscope.services.fetcher import FetchResponse

LISTING_URL = "https://openai.com/careers/search/"

LISTING_HTML = """
<html><body>
<nav><a href="/about">About us</a></nav>
<ul class="jobs">
  <li><a href="/careers/frontend-engineer">Frontend Engineer</a><span>San Francisco</span></li>
  <li><a href="/careers/principal-engineer-gpu-platform">Principal Engineer, GPU Platform</a><span>Remote</span></li>
  <li><a href="/careers/account-director-sales">Account Director – Sales</a><span>New York</span></li>
  <li><a href="/careers/research-engineer-broken">Research Engineer, Pretraining</a><span>London</span></li>
  <li><a href="/careers/">Careers</a></li>
</ul>
</body></html>
"""

JOB_PAGES = {
    "https://openai.com/careers/frontend-engineer": """
        <html><body><main>
        <h1>Frontend Engineer</h1>
        <p>Build React components for the ChatGPT web app.</p>
        <p>$250K – $350K + Offers Equity</p>
        </main></body></html>
    """,
    "https://openai.com/careers/principal-engineer-gpu-platform": """
        <html><body><main>
        <h1>Principal Engineer, GPU Platform</h1>
        <p>You will react quickly to production incidents across our GPU fleet.</p>
        <p>$405K – $590K</p>
        </main></body></html>
    """,
    "https://openai.com/careers/account-director-sales": """
        <html><body><main>
        <h1>Account Director – Sales</h1>
        <p>Own strategic relationships with our largest customers.</p>
        </main></body></html>
    """,
}


class FakeFetcher:
    """Serves canned pages; a URL mapped to an exception raises it."""

    def __init__(self, pages: Dict[str, Union[str, FetchResponse, Exception]]):
        self.pages = pages
        self.calls: List[str] = []

    def fetch(self, url: str) -> FetchResponse:
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            return FetchResponse(url=url, status=404, text="Not Found")
        if isinstance(page, Exception):
            raise page
        if isinstance(page, FetchResponse):
            return page
        return FetchResponse(url=url, status=200, text=page)


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setattr(settings, "MIN_DELAY", 0.0)
    monkeypatch.setattr(settings, "REQUEST_DELAY", 0.0)
    monkeypatch.setattr(settings, "DATA_DIR", str(tmp_path / "data"))
    caching._cache.clear()


@pytest.fixture
def openai_fetcher() -> FakeFetcher:
    pages: Dict[str, Union[str, FetchResponse, Exception]] = {LISTING_URL: LISTING_HTML}
    pages.update(JOB_PAGES)
    pages["https://openai.com/careers/research-engineer-broken"] = FetchError(
        "https://openai.com/careers/research-engineer-broken", "ConnectionError: connection reset"
    )
    return FakeFetcher(pages)


@pytest.fixture
def fake_fetcher_cls():
    return FakeFetcher
