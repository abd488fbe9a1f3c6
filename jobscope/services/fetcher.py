"""
Page fetchers used by the batch scraper.

Both fetchers share one contract: ``fetch(url) -> FetchResponse`` or raise
FetchError when the page could not be retrieved at all. A non-2xx response
is returned, not raised; the caller decides whether to skip it.
"""
import logging
import os
import threading
from dataclasses import dataclass
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from webdriver_manager.chrome import ChromeDriverManager

from jobscope.core.config import settings # pylint: disable=import-error
from jobscope.core.errors import FetchError # pylint: disable=import-error

logger = logging.getLogger(__name__)


@dataclass
class FetchResponse:
    url: str
    status: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


CHROME_CANDIDATE_PATHS = (
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/usr/bin/chromium-browser",
    "/usr/bin/chromium",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
)


def get_chrome_executable_path() -> Optional[str]:
    """CHROME_BIN wins when it points at a file; otherwise the first installed candidate."""
    candidates = (os.environ.get("CHROME_BIN"),) + CHROME_CANDIDATE_PATHS
    return next((path for path in candidates if path and os.path.exists(path)), None)


def create_session_with_retries(max_retries: int = 3) -> requests.Session:
    """Create a requests session with retry logic"""
    session = requests.Session()
    retry = Retry(
        total=max_retries,
        read=max_retries,
        connect=max_retries,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 504, 429)
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount('http://', adapter)
    session.mount('https://', adapter)
    return session


class RequestsFetcher:
    """Plain HTTP fetcher for server-rendered career pages"""

    def __init__(self, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.session = session or create_session_with_retries(settings.MAX_RETRIES)
        self.headers = {
            'User-Agent': settings.USER_AGENT,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': settings.ACCEPT_LANGUAGE,
        }

    def fetch(self, url: str) -> FetchResponse:
        try:
            response = self.session.get(url, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e
        return FetchResponse(url=response.url or url, status=response.status_code, text=response.text)

    def close(self):
        self.session.close()


class BrowserFetcher:
    """
    Headless Chrome fetcher for career pages that render their listings with JavaScript.

    One driver is created lazily and reused; calls are serialized because a
    WebDriver session is not thread-safe.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self._driver = None
        self._lock = threading.Lock()

    def _get_driver(self):
        if self._driver is None:
            chrome_options = Options()
            chrome_options.add_argument('--headless=new')
            chrome_options.add_argument('--no-sandbox')
            chrome_options.add_argument('--disable-dev-shm-usage')
            chrome_options.add_argument('--disable-gpu')
            chrome_options.add_argument('--disable-blink-features=AutomationControlled')
            chrome_options.add_argument(f'user-agent={settings.USER_AGENT}')
            chrome_options.add_argument('--window-size=1920,1080')
            chrome_path = get_chrome_executable_path()
            if chrome_path:
                chrome_options.binary_location = chrome_path

            service = Service(ChromeDriverManager().install())
            self._driver = webdriver.Chrome(service=service, options=chrome_options)
            self._driver.set_page_load_timeout(self.timeout)
        return self._driver

    def fetch(self, url: str) -> FetchResponse:
        with self._lock:
            try:
                driver = self._get_driver()
                driver.get(url)
                html = driver.page_source
            except TimeoutException as e:
                raise FetchError(url, f"Page load timed out after {self.timeout}s") from e
            except WebDriverException as e:
                raise FetchError(url, f"Browser error: {e.msg or e}") from e
        # WebDriver does not expose the HTTP status; a rendered page counts as 200
        return FetchResponse(url=url, status=200, text=html)

    def close(self):
        with self._lock:
            if self._driver is not None:
                try:
                    self._driver.quit()
                except WebDriverException as e:
                    logger.warning(f"Error closing browser: {e}")
                self._driver = None


def create_fetcher(use_browser: Optional[bool] = None):
    if use_browser is None:
        use_browser = settings.USE_BROWSER
    return BrowserFetcher() if use_browser else RequestsFetcher()
