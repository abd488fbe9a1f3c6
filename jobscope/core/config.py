from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Jobscope"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    CACHE_TTL: int = 300  # Summary cache time-to-live in seconds

    # Fetching
    USER_AGENT: str = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ACCEPT_LANGUAGE: str = "en-US,en;q=0.9"
    REQUEST_TIMEOUT: float = 30.0  # Per-request timeout in seconds
    MAX_RETRIES: int = 3  # urllib3 retries on 429/5xx
    USE_BROWSER: bool = False  # Render pages with headless Chrome instead of requests

    # Batch scraping
    MIN_DELAY: float = 2.0  # Minimum delay between scrape runs in seconds
    REQUEST_DELAY: float = 0.5  # Courtesy delay before each job page request
    MAX_WORKERS: int = 2  # Job pages fetched concurrently per run
    MAX_JOBS_PER_RUN: int = 100
    SCRAPE_STATUS_TTL: int = 1200  # A scrape marked active expires after 20 minutes

    # Extraction
    DEFAULT_LOCATION: str = "San Francisco"
    SKILL_STRATEGY: str = "title"  # "title" (role archetype rules) or "content" (page text scan)
    RULES_VERSION: str = "2"

    # Aggregation
    TOP_SKILLS_LIMIT: int = 15
    TOP_PAYING_LIMIT: int = 10

    # Storage
    DATA_DIR: str = "data"

    class Config:  # pylint: disable=R0903
        env_file = ".env"
        extra = "ignore"  # Ignore extra fields from .env file


settings = Settings()
