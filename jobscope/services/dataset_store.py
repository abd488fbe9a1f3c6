"""
JSON snapshot storage.

Each scrape run is written once as ``<company>-jobs-<UTC timestamp>.json``.
Snapshots are never rewritten; rule changes are applied when reading.
"""
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from jobscope.core.config import settings # pylint: disable=import-error
from jobscope.core.errors import DatasetNotFoundError # pylint: disable=import-error
from jobscope.models.job_model import CompanyDataset # pylint: disable=import-error

logger = logging.getLogger(__name__)

_SNAPSHOT_SUFFIX = re.compile(r'^(?P<slug>.+)-jobs-\d{8}T\d{6}\d*Z\.json$')


def company_slug(company: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', company.lower()).strip('-')
    return slug or 'company'


class JsonDatasetStore:
    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        self.data_dir = Path(data_dir if data_dir is not None else settings.DATA_DIR)

    def save(self, dataset: CompanyDataset) -> Path:
        """Write one snapshot and return its path."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        path = self.data_dir / f"{company_slug(dataset.company)}-jobs-{stamp}.json"
        path.write_text(dataset.model_dump_json(indent=2), encoding="utf-8")
        logger.info(f"💾 Saved {len(dataset.jobs)} jobs for {dataset.company} to {path}")
        return path

    def snapshots(self, company: str) -> List[Path]:
        """Snapshot files for ``company``, oldest first."""
        if not self.data_dir.exists():
            return []
        slug = company_slug(company)
        paths = []
        for path in self.data_dir.glob(f"{slug}-jobs-*.json"):
            match = _SNAPSHOT_SUFFIX.match(path.name)
            if match and match.group('slug') == slug:
                paths.append(path)
        return sorted(paths)

    def load(self, path: Union[str, Path]) -> CompanyDataset:
        return CompanyDataset.model_validate_json(Path(path).read_text(encoding="utf-8"))

    def load_latest(self, company: str) -> CompanyDataset:
        """
        Load the newest snapshot for a company.

        Raises:
            DatasetNotFoundError: no snapshot has been saved for ``company``
        """
        paths = self.snapshots(company)
        if not paths:
            raise DatasetNotFoundError(company)
        return self.load(paths[-1])

    def list_companies(self) -> List[str]:
        if not self.data_dir.exists():
            return []
        slugs = set()
        for path in self.data_dir.glob("*-jobs-*.json"):
            match = _SNAPSHOT_SUFFIX.match(path.name)
            if match:
                slugs.add(match.group('slug'))
        return sorted(slugs)
