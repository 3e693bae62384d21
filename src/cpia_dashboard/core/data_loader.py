from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import logging

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from cpia_dashboard.config import (
    CPIA_AFRICAII_SOURCE,
    CPIA_GROUP_AFRICAII_SOURCE,
    CPIA_GROUP_STANDARD_SOURCE,
    CPIA_STANDARD_SOURCE,
    HTTP_TIMEOUT_SECONDS,
)
from cpia_dashboard.core.schema import (
    ECONOMY_COL,
    GROUP_COL,
    GROUP_TYPE_COL,
    validate_datasets,
)

logger = logging.getLogger(__name__)

# Values of the group_type column in the group-average tables
REGION_GROUP_TYPE = "Region"
INCOME_GROUP_TYPE = "Income Group"

DATASET_NAMES = ["standard", "africaii", "group_standard", "group_africaii"]


class DataLoaderError(Exception):
    """Raised when a dataset source cannot be read."""


@dataclass(frozen=True)
class CpiaDatasets:
    standard: pd.DataFrame
    africaii: pd.DataFrame
    group_standard: pd.DataFrame
    group_africaii: pd.DataFrame

    def for_source(self, use_africaii: bool = False) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """(country data, group data) for the chosen score source."""
        if use_africaii:
            return self.africaii, self.group_africaii
        return self.standard, self.group_standard


def _build_retry_session() -> requests.Session:
    """
    Build a requests Session with conservative retries for remote CSVs.
    """
    session = requests.Session()

    retry = Retry(
        total=5,
        connect=5,
        read=5,
        status=5,
        backoff_factor=0.6,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry, pool_connections=4, pool_maxsize=4)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


_SESSION: Optional[requests.Session] = None
_DATASETS_CACHE: Optional[CpiaDatasets] = None


def _get_session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = _build_retry_session()
    return _SESSION


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _fetch_csv(url: str, timeout_seconds: int) -> pd.DataFrame:
    try:
        resp = _get_session().get(url, timeout=timeout_seconds)
    except requests.RequestException as exc:
        raise DataLoaderError(f"HTTP error while fetching {url}: {exc}") from exc

    if resp.status_code != 200:
        preview = (resp.text or "")[:200]
        raise DataLoaderError(f"Fetching {url} failed (status={resp.status_code}). Preview: {preview}")

    try:
        return pd.read_csv(io.StringIO(resp.text))
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise DataLoaderError(f"Could not parse CSV from {url}: {exc}") from exc


def read_table(source: str, timeout_seconds: int = HTTP_TIMEOUT_SECONDS) -> pd.DataFrame:
    """
    Read one CPIA table from a local CSV path or an http(s) URL.
    """
    source = (source or "").strip()
    if not source:
        raise DataLoaderError("Empty dataset source. Check the CPIA_*_SOURCE settings in config.py.")

    if _is_url(source):
        logger.info("Fetching dataset from %s", source)
        return _fetch_csv(source, timeout_seconds)

    path = Path(source)
    if not path.exists():
        raise DataLoaderError(f"Dataset file not found: {path}")

    logger.info("Loading dataset: %s", path)
    try:
        return pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as exc:
        raise DataLoaderError(f"Could not parse CSV {path}: {exc}") from exc


def default_sources() -> Dict[str, str]:
    return {
        "standard": CPIA_STANDARD_SOURCE,
        "africaii": CPIA_AFRICAII_SOURCE,
        "group_standard": CPIA_GROUP_STANDARD_SOURCE,
        "group_africaii": CPIA_GROUP_AFRICAII_SOURCE,
    }


def load_datasets(sources: Optional[Dict[str, str]] = None) -> CpiaDatasets:
    """
    Read the four CPIA tables and validate them.

    `sources` maps standard / africaii / group_standard / group_africaii to a
    path or URL; missing keys fall back to config. A SchemaError from
    validation is propagated as is.
    """
    resolved = {**default_sources(), **(sources or {})}
    frames = {name: read_table(resolved[name]) for name in DATASET_NAMES}

    validate_datasets(
        standard_data=frames["standard"],
        africaii_data=frames["africaii"],
        group_standard_data=frames["group_standard"],
        group_africaii_data=frames["group_africaii"],
    )
    return CpiaDatasets(**frames)


def get_datasets(refresh: bool = False) -> CpiaDatasets:
    """
    Load and validate the configured datasets once per process.
    """
    global _DATASETS_CACHE
    if _DATASETS_CACHE is not None and not refresh:
        return _DATASETS_CACHE

    _DATASETS_CACHE = load_datasets()
    return _DATASETS_CACHE


# ---------------------------------------------------------------------------
# Selector choices
# ---------------------------------------------------------------------------

def list_countries(data: pd.DataFrame) -> List[str]:
    return sorted(data[ECONOMY_COL].dropna().astype(str).unique().tolist())


def list_groups(group_data: pd.DataFrame, group_type: str) -> List[str]:
    """Sorted group names of one kind, e.g. "Region" or "Income Group"."""
    rows = group_data[group_data[GROUP_TYPE_COL] == group_type]
    return sorted(rows[GROUP_COL].dropna().astype(str).unique().tolist())
