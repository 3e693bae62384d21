from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

import logging
import re

import pandas as pd

from cpia_dashboard.config import COLUMN_PREVIEW_LIMIT

logger = logging.getLogger(__name__)

# Column names in the CPIA country-level tables
ECONOMY_COL = "economy"
YEAR_COL = "cpia_year"
REGION_COL = "region"
INCOME_GROUP_COL = "income_group"

# Column names in the CPIA group-average tables
GROUP_COL = "group"
GROUP_TYPE_COL = "group_type"

# Question (indicator) columns look like q12a, q13b, q16 ...
INDICATOR_PATTERN = re.compile(r"^q\d+[a-z]?$")


class DatasetKind(str, Enum):
    ENTITY_LEVEL = "entity"
    GROUP_LEVEL = "group"


REQUIRED_COLUMNS = {
    DatasetKind.ENTITY_LEVEL: [ECONOMY_COL, YEAR_COL, REGION_COL, INCOME_GROUP_COL],
    DatasetKind.GROUP_LEVEL: [GROUP_COL, YEAR_COL, GROUP_TYPE_COL],
}


@dataclass
class SchemaCheck:
    """
    Outcome of checking one dataset against the shape the pipeline needs.

    ok=True means the dataset passed every check; otherwise `message` is a
    user-facing diagnostic and the list fields describe what went wrong.
    """
    name: str
    kind: DatasetKind
    ok: bool
    message: str = ""
    missing_columns: List[str] = field(default_factory=list)
    expected_columns: List[str] = field(default_factory=list)
    found_columns: List[str] = field(default_factory=list)


class SchemaError(Exception):
    """Raised when a source dataset fails structural validation."""

    def __init__(self, check: SchemaCheck):
        super().__init__(check.message)
        self.check = check


class UnknownIndicatorError(Exception):
    """Raised when a requested question column is not present in a dataset."""

    def __init__(self, indicator: str, available: List[str], source_name: str = "data"):
        self.indicator = indicator
        self.available = list(available)
        self.source_name = source_name
        super().__init__(
            f"Question '{indicator}' not found in {source_name}.\n"
            f"Available questions: {', '.join(self.available)}"
        )


# ---------------------------------------------------------------------------
# Indicator discovery
# ---------------------------------------------------------------------------

def indicator_columns(frame: pd.DataFrame) -> List[str]:
    """Question columns present in `frame`, in column order."""
    return [str(c) for c in frame.columns if INDICATOR_PATTERN.match(str(c))]


def require_indicator(frame: pd.DataFrame, indicator: str, source_name: str = "data") -> None:
    if indicator not in indicator_columns(frame):
        raise UnknownIndicatorError(indicator, indicator_columns(frame), source_name)


# ---------------------------------------------------------------------------
# Dataset checks
# ---------------------------------------------------------------------------

def _preview_columns(frame: pd.DataFrame) -> List[str]:
    return [str(c) for c in list(frame.columns)[:COLUMN_PREVIEW_LIMIT]]


def check_dataset(dataset: Any, kind: DatasetKind, name: Optional[str] = None) -> SchemaCheck:
    """
    Check `dataset` against the required shape for `kind`.

    Checks run in order and stop at the first failure:
      1. dataset is a pandas DataFrame (not None, a scalar, a dict, ...)
      2. the required columns for `kind` are present
      3. at least one question column (q12a, q12b, ...) is present

    Never raises and never coerces; see validate_dataset for the raising form.
    """
    kind = DatasetKind(kind)
    label = name or f"{kind.value}-level dataset"
    expected = list(REQUIRED_COLUMNS[kind])

    if dataset is None or not isinstance(dataset, pd.DataFrame):
        return SchemaCheck(
            name=label,
            kind=kind,
            ok=False,
            message=f"{label} must be a valid data frame (got {type(dataset).__name__})",
            expected_columns=expected,
        )

    found = _preview_columns(dataset)
    missing = [c for c in expected if c not in dataset.columns]
    if missing:
        return SchemaCheck(
            name=label,
            kind=kind,
            ok=False,
            message=(
                f"{label} is missing required columns: {', '.join(missing)}\n"
                f"Expected columns: {', '.join(expected)}\n"
                f"Found columns: {', '.join(found)}"
            ),
            missing_columns=missing,
            expected_columns=expected,
            found_columns=found,
        )

    if not indicator_columns(dataset):
        return SchemaCheck(
            name=label,
            kind=kind,
            ok=False,
            message=(
                f"{label} has no question columns (expected columns like q12a, q12b, etc.)\n"
                f"Found columns: {', '.join(found)}"
            ),
            expected_columns=expected,
            found_columns=found,
        )

    return SchemaCheck(name=label, kind=kind, ok=True, expected_columns=expected, found_columns=found)


def validate_dataset(dataset: Any, kind: DatasetKind, name: Optional[str] = None) -> None:
    check = check_dataset(dataset, kind, name)
    if not check.ok:
        # No chained context: the message is the whole diagnostic.
        raise SchemaError(check) from None


def validate_datasets(
    standard_data: Any,
    africaii_data: Any,
    group_standard_data: Any,
    group_africaii_data: Any,
) -> None:
    """
    Validate the four startup tables, failing on the first bad one.

    Meant to run once when the app starts; a SchemaError here should keep
    the app from serving anything.
    """
    datasets = [
        ("standard_data", standard_data, DatasetKind.ENTITY_LEVEL),
        ("africaii_data", africaii_data, DatasetKind.ENTITY_LEVEL),
        ("group_standard_data", group_standard_data, DatasetKind.GROUP_LEVEL),
        ("group_africaii_data", group_africaii_data, DatasetKind.GROUP_LEVEL),
    ]
    for name, dataset, kind in datasets:
        validate_dataset(dataset, kind, name)
        logger.info(
            "Validated %s: %s rows, questions=%s",
            name, len(dataset), indicator_columns(dataset),
        )
