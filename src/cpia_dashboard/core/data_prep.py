from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

import logging

import pandas as pd

from cpia_dashboard.core.schema import (
    ECONOMY_COL,
    GROUP_COL,
    INCOME_GROUP_COL,
    REGION_COL,
    YEAR_COL,
    UnknownIndicatorError,
    require_indicator,
)

logger = logging.getLogger(__name__)

__all__ = [
    "Role",
    "LineStyle",
    "ComparatorKind",
    "PreparedSeriesRow",
    "PLOT_COLUMNS",
    "UnknownIndicatorError",
    "empty_plot_frame",
    "extract_entity",
    "extract_group",
    "extract_regions",
    "extract_income_groups",
    "extract_peers",
    "compose",
    "to_rows",
]

# Columns of prepared (plot-ready) data
SERIES_COL = "economy"
PERIOD_COL = "year"
SCORE_COL = "score"
ROLE_COL = "role"
DISPLAY_NAME_COL = "display_name"
LINE_TYPE_COL = "line_type"
COMPARATOR_COL = "comparator_category"

PLOT_COLUMNS = [
    SERIES_COL,
    PERIOD_COL,
    SCORE_COL,
    REGION_COL,
    INCOME_GROUP_COL,
    ROLE_COL,
    DISPLAY_NAME_COL,
    LINE_TYPE_COL,
    COMPARATOR_COL,
]


class Role(str, Enum):
    FOCAL = "Selected Country"
    COMPARATOR = "Comparator"


class LineStyle(str, Enum):
    SOLID = "solid"
    DASHED = "dashed"


class ComparatorKind(str, Enum):
    REGION = "region"
    INCOME_TIER = "income_group"
    PEER = "country"


@dataclass(frozen=True)
class PreparedSeriesRow:
    economy: str
    year: int
    score: float
    region: Optional[str]
    income_group: Optional[str]
    role: Role
    display_name: str
    line_type: LineStyle
    comparator_category: Optional[ComparatorKind] = None


def empty_plot_frame() -> pd.DataFrame:
    """Zero-row frame with the prepared-data columns."""
    return pd.DataFrame(columns=PLOT_COLUMNS)


def _selection(values: Optional[Iterable[str]]) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        return [values]
    return [v for v in values]


def _project_countries(data: pd.DataFrame, countries: List[str], indicator: str) -> pd.DataFrame:
    """
    Rows for `countries` as (economy, year, score, region, income_group),
    with missing scores dropped.
    """
    rows = data.loc[
        data[ECONOMY_COL].isin(countries),
        [ECONOMY_COL, YEAR_COL, indicator, REGION_COL, INCOME_GROUP_COL],
    ]
    out = rows.rename(columns={YEAR_COL: PERIOD_COL, indicator: SCORE_COL})
    return out[out[SCORE_COL].notna()].copy()


def _finish(frame: pd.DataFrame) -> pd.DataFrame:
    if frame.empty:
        return empty_plot_frame()
    return frame[PLOT_COLUMNS].reset_index(drop=True)


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------

def extract_entity(data: pd.DataFrame, entity: str, indicator: str) -> pd.DataFrame:
    """
    Prepare the selected country's series for `indicator`.

    The selected country is the only FOCAL series and is drawn with a solid
    line. A country with no scored rows gives an empty frame, not an error.
    """
    require_indicator(data, indicator, "data")

    out = _project_countries(data, [entity], indicator)
    out[ROLE_COL] = Role.FOCAL.value
    out[DISPLAY_NAME_COL] = out[SERIES_COL]
    out[LINE_TYPE_COL] = LineStyle.SOLID.value
    out[COMPARATOR_COL] = None
    return _finish(out)


def extract_group(
    group_data: pd.DataFrame,
    selected_groups: Optional[Iterable[str]],
    indicator: str,
    comparator_kind: ComparatorKind,
) -> pd.DataFrame:
    """
    Prepare group-average comparator series (regions or income groups).

    One implementation serves both kinds; `comparator_kind` decides which of
    region / income_group carries the group name, the other stays empty.
    No selection returns an empty frame straight away.
    """
    groups = _selection(selected_groups)
    if not groups:
        return empty_plot_frame()

    kind = ComparatorKind(comparator_kind)
    if kind is ComparatorKind.PEER:
        raise ValueError("Group comparators must be REGION or INCOME_TIER; use extract_peers for countries.")

    require_indicator(group_data, indicator, "group data")

    rows = group_data.loc[group_data[GROUP_COL].isin(groups), [GROUP_COL, YEAR_COL, indicator]]
    rows = rows[rows[indicator].notna()]

    out = pd.DataFrame(
        {
            SERIES_COL: rows[GROUP_COL],
            PERIOD_COL: rows[YEAR_COL],
            SCORE_COL: rows[indicator],
        }
    )
    out[REGION_COL] = out[SERIES_COL] if kind is ComparatorKind.REGION else None
    out[INCOME_GROUP_COL] = out[SERIES_COL] if kind is ComparatorKind.INCOME_TIER else None
    out[ROLE_COL] = Role.COMPARATOR.value
    out[DISPLAY_NAME_COL] = out[SERIES_COL]
    out[LINE_TYPE_COL] = LineStyle.DASHED.value
    out[COMPARATOR_COL] = kind.value
    return _finish(out)


def extract_regions(group_data: pd.DataFrame, selected_regions: Optional[Iterable[str]], indicator: str) -> pd.DataFrame:
    return extract_group(group_data, selected_regions, indicator, ComparatorKind.REGION)


def extract_income_groups(
    group_data: pd.DataFrame, selected_income_groups: Optional[Iterable[str]], indicator: str
) -> pd.DataFrame:
    return extract_group(group_data, selected_income_groups, indicator, ComparatorKind.INCOME_TIER)


def extract_peers(data: pd.DataFrame, peer_ids: Optional[Iterable[str]], indicator: str) -> pd.DataFrame:
    """
    Prepare user-picked peer countries as comparators.

    Unlike group averages, peers keep their own region and income group.
    """
    peers = _selection(peer_ids)
    if not peers:
        return empty_plot_frame()

    require_indicator(data, indicator, "data")

    out = _project_countries(data, peers, indicator)
    out[ROLE_COL] = Role.COMPARATOR.value
    out[DISPLAY_NAME_COL] = out[SERIES_COL]
    out[LINE_TYPE_COL] = LineStyle.DASHED.value
    out[COMPARATOR_COL] = ComparatorKind.PEER.value
    return _finish(out)


# ---------------------------------------------------------------------------
# Composer
# ---------------------------------------------------------------------------

def compose(
    data: pd.DataFrame,
    group_data: pd.DataFrame,
    focal_entity: str,
    indicator: str,
    regions: Optional[Iterable[str]] = None,
    income_tiers: Optional[Iterable[str]] = None,
    peers: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """
    Combine the selected country with every requested comparator.

    Output is sorted by (year, display_name) with a stable sort, so the same
    inputs always give the same frame. Display names are not deduplicated;
    country and group names are expected not to collide.
    """
    parts = [
        extract_entity(data, focal_entity, indicator),
        extract_regions(group_data, regions, indicator),
        extract_income_groups(group_data, income_tiers, indicator),
        extract_peers(data, peers, indicator),
    ]
    non_empty = [p for p in parts if not p.empty]
    if not non_empty:
        return empty_plot_frame()

    combined = pd.concat(non_empty, ignore_index=True)
    combined = combined.sort_values([PERIOD_COL, DISPLAY_NAME_COL], kind="mergesort")

    logger.debug(
        "Composed %s rows for %s/%s (%s series)",
        len(combined), focal_entity, indicator, combined[DISPLAY_NAME_COL].nunique(),
    )
    return combined.reset_index(drop=True)


def _optional(value) -> Optional[str]:
    return None if pd.isna(value) else value


def to_rows(plot_data: pd.DataFrame) -> List[PreparedSeriesRow]:
    rows: List[PreparedSeriesRow] = []
    for rec in plot_data.to_dict(orient="records"):
        category = _optional(rec[COMPARATOR_COL])
        rows.append(
            PreparedSeriesRow(
                economy=rec[SERIES_COL],
                year=int(rec[PERIOD_COL]),
                score=float(rec[SCORE_COL]),
                region=_optional(rec[REGION_COL]),
                income_group=_optional(rec[INCOME_GROUP_COL]),
                role=Role(rec[ROLE_COL]),
                display_name=rec[DISPLAY_NAME_COL],
                line_type=LineStyle(rec[LINE_TYPE_COL]),
                comparator_category=ComparatorKind(category) if category is not None else None,
            )
        )
    return rows
