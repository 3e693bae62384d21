from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import logging

import pandas as pd

from cpia_dashboard.core.data_loader import CpiaDatasets
from cpia_dashboard.core.data_prep import compose
from cpia_dashboard.core.metadata_loader import lookup_question_label
from cpia_dashboard.core.table import to_wide

logger = logging.getLogger(__name__)


class QueryEngineError(Exception):
    """Custom exception for malformed comparison queries."""


@dataclass
class CompareQuery:
    """
    One user selection on the dashboard.

    Comparator lists may be empty; an empty list means "no comparator of that
    kind", not "all of them".
    """
    country: str
    question: str
    regions: List[str] = field(default_factory=list)
    income_groups: List[str] = field(default_factory=list)
    custom_countries: List[str] = field(default_factory=list)
    use_africaii: bool = False


@dataclass
class CompareResult:
    query: CompareQuery
    plot_data: pd.DataFrame
    table_data: pd.DataFrame
    question_label: str

    @property
    def is_empty(self) -> bool:
        return self.plot_data.empty


def run_compare_query(
    datasets: CpiaDatasets,
    query: CompareQuery,
    questions: Optional[pd.DataFrame] = None,
) -> CompareResult:
    """
    Build the plot data and wide table for one selection.

    UnknownIndicatorError from the extractors is left to the caller, which
    can show the list of valid questions it carries.
    """
    if not str(query.country or "").strip():
        raise QueryEngineError("A country must be selected.")
    if not str(query.question or "").strip():
        raise QueryEngineError("A question (e.g. q12a) must be selected.")

    logger.info("Running compare query with params=%s", query)

    data, group_data = datasets.for_source(query.use_africaii)
    plot_data = compose(
        data=data,
        group_data=group_data,
        focal_entity=query.country,
        indicator=query.question,
        regions=query.regions,
        income_tiers=query.income_groups,
        peers=query.custom_countries,
    )

    if plot_data.empty:
        logger.info("No data for country=%s question=%s", query.country, query.question)

    return CompareResult(
        query=query,
        plot_data=plot_data,
        table_data=to_wide(plot_data),
        question_label=lookup_question_label(questions, query.question),
    )
