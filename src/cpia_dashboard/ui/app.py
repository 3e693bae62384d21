from __future__ import annotations

import logging
from typing import Dict, Optional

import pandas as pd
import streamlit as st

from cpia_dashboard.config import APP_NAME, APP_VERSION, LOG_LEVEL
from cpia_dashboard.core.data_loader import (
    INCOME_GROUP_TYPE,
    REGION_GROUP_TYPE,
    CpiaDatasets,
    DataLoaderError,
    get_datasets,
    list_countries,
    list_groups,
)
from cpia_dashboard.core.metadata_loader import (
    format_question_choices,
    load_governance_questions,
)
from cpia_dashboard.core.query_engine import (
    CompareQuery,
    CompareResult,
    QueryEngineError,
    run_compare_query,
)
from cpia_dashboard.core.schema import SchemaError, UnknownIndicatorError, indicator_columns
from cpia_dashboard.core.table import (
    EMPTY_PLOT_MESSAGE,
    EMPTY_PLOT_TITLE,
    TABLE_PERIOD_COL,
    empty_table_message,
)

logger = logging.getLogger(__name__)


def _load_datasets_or_stop() -> CpiaDatasets:
    """
    Startup gate: nothing is served unless all four tables pass validation.
    """
    try:
        return get_datasets()
    except SchemaError as err:
        st.error("CPIA data failed validation; the dashboard cannot start.")
        st.code(str(err))
    except DataLoaderError as err:
        st.error("CPIA data could not be loaded; the dashboard cannot start.")
        st.code(str(err))
    st.stop()


def _question_choices(data: pd.DataFrame) -> tuple[Optional[pd.DataFrame], Dict[str, str]]:
    available = indicator_columns(data)
    try:
        questions = load_governance_questions(available=available)
    except (FileNotFoundError, ValueError) as err:
        logger.warning("Question metadata unavailable, using bare codes: %s", err)
        return None, {code: code.upper() for code in available}
    if questions.empty:
        return None, {code: code.upper() for code in available}
    return questions, format_question_choices(questions)


def _render_sidebar(datasets: CpiaDatasets) -> tuple[CompareQuery, Optional[pd.DataFrame]]:
    with st.sidebar:
        st.header("Data Selection")

        use_africaii = st.checkbox(
            "Use African Integrity Indicators (Africa only)",
            value=False,
            help="Toggle on to include African Integrity Index data for African countries.",
        )
        data, group_data = datasets.for_source(use_africaii)

        questions, choices = _question_choices(data)
        codes = list(choices.keys())
        question = st.selectbox(
            "CPIA Criterion:",
            options=codes,
            index=codes.index("q12b") if "q12b" in codes else 0,
            format_func=lambda k: choices.get(k, k),
        )

        countries = list_countries(data)
        country = st.selectbox("Select Country:", options=countries)

        st.divider()
        st.header("Comparators")
        regions = st.multiselect("Regions:", options=list_groups(group_data, REGION_GROUP_TYPE))
        income_groups = st.multiselect("Income Groups:", options=list_groups(group_data, INCOME_GROUP_TYPE))
        custom_countries = st.multiselect("Countries:", options=countries)

    query = CompareQuery(
        country=country or "",
        question=question or "",
        regions=list(regions),
        income_groups=list(income_groups),
        custom_countries=list(custom_countries),
        use_africaii=use_africaii,
    )
    return query, questions


def _render_result(result: CompareResult) -> None:
    st.subheader(f"Estimated CPIA Scores Over Time: {result.query.question.upper()} - {result.question_label}")

    if result.is_empty:
        st.info(f"**{EMPTY_PLOT_TITLE}**\n\n{EMPTY_PLOT_MESSAGE}")
        st.subheader("Data Table")
        st.dataframe(empty_table_message(), hide_index=True, use_container_width=True)
        return

    st.line_chart(result.table_data.set_index(TABLE_PERIOD_COL))

    st.subheader("Data Table")
    st.dataframe(result.table_data, hide_index=True, use_container_width=True)


def run_app() -> None:
    logging.basicConfig(level=LOG_LEVEL)

    st.set_page_config(page_title=APP_NAME, layout="wide")
    st.title(APP_NAME)
    st.caption(f"Version {APP_VERSION}")

    datasets = _load_datasets_or_stop()
    query, questions = _render_sidebar(datasets)

    try:
        result = run_compare_query(datasets, query, questions=questions)
    except UnknownIndicatorError as err:
        st.error(str(err))
        return
    except QueryEngineError as err:
        st.warning(str(err))
        return

    _render_result(result)
