from __future__ import annotations

import logging

import pandas as pd

from cpia_dashboard.config import TABLE_DECIMALS
from cpia_dashboard.core.data_prep import DISPLAY_NAME_COL, PERIOD_COL, SCORE_COL

logger = logging.getLogger(__name__)

# Header of the period column in the wide table
TABLE_PERIOD_COL = "Year"

DEFAULT_EMPTY_TABLE_MESSAGE = "No data available for the selected country/comparators and criterion."

EMPTY_PLOT_TITLE = "No Data Available"
EMPTY_PLOT_MESSAGE = (
    "The selected country/comparators have no data for this criterion.\n"
    "Please try a different selection or dataset."
)


def to_wide(plot_data: pd.DataFrame, decimals: int = TABLE_DECIMALS) -> pd.DataFrame:
    """
    Pivot prepared plot data into a Year x series table for display.

    - one row per year, sorted ascending
    - one column per display_name, in order of first appearance
    - values rounded to `decimals` (1 by default)

    Duplicate (year, display_name) pairs should not come out of compose();
    if they do they are averaged rather than rejected.

    Empty input gives a zero-row frame with only the Year column. Callers
    show empty_table_message() instead of rendering that frame.
    """
    if plot_data is None or plot_data.empty:
        return pd.DataFrame({TABLE_PERIOD_COL: pd.Series(dtype="int64")})

    long = plot_data[[PERIOD_COL, DISPLAY_NAME_COL, SCORE_COL]].rename(
        columns={PERIOD_COL: TABLE_PERIOD_COL}
    )

    dupes = long.duplicated(subset=[TABLE_PERIOD_COL, DISPLAY_NAME_COL])
    if dupes.any():
        logger.warning(
            "%s duplicate Year/series pair(s) in plot data; averaging them: %s",
            int(dupes.sum()),
            long.loc[dupes, [TABLE_PERIOD_COL, DISPLAY_NAME_COL]].drop_duplicates().values.tolist(),
        )

    series_order = list(dict.fromkeys(long[DISPLAY_NAME_COL]))

    wide = long.pivot_table(
        index=TABLE_PERIOD_COL,
        columns=DISPLAY_NAME_COL,
        values=SCORE_COL,
        aggfunc="mean",
        dropna=False,
    )
    wide = wide.reindex(columns=series_order).sort_index()
    wide = wide.round(decimals)
    wide.columns.name = None
    return wide.reset_index()


def empty_table_message(message: str = DEFAULT_EMPTY_TABLE_MESSAGE) -> pd.DataFrame:
    """Single-cell table shown in place of an empty wide table."""
    return pd.DataFrame({"Message": [message]})
