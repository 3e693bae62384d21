"""Shared fixtures: small CPIA-shaped tables."""

import pandas as pd
import pytest

from cpia_dashboard.core.data_loader import CpiaDatasets


@pytest.fixture
def standard_data() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "economy": ["Kenya", "Kenya", "Kenya", "Tanzania", "Tanzania", "Uganda", "Uganda"],
            "cpia_year": [2020, 2021, 2022, 2020, 2021, 2020, 2021],
            "region": ["Africa"] * 7,
            "income_group": [
                "Lower middle income",
                "Lower middle income",
                "Lower middle income",
                "Lower middle income",
                "Lower middle income",
                "Low income",
                "Low income",
            ],
            "q12a": [3.5, 3.6, float("nan"), 3.2, 3.3, 3.0, float("nan")],
            "q12b": [3.54, 3.66, 3.7, 3.21, 3.34, 2.95, 3.05],
        }
    )


@pytest.fixture
def group_data() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "group": ["Africa", "Africa", "Asia", "Asia", "Low income", "Low income", "Lower middle income"],
            "cpia_year": [2020, 2021, 2020, 2021, 2020, 2021, 2020],
            "group_type": ["Region", "Region", "Region", "Region", "Income Group", "Income Group", "Income Group"],
            "q12a": [3.4, 3.5, 4.0, 4.1, 3.0, float("nan"), 3.3],
            "q12b": [3.1, 3.2, 3.9, 4.0, 2.9, 3.0, 3.2],
        }
    )


@pytest.fixture
def datasets(standard_data, group_data) -> CpiaDatasets:
    africaii = standard_data[standard_data["economy"] != "Uganda"].copy()
    africaii["q12a"] = africaii["q12a"] + 0.1
    return CpiaDatasets(
        standard=standard_data,
        africaii=africaii,
        group_standard=group_data,
        group_africaii=group_data[group_data["group_type"] == "Region"].copy(),
    )
