"""Tests for dataset loading, startup validation and selector choices."""

import pandas as pd
import pytest
import requests

from cpia_dashboard.core import data_loader
from cpia_dashboard.core.data_loader import (
    INCOME_GROUP_TYPE,
    REGION_GROUP_TYPE,
    DataLoaderError,
    list_countries,
    list_groups,
    load_datasets,
    read_table,
)
from cpia_dashboard.core.schema import SchemaError


class _FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code


class _FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.exc is not None:
            raise self.exc
        return self.response


@pytest.fixture
def csv_sources(tmp_path, standard_data, group_data):
    sources = {}
    for name, frame in [
        ("standard", standard_data),
        ("africaii", standard_data),
        ("group_standard", group_data),
        ("group_africaii", group_data),
    ]:
        path = tmp_path / f"{name}.csv"
        frame.to_csv(path, index=False)
        sources[name] = str(path)
    return sources


def test_read_table_local_csv(csv_sources, standard_data):
    frame = read_table(csv_sources["standard"])
    assert list(frame.columns) == list(standard_data.columns)
    assert len(frame) == len(standard_data)


def test_read_table_missing_file(tmp_path):
    with pytest.raises(DataLoaderError, match="not found"):
        read_table(str(tmp_path / "nope.csv"))


def test_read_table_empty_source():
    with pytest.raises(DataLoaderError):
        read_table("  ")


def test_read_table_url(monkeypatch):
    session = _FakeSession(_FakeResponse("group,cpia_year,group_type,q12a\nAfrica,2020,Region,3.4\n"))
    monkeypatch.setattr(data_loader, "_get_session", lambda: session)

    frame = read_table("https://example.org/group.csv", timeout_seconds=5)

    assert session.calls == [("https://example.org/group.csv", 5)]
    assert frame["group"].tolist() == ["Africa"]
    assert frame["q12a"].tolist() == [3.4]


def test_read_table_url_bad_status(monkeypatch):
    session = _FakeSession(_FakeResponse("Not found", status_code=404))
    monkeypatch.setattr(data_loader, "_get_session", lambda: session)

    with pytest.raises(DataLoaderError, match="status=404"):
        read_table("https://example.org/missing.csv")


def test_read_table_url_transport_error(monkeypatch):
    session = _FakeSession(exc=requests.ConnectionError("boom"))
    monkeypatch.setattr(data_loader, "_get_session", lambda: session)

    with pytest.raises(DataLoaderError, match="HTTP error"):
        read_table("http://example.org/standard.csv")


def test_load_datasets_reads_and_validates(csv_sources):
    datasets = load_datasets(csv_sources)

    data, group_data = datasets.for_source(use_africaii=False)
    assert data is datasets.standard
    assert group_data is datasets.group_standard
    data, group_data = datasets.for_source(use_africaii=True)
    assert data is datasets.africaii
    assert group_data is datasets.group_africaii


def test_load_datasets_propagates_schema_error(tmp_path, csv_sources, group_data):
    bad = tmp_path / "bad_group.csv"
    group_data.drop(columns=["group_type"]).to_csv(bad, index=False)

    with pytest.raises(SchemaError, match="group_standard_data is missing required columns: group_type"):
        load_datasets({**csv_sources, "group_standard": str(bad)})


def test_get_datasets_caches(monkeypatch, datasets):
    calls = []

    def fake_load(sources=None):
        calls.append(sources)
        return datasets

    monkeypatch.setattr(data_loader, "load_datasets", fake_load)
    monkeypatch.setattr(data_loader, "_DATASETS_CACHE", None)

    assert data_loader.get_datasets() is datasets
    assert data_loader.get_datasets() is datasets
    assert len(calls) == 1

    data_loader.get_datasets(refresh=True)
    assert len(calls) == 2


def test_list_countries(standard_data):
    assert list_countries(standard_data) == ["Kenya", "Tanzania", "Uganda"]


def test_list_groups(group_data):
    assert list_groups(group_data, REGION_GROUP_TYPE) == ["Africa", "Asia"]
    assert list_groups(group_data, INCOME_GROUP_TYPE) == ["Low income", "Lower middle income"]
    assert list_groups(group_data, "Lending Category") == []


def test_list_countries_ignores_missing_names():
    frame = pd.DataFrame({"economy": ["Kenya", None, "Benin", "Kenya"]})
    assert list_countries(frame) == ["Benin", "Kenya"]


def test_read_table_non_utf8_file(tmp_path):
    """A Latin-1 encoded CSV surfaces as DataLoaderError, not a decode crash."""
    path = tmp_path / "latin1.csv"
    path.write_bytes("economy,cpia_year,region,income_group,q12a\nC\xf4te d'Ivoire,2020,Africa,Lower middle income,3.1\n".encode("latin-1"))

    with pytest.raises(DataLoaderError, match="Could not parse CSV"):
        read_table(str(path))


def test_read_table_directory_is_loader_error(tmp_path):
    with pytest.raises(DataLoaderError):
        read_table(str(tmp_path))


def test_load_datasets_unset_sources_fail_clearly(monkeypatch, tmp_path):
    """Unconfigured sources stop loading with a readable not-found error."""
    monkeypatch.setattr(data_loader, "CPIA_STANDARD_SOURCE", str(tmp_path / "standard_cpia.csv"))

    with pytest.raises(DataLoaderError, match="Dataset file not found: .*standard_cpia.csv"):
        load_datasets()
