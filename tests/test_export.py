import pytest

from insightflow.errors import NotFoundError
from insightflow.modules.widgets.application.export import drill_down, embed_snippet, export_csv, export_filename


def test_csv_header_comes_from_first_row_and_values_are_quoted() -> None:
    rows = [
        {"month": "Jan", "revenue": 4000},
        {"month": "Feb", "revenue": 3000.5},
    ]
    assert export_csv(rows) == 'month,revenue\n"Jan","4000"\n"Feb","3000.5"'


def test_csv_escapes_quotes_and_renders_scalars() -> None:
    rows = [{"label": 'say "hi"', "flag": True, "empty": None, "whole": 2.0}]
    assert export_csv(rows) == 'label,flag,empty,whole\n"say ""hi""","true","","2"'


def test_csv_of_nothing_is_empty() -> None:
    assert export_csv([]) == ""


def test_csv_uses_first_row_columns_only() -> None:
    rows = [{"a": 1}, {"a": 2, "b": 3}, {"b": 4}]
    assert export_csv(rows) == 'a\n"1"\n"2"\n""'


def test_export_filename() -> None:
    assert export_filename("Revenue by Month!") == "revenue_by_month_.csv"
    assert export_filename("") == "export.csv"
    assert export_filename(None) == "export.csv"


def test_drill_down_returns_the_full_row() -> None:
    rows = [{"month": "Jan", "revenue": 4000, "status": "Active"}]
    assert drill_down(rows, 0) == rows[0]
    with pytest.raises(NotFoundError):
        drill_down(rows, 1)


def test_embed_snippet_points_at_dashboard() -> None:
    snippet = embed_snippet("https://bi.example.com/app#/dashboards", "d-42")
    assert snippet.startswith('<iframe src="https://bi.example.com/app#/embed/d-42"')
    assert 'width="100%"' in snippet
