"""Tests for table and JSON rendering."""

import json

import pytest

from budget_tree.render import JSONRenderer, OutputFormat, TableRenderer, render_session
from budget_tree.session import AllocationSession


@pytest.fixture
def session(budget_tree):
    return AllocationSession(budget_tree)


class TestTableRenderer:

    def test_contains_labels_and_grand_total(self, session):
        output = TableRenderer().render(session)
        for label in ("Operations", "Salaries", "Search", "Reserve", "Grand Total"):
            assert label in output
        assert "450.00" in output

    def test_children_indented(self, session):
        lines = TableRenderer().render(session).splitlines()
        search = next(line for line in lines if "Search" in line)
        online = next(line for line in lines if "Online" in line)
        assert search.index("Search") == online.index("Online") + 2

    def test_variance_column(self, session):
        session.apply_percentage("9", 10)
        output = TableRenderer().render(session)
        assert "10.00%" in output
        assert "0.00%" in output

    def test_depth_limit(self, session):
        output = TableRenderer().render(session, depth=0)
        assert "Operations" in output
        assert "Salaries" not in output
        assert "Grand Total" in output

    def test_places(self, session):
        output = TableRenderer().render(session, value_places=0, variance_places=1)
        assert "450" in output
        assert "450.00" not in output
        assert "0.0%" in output

    def test_width_option(self, session):
        output = TableRenderer().render(session, width=60)
        assert max(len(line) for line in output.splitlines()) <= 60


class TestJSONRenderer:

    def test_structure(self, session):
        data = json.loads(JSONRenderer().render(session))
        assert data["grandTotal"] == 450
        assert len(data["rows"]) == 9
        first = data["rows"][0]
        assert set(first) == {
            "id", "label", "depth", "value", "originalValue", "variance", "isLeaf",
        }
        assert first["label"] == "Operations"
        assert first["isLeaf"] is False

    def test_values_rounded(self, session):
        session.apply_value("9", 10.126)
        data = json.loads(JSONRenderer().render(session))
        reserve = next(r for r in data["rows"] if r["id"] == "9")
        assert reserve["value"] == 10.13
        assert reserve["variance"] == -79.75

    def test_depth_limit(self, session):
        data = json.loads(JSONRenderer().render(session, depth=1))
        assert max(r["depth"] for r in data["rows"]) == 1
        assert "6" not in {r["id"] for r in data["rows"]}


def test_render_session_dispatch(session):
    assert json.loads(render_session(session, format=OutputFormat.JSON))["grandTotal"] == 450
    assert "Grand Total" in render_session(session)
