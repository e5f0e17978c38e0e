"""Pytest configuration and shared fixtures for budget-tree tests."""

from pathlib import Path

import pytest

from budget_tree.tree.loader import build_tree

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch):
    """Keep tests away from the real home directory and env config."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in (
        "BUDGET_TREE_HOME",
        "BUDGET_TREE_OUTPUT_FORMAT",
        "BUDGET_TREE_QUIET",
        "BUDGET_TREE_ROUNDING_MODE",
        "BUDGET_TREE_ROUNDING_PLACES",
        "BUDGET_TREE_VARIANCE_PLACES",
        "BUDGET_TREE_WIDTH",
        "BUDGET_TREE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def budget_file():
    return FIXTURES / "budget.json"


@pytest.fixture
def budget_rows():
    """Operations(Salaries 100, Rent 200), Marketing(Online(Search 30, Social 70), Print 0), Reserve 50."""
    return [
        {
            "id": "1",
            "label": "Operations",
            "children": [
                {"id": "2", "label": "Salaries", "value": 100},
                {"id": "3", "label": "Rent", "value": 200},
            ],
        },
        {
            "id": "4",
            "label": "Marketing",
            "children": [
                {
                    "id": "5",
                    "label": "Online",
                    "children": [
                        {"id": "6", "label": "Search", "value": 30},
                        {"id": "7", "label": "Social", "value": 70},
                    ],
                },
                {"id": "8", "label": "Print", "value": 0},
            ],
        },
        {"id": "9", "label": "Reserve", "value": 50},
    ]


@pytest.fixture
def budget_tree(budget_rows):
    return build_tree(budget_rows)


@pytest.fixture
def simple_tree():
    """Root{A: 100, B: 200}."""
    return build_tree([
        {
            "id": "root",
            "label": "Root",
            "children": [
                {"id": "A", "label": "A", "value": 100},
                {"id": "B", "label": "B", "value": 200},
            ],
        }
    ])
