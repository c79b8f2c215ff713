"""
Tests for configuration checks and the milestone smoke check script.
"""

import re
from datetime import timedelta

import pytest

from linear_kanban_mcp import config, diagnostics
from linear_kanban_mcp.time_utils import date_in_days, parse_timestamp, utc_now
from tests.conftest import make_milestone, make_project


@pytest.mark.parametrize("key", ["", "SET_YOUR_API_KEY_HERE", "undefined"])
def test_validate_api_key_rejects_placeholders(key, capsys):
    with pytest.raises(SystemExit) as exc_info:
        config.validate_api_key(key)

    assert exc_info.value.code == 1
    assert "LINEAR_API_KEY" in capsys.readouterr().err


def test_validate_api_key_accepts_real_key():
    assert config.validate_api_key("lin_api_abc123") == "lin_api_abc123"


def test_find_project_is_case_insensitive():
    projects = [make_project("p1", "Website"), make_project("p2", "21App Mobile")]

    assert diagnostics.find_project(projects, "21app").id == "p2"
    assert diagnostics.find_project(projects, "nothing") is None


@pytest.mark.asyncio
async def test_check_milestones_creates_test_milestone(linear, capsys):
    linear.projects.return_value = [make_project("p2", "21app")]
    linear.create_project_milestone.return_value = make_milestone("m1", "Test Milestone")

    assert await diagnostics.check_milestones(linear, "21app") == 0

    data = linear.create_project_milestone.await_args.args[0]
    assert data["name"] == "Test Milestone"
    assert data["projectId"] == "p2"
    assert data["targetDate"] == date_in_days(30)
    assert "Milestone created successfully!" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_check_milestones_lists_projects_when_missing(linear, capsys):
    linear.projects.return_value = [make_project("p1", "Website")]

    assert await diagnostics.check_milestones(linear, "21app") == 1

    out = capsys.readouterr().out
    assert "Website (ID: p1)" in out
    linear.create_project_milestone.assert_not_awaited()


def test_date_in_days_format():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", date_in_days(30))
    assert date_in_days(0) == utc_now().date().isoformat()


def test_parse_timestamp():
    first = parse_timestamp("2024-03-01T00:00:00.000Z")
    later = parse_timestamp("2024-03-01T00:00:01.000Z")

    assert later - first == timedelta(seconds=1)
    assert parse_timestamp(None) < first
