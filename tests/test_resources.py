"""
Tests for the read-only resources.
"""

import json

import pytest
from mcp.server.lowlevel.helper_types import ReadResourceContents

from linear_kanban_mcp import resources
from linear_kanban_mcp.errors import ResourceReadError, UpstreamCallFailure
from tests.conftest import (
    make_issue,
    make_milestone,
    make_project,
    make_state,
    make_team,
    make_update,
    ref_to,
)


@pytest.mark.asyncio
async def test_teams_snapshot(linear):
    linear.teams.return_value = [make_team("t1", "Engineering")]

    snapshot = json.loads(await resources.read(linear, "linear://teams"))

    assert snapshot == [{"id": "t1", "name": "Engineering", "key": "ENG", "description": None}]


@pytest.mark.asyncio
async def test_projects_snapshot(linear):
    linear.projects.return_value = [make_project("p1")]

    snapshot = json.loads(await resources.read(linear, "linear://projects"))

    assert set(snapshot[0]) == {"id", "name", "description", "state", "progress"}


@pytest.mark.asyncio
async def test_issues_snapshot(linear):
    linear.issues.return_value = [make_issue("i1", state=ref_to("s1"))]
    linear.issue_state.return_value = make_state("s1", "Todo", 0)

    snapshot = json.loads(await resources.read(linear, "linear://issues"))

    linear.issues.assert_awaited_once_with(50)
    assert snapshot == [{
        "id": "i1",
        "identifier": "ENG-1",
        "title": "Fix login",
        "state": "Todo",
        "priority": "High",
        "url": "https://linear.app/acme/issue/i1",
    }]


@pytest.mark.asyncio
async def test_workflow_states_sorted_without_color(linear):
    linear.teams.return_value = [make_team("t1")]
    linear.team_states.return_value = [make_state("s2", "Done", 2), make_state("s1", "Todo", 1)]

    snapshot = json.loads(await resources.read(linear, "linear://workflow-states"))

    assert [s["name"] for s in snapshot] == ["Todo", "Done"]
    assert all("color" not in s for s in snapshot)
    linear.team_states.assert_awaited_once_with("t1")


@pytest.mark.asyncio
async def test_workflow_states_without_teams(linear):
    with pytest.raises(ResourceReadError) as exc_info:
        await resources.read(linear, "linear://workflow-states")

    assert "linear://workflow-states" in exc_info.value.message
    assert "No team found" in exc_info.value.message


@pytest.mark.asyncio
async def test_project_updates_merged_newest_first_and_capped(linear):
    projects = [make_project(f"p{n}", f"Project {n}") for n in range(6)]
    linear.projects.return_value = projects

    async def updates_for(project_id, first):
        n = int(project_id[1:])
        return [
            make_update(f"{project_id}-u{k}", created_at=f"2024-03-{n * 3 + k + 1:02d}T00:00:00.000Z",
                        body="b" * 800)
            for k in range(first)
        ]

    linear.project_updates.side_effect = updates_for

    snapshot = json.loads(await resources.read(linear, "linear://project-updates"))

    # Only the first five projects are sampled, three updates each
    assert linear.project_updates.await_count == 5
    assert len(snapshot) == 10
    dates = [u["createdAt"] for u in snapshot]
    assert dates == sorted(dates, reverse=True)
    assert snapshot[0]["projectId"] == "p4"
    assert all(len(u["body"]) == 500 for u in snapshot)
    assert set(snapshot[0]) == {"projectId", "projectName", "id", "body", "health", "createdAt", "user"}


@pytest.mark.asyncio
async def test_milestones_snapshot(linear):
    linear.project_milestones.return_value = [make_milestone("m1", project=ref_to("p1"))]
    linear.milestone_project.return_value = make_project("p1", "Kanban Revamp")

    snapshot = json.loads(await resources.read(linear, "linear://milestones"))

    assert snapshot[0]["project"] == {"id": "p1", "name": "Kanban Revamp"}
    assert set(snapshot[0]) == {"id", "name", "description", "targetDate", "project"}


@pytest.mark.asyncio
async def test_unknown_resource(linear):
    with pytest.raises(ResourceReadError) as exc_info:
        await resources.read(linear, "linear://nope")

    assert exc_info.value.uri == "linear://nope"
    assert "linear://nope" in str(exc_info.value)


@pytest.mark.asyncio
async def test_upstream_failure_raises(linear):
    linear.teams.side_effect = UpstreamCallFailure("API error: 500")

    with pytest.raises(ResourceReadError) as exc_info:
        await resources.read(linear, "linear://teams")

    assert str(exc_info.value) == "Failed to read resource linear://teams: API error: 500"


@pytest.mark.asyncio
async def test_server_reads_json_contents(server, linear):
    linear.teams.return_value = [make_team()]

    contents = list(await server.read_resource("linear://teams"))

    assert len(contents) == 1
    assert isinstance(contents[0], ReadResourceContents)
    assert contents[0].mime_type == "application/json"
    assert json.loads(contents[0].content)[0]["id"] == "team-1"


@pytest.mark.asyncio
async def test_server_lists_resources(server):
    listed = await server.list_resources()

    assert listed is resources.RESOURCES
    assert len(listed) == 6
