"""
Test configuration and fixtures for the Linear Kanban MCP server.

Provides:
- A mocked LinearClient (AsyncMock restricted to the real client's methods)
- The stdio server wired to that mock
- Factory helpers for Linear schema objects
- A helper to decode tool result envelopes
"""

import json
import logging
from typing import Any, Dict
from unittest.mock import AsyncMock

import pytest
from mcp.types import CallToolResult

from linear_kanban_mcp import stdio_server
from linear_kanban_mcp.linear_client import LinearClient
from linear_kanban_mcp.schemas import (
    Comment,
    Issue,
    NodeRef,
    Project,
    ProjectMilestone,
    ProjectUpdate,
    Team,
    User,
    WorkflowState,
)

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)

RELATION_ACCESSORS = [
    "issue_state",
    "issue_assignee",
    "issue_project",
    "issue_team",
    "issue_milestone",
    "project_lead",
    "update_user",
    "update_project",
    "milestone_project",
]

LISTINGS = [
    "teams",
    "team_states",
    "users",
    "projects",
    "project_issues",
    "project_updates",
    "project_milestones",
    "project_milestones_for_project",
    "milestone_issues",
    "issues",
    "search_issues",
    "issue_comments",
]

MUTATIONS = [
    "update_issue",
    "delete_issue",
    "update_project_milestone",
    "delete_project_milestone",
]


@pytest.fixture(scope="function")
def linear() -> AsyncMock:
    """
    Mocked Linear client.

    Relations resolve to None, listings to [] and mutations succeed unless a
    test configures otherwise.
    """
    logger.debug("Creating mocked Linear client")
    client = AsyncMock(spec=LinearClient)
    for name in RELATION_ACCESSORS:
        getattr(client, name).return_value = None
    for name in LISTINGS:
        getattr(client, name).return_value = []
    for name in MUTATIONS:
        getattr(client, name).return_value = True
    return client


@pytest.fixture(scope="function")
def server(monkeypatch, linear: AsyncMock):
    """The stdio server module with get_client() returning the mocked client."""
    async def fake_get_client():
        return linear

    monkeypatch.setattr(stdio_server, "get_client", fake_get_client)
    logger.debug("Wired stdio server to mocked Linear client")
    return stdio_server


def envelope(result: CallToolResult) -> Dict[str, Any]:
    """Decode the JSON envelope carried by a tool result."""
    assert len(result.content) == 1
    return json.loads(result.content[0].text)


# ============== Factories ==============


def make_team(team_id: str = "team-1", name: str = "Engineering", **kwargs) -> Team:
    return Team(id=team_id, name=name, key=kwargs.pop("key", "ENG"), **kwargs)


def make_state(state_id: str, name: str, position: float, **kwargs) -> WorkflowState:
    return WorkflowState(id=state_id, name=name, position=position,
                         type=kwargs.pop("type", "unstarted"), color=kwargs.pop("color", "#cccccc"), **kwargs)


def make_user(user_id: str = "user-1", name: str = "Ada Lovelace", **kwargs) -> User:
    return User(id=user_id, name=name, email=kwargs.pop("email", f"{user_id}@example.com"),
                display_name=kwargs.pop("display_name", name.split()[0].lower()), **kwargs)


def make_project(project_id: str = "project-1", name: str = "Kanban Revamp", **kwargs) -> Project:
    defaults = {
        "description": "Rebuild the board",
        "state": "started",
        "progress": 0.5,
        "url": f"https://linear.app/acme/project/{project_id}",
        "created_at": "2024-01-01T00:00:00.000Z",
        "updated_at": "2024-01-02T00:00:00.000Z",
    }
    defaults.update(kwargs)
    return Project(id=project_id, name=name, **defaults)


def make_issue(issue_id: str = "issue-1", title: str = "Fix login", **kwargs) -> Issue:
    defaults = {
        "identifier": "ENG-1",
        "description": "Login fails on Safari",
        "priority": 2,
        "priority_label": "High",
        "url": f"https://linear.app/acme/issue/{issue_id}",
        "created_at": "2024-01-01T00:00:00.000Z",
        "updated_at": "2024-01-02T00:00:00.000Z",
    }
    defaults.update(kwargs)
    return Issue(id=issue_id, title=title, **defaults)


def make_update(update_id: str = "update-1", created_at: str = "2024-02-01T00:00:00.000Z", **kwargs) -> ProjectUpdate:
    defaults = {
        "body": "Shipped the new board",
        "health": "onTrack",
        "url": f"https://linear.app/acme/update/{update_id}",
    }
    defaults.update(kwargs)
    return ProjectUpdate(id=update_id, created_at=created_at, **defaults)


def make_milestone(milestone_id: str = "milestone-1", name: str = "Beta", **kwargs) -> ProjectMilestone:
    defaults = {
        "description": "Public beta",
        "target_date": "2024-12-31",
        "sort_order": 1.0,
        "created_at": "2024-01-01T00:00:00.000Z",
        "updated_at": "2024-01-02T00:00:00.000Z",
    }
    defaults.update(kwargs)
    return ProjectMilestone(id=milestone_id, name=name, **defaults)


def make_comment(comment_id: str = "comment-1", body: str = "Looks good") -> Comment:
    return Comment(id=comment_id, body=body, created_at="2024-01-03T00:00:00.000Z")


def ref_to(node_id: str) -> NodeRef:
    return NodeRef(id=node_id)
