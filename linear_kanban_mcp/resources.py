"""
Read-only resources: capped JSON snapshots of the workspace.

Unlike tools, resource reads have no envelope. Any failure is raised as a
ResourceReadError naming the URI.
"""

import asyncio
import json
import logging
from typing import Awaitable, Callable, Dict, List

from mcp.types import Resource

from . import shaping
from .errors import KanbanMCPError, ResourceReadError, TeamNotFound
from .linear_client import LinearClient
from .schemas import Project
from .time_utils import parse_timestamp

logger = logging.getLogger(__name__)

MIME_TYPE = "application/json"

ISSUE_SNAPSHOT_SIZE = 50
MILESTONE_SNAPSHOT_SIZE = 50
UPDATE_PROJECTS = 5
UPDATES_PER_PROJECT = 3
UPDATE_SNAPSHOT_SIZE = 10

RESOURCES: List[Resource] = [
    Resource(uri="linear://teams", name="Linear Teams",
             description="List of all teams in the Linear workspace", mimeType=MIME_TYPE),
    Resource(uri="linear://projects", name="Linear Projects",
             description="List of all projects in the Linear workspace", mimeType=MIME_TYPE),
    Resource(uri="linear://issues", name="Linear Issues",
             description="List of recent issues in the Linear workspace", mimeType=MIME_TYPE),
    Resource(uri="linear://workflow-states", name="Workflow States",
             description="Available workflow states (kanban columns) for organizing issues", mimeType=MIME_TYPE),
    Resource(uri="linear://project-updates", name="Recent Project Updates",
             description="Recent project updates across all projects in the workspace", mimeType=MIME_TYPE),
    Resource(uri="linear://milestones", name="Project Milestones",
             description="List of all milestones across projects in the workspace", mimeType=MIME_TYPE),
]


async def _teams(client: LinearClient) -> list:
    teams = await client.teams()
    return [shaping.team_summary(t) for t in teams]


async def _projects(client: LinearClient) -> list:
    projects = await client.projects()
    return [
        {
            "id": p.id,
            "name": p.name,
            "description": p.description,
            "state": p.state,
            "progress": p.progress,
        }
        for p in projects
    ]


async def _issues(client: LinearClient) -> list:
    issues = await client.issues(ISSUE_SNAPSHOT_SIZE)
    states = await asyncio.gather(*(client.issue_state(i) for i in issues))
    return [
        {
            "id": issue.id,
            "identifier": issue.identifier,
            "title": issue.title,
            "state": shaping.state_name(state),
            "priority": issue.priority_label,
            "url": issue.url,
        }
        for issue, state in zip(issues, states)
    ]


async def _workflow_states(client: LinearClient) -> list:
    teams = await client.teams()
    if not teams:
        raise TeamNotFound()
    states = await client.team_states(teams[0].id)
    return shaping.workflow_states(states, include_color=False)


async def _project_updates(client: LinearClient) -> list:
    projects = await client.projects()

    async def updates_for(project: Project) -> list:
        updates = await client.project_updates(project.id, UPDATES_PER_PROJECT)
        users = await asyncio.gather(*(client.update_user(u) for u in updates))
        return [
            {
                "projectId": project.id,
                "projectName": project.name,
                "id": update.id,
                "body": shaping.truncate(update.body, shaping.RESOURCE_UPDATE_BODY_LIMIT),
                "health": update.health,
                "createdAt": update.created_at,
                "user": shaping.name_of(user),
            }
            for update, user in zip(updates, users)
        ]

    per_project = await asyncio.gather(*(updates_for(p) for p in projects[:UPDATE_PROJECTS]))
    all_updates = [u for updates in per_project for u in updates]
    all_updates.sort(key=lambda u: parse_timestamp(u["createdAt"]), reverse=True)
    return all_updates[:UPDATE_SNAPSHOT_SIZE]


async def _milestones(client: LinearClient) -> list:
    milestones = await client.project_milestones(MILESTONE_SNAPSHOT_SIZE)
    projects = await asyncio.gather(*(client.milestone_project(m) for m in milestones))
    return [
        {
            "id": m.id,
            "name": m.name,
            "description": m.description,
            "targetDate": m.target_date,
            "project": shaping.ref(project),
        }
        for m, project in zip(milestones, projects)
    ]


_READERS: Dict[str, Callable[[LinearClient], Awaitable[list]]] = {
    "linear://teams": _teams,
    "linear://projects": _projects,
    "linear://issues": _issues,
    "linear://workflow-states": _workflow_states,
    "linear://project-updates": _project_updates,
    "linear://milestones": _milestones,
}


async def read(client: LinearClient, uri: str) -> str:
    """Return the JSON snapshot behind `uri`."""
    reader = _READERS.get(uri)
    try:
        if reader is None:
            raise KanbanMCPError(f"Unknown resource: {uri}")
        snapshot = await reader(client)
    except KanbanMCPError as e:
        logger.warning(f"Resource {uri} failed: {e.message}")
        raise ResourceReadError(uri, e.message) from e
    except Exception as e:
        logger.exception(f"Resource {uri} raised an unexpected error")
        raise ResourceReadError(uri, str(e)) from e
    return json.dumps(snapshot, indent=2, default=str)
