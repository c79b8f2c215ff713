"""
Tool catalog and dispatcher.

TOOLS is the static catalog served by list_tools. Each entry has a handler
in _HANDLERS taking (client, arguments) and returning the payload that goes
into the success envelope. dispatch() turns any raised error into an error
envelope, so a tool call never fails at the transport level.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List

from mcp.types import CallToolResult, Tool

from . import shaping
from .envelope import error_result, success_result
from .errors import (
    KanbanMCPError,
    MissingRequiredArgument,
    StateNotFound,
    TeamNotFound,
    UnknownOperation,
)
from .linear_client import LinearClient
from .schemas import Issue, ProjectUpdateHealth

logger = logging.getLogger(__name__)

# Default page sizes, per operation
DEFAULT_ISSUE_LIMIT = 50
DEFAULT_SEARCH_LIMIT = 20
DEFAULT_PROJECT_UPDATE_LIMIT = 10
DEFAULT_MILESTONE_LIMIT = 50
DEFAULT_MILESTONE_ISSUE_LIMIT = 50
PROJECT_RECENT_UPDATES = 5
MILESTONE_DETAIL_ISSUES = 20

HEALTH_VALUES = [h.value for h in ProjectUpdateHealth]


TOOLS: List[Tool] = [
    # Teams
    Tool(name="list_teams", description="List all Linear teams available to the authenticated user",
         inputSchema={"type": "object", "properties": {}, "required": []}),
    Tool(name="get_team", description="Get a team by ID, including its workflow states in board order",
         inputSchema={"type": "object", "properties": {
             "teamId": {"type": "string", "description": "The ID of the team to retrieve"}
         }, "required": ["teamId"]}),

    # Projects
    Tool(name="list_projects", description="List all projects in the Linear workspace",
         inputSchema={"type": "object", "properties": {}, "required": []}),
    Tool(
        name="list_issues",
        description="List issues, optionally filtered by project. Returns issue details including state, priority, and URL.",
        inputSchema={
            "type": "object",
            "properties": {
                "projectId": {"type": "string", "description": "Optional project ID to filter issues by"},
                "limit": {"type": "number", "description": "Maximum number of issues to return (default: 50)"}
            },
            "required": []
        }
    ),
    Tool(name="get_issue", description="Get detailed information about a specific issue by its ID",
         inputSchema={"type": "object", "properties": {
             "issueId": {"type": "string", "description": "The ID of the issue to retrieve"}
         }, "required": ["issueId"]}),
    Tool(name="list_workflow_states",
         description="List all workflow states (columns) available for a team's kanban board",
         inputSchema={"type": "object", "properties": {
             "teamId": {"type": "string", "description": "Optional team ID. If not provided, uses the first team."}
         }, "required": []}),
    Tool(
        name="create_issue",
        description="Create a new issue in Linear",
        inputSchema={
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "The title of the issue"},
                "description": {"type": "string", "description": "The description of the issue (supports markdown)"},
                "teamId": {"type": "string", "description": "The ID of the team to create the issue in"},
                "projectId": {"type": "string", "description": "Optional project ID to associate the issue with"},
                "stateId": {"type": "string", "description": "Optional workflow state ID for the issue"},
                "priority": {"type": "number",
                             "description": "Priority level: 0 (no priority), 1 (urgent), 2 (high), 3 (medium), 4 (low)"},
                "assigneeId": {"type": "string", "description": "Optional user ID to assign the issue to"},
                "milestoneId": {"type": "string", "description": "Optional milestone ID to assign the issue to"}
            },
            "required": ["title", "teamId"]
        }
    ),
    Tool(
        name="update_issue",
        description="Update an existing issue's properties",
        inputSchema={
            "type": "object",
            "properties": {
                "issueId": {"type": "string", "description": "The ID of the issue to update"},
                "title": {"type": "string", "description": "New title for the issue"},
                "description": {"type": ["string", "null"],
                                "description": "New description for the issue (null to clear)"},
                "stateId": {"type": "string", "description": "New workflow state ID"},
                "priority": {"type": "number", "description": "New priority level (0-4)"},
                "assigneeId": {"type": ["string", "null"], "description": "User ID to assign the issue to (null to unassign)"},
                "milestoneId": {"type": ["string", "null"],
                                "description": "Milestone ID to assign the issue to (use null to remove)"}
            },
            "required": ["issueId"]
        }
    ),
    Tool(
        name="move_issue",
        description="Move an issue to a different workflow state (kanban column) by state name or ID",
        inputSchema={
            "type": "object",
            "properties": {
                "issueId": {"type": "string", "description": "The ID of the issue to move"},
                "stateId": {"type": "string", "description": "The ID of the target workflow state (use this OR stateName)"},
                "stateName": {"type": "string",
                              "description": "The name of the target workflow state (use this OR stateId)"}
            },
            "required": ["issueId"]
        }
    ),
    Tool(name="add_comment", description="Add a comment to an issue",
         inputSchema={"type": "object", "properties": {
             "issueId": {"type": "string", "description": "The ID of the issue to comment on"},
             "body": {"type": "string", "description": "The comment text (supports markdown)"}
         }, "required": ["issueId", "body"]}),
    Tool(name="search_issues", description="Search for issues by title or description text",
         inputSchema={"type": "object", "properties": {
             "query": {"type": "string", "description": "Search query to match against issue titles and descriptions"},
             "limit": {"type": "number", "description": "Maximum number of results to return (default: 20)"}
         }, "required": ["query"]}),
    Tool(name="list_users", description="List all users in the Linear workspace",
         inputSchema={"type": "object", "properties": {}, "required": []}),

    # Project updates
    Tool(
        name="create_project_update",
        description="Create a project update to share progress, summarize development steps, or communicate status. "
                    "Supports markdown formatting.",
        inputSchema={
            "type": "object",
            "properties": {
                "projectId": {"type": "string", "description": "The ID of the project to add the update to"},
                "body": {"type": "string",
                         "description": "The content of the update (supports markdown). Can include development "
                                        "summaries, progress notes, blockers, etc."},
                "health": {"type": "string", "enum": HEALTH_VALUES,
                           "description": "Optional health status of the project: 'onTrack' (green), "
                                          "'atRisk' (yellow), 'offTrack' (red)"}
            },
            "required": ["projectId", "body"]
        }
    ),
    Tool(name="list_project_updates",
         description="List all updates for a specific project, showing progress history and status changes",
         inputSchema={"type": "object", "properties": {
             "projectId": {"type": "string", "description": "The ID of the project to list updates for"},
             "limit": {"type": "number", "description": "Maximum number of updates to return (default: 10)"}
         }, "required": ["projectId"]}),
    Tool(name="get_project_update", description="Get a single project update by its ID",
         inputSchema={"type": "object", "properties": {
             "projectUpdateId": {"type": "string", "description": "The ID of the project update to retrieve"}
         }, "required": ["projectUpdateId"]}),
    Tool(name="get_project",
         description="Get detailed information about a specific project including its current status and recent updates",
         inputSchema={"type": "object", "properties": {
             "projectId": {"type": "string", "description": "The ID of the project to retrieve"}
         }, "required": ["projectId"]}),
    Tool(
        name="create_project",
        description="Create a new project owned by a team",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "The name of the project"},
                "teamId": {"type": "string", "description": "The ID of the team that owns the project"},
                "description": {"type": "string", "description": "Optional description of the project"},
                "leadId": {"type": "string", "description": "Optional user ID of the project lead"},
                "startDate": {"type": "string", "description": "Optional start date (ISO 8601 format, e.g., '2024-10-01')"},
                "targetDate": {"type": "string", "description": "Optional target date (ISO 8601 format, e.g., '2024-12-31')"}
            },
            "required": ["name", "teamId"]
        }
    ),

    # Milestones
    Tool(name="list_milestones",
         description="List all milestones (project milestones) in the workspace, optionally filtered by project",
         inputSchema={"type": "object", "properties": {
             "projectId": {"type": "string", "description": "Optional project ID to filter milestones by"},
             "limit": {"type": "number", "description": "Maximum number of milestones to return (default: 50)"}
         }, "required": []}),
    Tool(name="get_milestone", description="Get detailed information about a specific milestone by its ID",
         inputSchema={"type": "object", "properties": {
             "milestoneId": {"type": "string", "description": "The ID of the milestone to retrieve"}
         }, "required": ["milestoneId"]}),
    Tool(
        name="create_milestone",
        description="Create a new milestone for a project",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "The name of the milestone"},
                "projectId": {"type": "string", "description": "The ID of the project this milestone belongs to"},
                "description": {"type": "string", "description": "Optional description of the milestone"},
                "targetDate": {"type": "string",
                               "description": "Optional target date for the milestone (ISO 8601 format, e.g., '2024-12-31')"},
                "sortOrder": {"type": "number", "description": "Optional sort order for the milestone"}
            },
            "required": ["name", "projectId"]
        }
    ),
    Tool(
        name="update_milestone",
        description="Update an existing milestone's properties",
        inputSchema={
            "type": "object",
            "properties": {
                "milestoneId": {"type": "string", "description": "The ID of the milestone to update"},
                "name": {"type": "string", "description": "New name for the milestone"},
                "description": {"type": ["string", "null"], "description": "New description for the milestone"},
                "targetDate": {"type": ["string", "null"],
                               "description": "New target date for the milestone (ISO 8601 format)"},
                "sortOrder": {"type": "number", "description": "New sort order for the milestone"}
            },
            "required": ["milestoneId"]
        }
    ),
    Tool(name="delete_milestone", description="Delete a milestone",
         inputSchema={"type": "object", "properties": {
             "milestoneId": {"type": "string", "description": "The ID of the milestone to delete"}
         }, "required": ["milestoneId"]}),
    Tool(name="delete_issue", description="Permanently delete an issue from Linear",
         inputSchema={"type": "object", "properties": {
             "issueId": {"type": "string", "description": "The ID of the issue to delete"}
         }, "required": ["issueId"]}),
    Tool(name="assign_issue_to_milestone",
         description="Assign an issue to a milestone or remove it from its current milestone",
         inputSchema={"type": "object", "properties": {
             "issueId": {"type": "string", "description": "The ID of the issue to assign"},
             "milestoneId": {"type": ["string", "null"],
                             "description": "The ID of the milestone to assign the issue to. "
                                            "Pass null or omit to remove from milestone."}
         }, "required": ["issueId"]}),
    Tool(name="list_milestone_issues", description="List all issues assigned to a specific milestone",
         inputSchema={"type": "object", "properties": {
             "milestoneId": {"type": "string", "description": "The ID of the milestone to list issues for"},
             "limit": {"type": "number", "description": "Maximum number of issues to return (default: 50)"}
         }, "required": ["milestoneId"]}),
]


# ============== Argument binding ==============


def _require(args: Dict[str, Any], *names: str) -> None:
    missing = [n for n in names if args.get(n) is None]
    if missing:
        raise MissingRequiredArgument(missing)


def _limit(args: Dict[str, Any], default: int) -> int:
    value = args.get("limit")
    return default if value is None else int(value)


def _optional_fields(args: Dict[str, Any], fields: Dict[str, str]) -> Dict[str, Any]:
    """Create-style payload: copy each supplied, non-null argument to its API field."""
    return {api: args[arg] for arg, api in fields.items() if args.get(arg) is not None}


def _supplied_fields(args: Dict[str, Any], fields: Dict[str, str]) -> Dict[str, Any]:
    """Update-style payload: copy every argument whose key is present, explicit nulls included."""
    return {api: args[arg] for arg, api in fields.items() if arg in args}


# ============== Fan-out helpers ==============


async def _issue_rows(client: LinearClient, issues: List[Issue], shape=shaping.issue_summary) -> List[dict]:
    async def row(issue: Issue) -> dict:
        state, assignee = await asyncio.gather(client.issue_state(issue), client.issue_assignee(issue))
        return shape(issue, state, assignee)

    return list(await asyncio.gather(*(row(issue) for issue in issues)))


async def _search_rows(client: LinearClient, issues: List[Issue]) -> List[dict]:
    states = await asyncio.gather(*(client.issue_state(issue) for issue in issues))
    return [shaping.search_hit(issue, state) for issue, state in zip(issues, states)]


async def _resolve_state_id(client: LinearClient, issue_id: str, state_name: str) -> str:
    """Find the id of the workflow state called `state_name` on the issue's team."""
    issue = await client.issue(issue_id)
    team = await client.issue_team(issue)
    if team is None:
        raise TeamNotFound("Could not find team for issue", identifier=issue_id)

    states = await client.team_states(team.id)
    wanted = state_name.lower()
    for state in states:
        if state.name.lower() == wanted:
            return state.id
    raise StateNotFound(state_name, [s.name for s in states])


# ============== Teams and users ==============


async def _list_teams(client: LinearClient, args: Dict[str, Any]) -> dict:
    teams = await client.teams()
    return {"teams": [shaping.team_summary(t) for t in teams]}


async def _get_team(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "teamId")
    team, states = await asyncio.gather(client.team(args["teamId"]), client.team_states(args["teamId"]))
    team_details = shaping.team_summary(team)
    team_details["states"] = shaping.workflow_states(states)
    return {"team": team_details}


async def _list_workflow_states(client: LinearClient, args: Dict[str, Any]) -> dict:
    team_id = args.get("teamId")
    if team_id:
        team = await client.team(team_id)
    else:
        teams = await client.teams()
        team = teams[0] if teams else None

    if team is None:
        raise TeamNotFound()

    states = await client.team_states(team.id)
    return {"states": shaping.workflow_states(states)}


async def _list_users(client: LinearClient, args: Dict[str, Any]) -> dict:
    users = await client.users()
    return {"users": [shaping.user_summary(u) for u in users]}


# ============== Projects ==============


async def _list_projects(client: LinearClient, args: Dict[str, Any]) -> dict:
    projects = await client.projects()
    return {"projects": [shaping.project_summary(p) for p in projects]}


async def _get_project(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "projectId")
    project = await client.project(args["projectId"])
    lead, updates = await asyncio.gather(
        client.project_lead(project),
        client.project_updates(project.id, PROJECT_RECENT_UPDATES),
    )
    users = await asyncio.gather(*(client.update_user(u) for u in updates))
    recent_updates = [shaping.recent_update(u, user) for u, user in zip(updates, users)]
    return {"project": shaping.project_detail(project, lead, recent_updates)}


async def _create_project(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "name", "teamId")
    data = {"name": args["name"], "teamIds": [args["teamId"]]}
    data.update(_optional_fields(args, {
        "description": "description",
        "leadId": "leadId",
        "startDate": "startDate",
        "targetDate": "targetDate",
    }))
    project = await client.create_project(data)
    return {"project": shaping.created_project(project)}


async def _create_project_update(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "projectId", "body")
    data = {"projectId": args["projectId"], "body": args["body"]}
    if args.get("health"):
        data["health"] = ProjectUpdateHealth(args["health"]).value
    update = await client.create_project_update(data)
    return {"projectUpdate": shaping.created_project_update(update)}


async def _list_project_updates(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "projectId")
    updates = await client.project_updates(args["projectId"], _limit(args, DEFAULT_PROJECT_UPDATE_LIMIT))
    users = await asyncio.gather(*(client.update_user(u) for u in updates))
    return {"projectUpdates": [shaping.project_update(u, user) for u, user in zip(updates, users)]}


async def _get_project_update(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "projectUpdateId")
    update = await client.project_update(args["projectUpdateId"])
    user, project = await asyncio.gather(client.update_user(update), client.update_project(update))
    return {"projectUpdate": shaping.project_update_detail(update, user, project)}


# ============== Issues ==============


async def _list_issues(client: LinearClient, args: Dict[str, Any]) -> dict:
    limit = _limit(args, DEFAULT_ISSUE_LIMIT)
    project_id = args.get("projectId")
    if project_id:
        issues = await client.project_issues(project_id, limit)
    else:
        issues = await client.issues(limit)
    return {"issues": await _issue_rows(client, issues)}


async def _get_issue(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "issueId")
    issue = await client.issue(args["issueId"])
    state, assignee, project, team, milestone, comments = await asyncio.gather(
        client.issue_state(issue),
        client.issue_assignee(issue),
        client.issue_project(issue),
        client.issue_team(issue),
        client.issue_milestone(issue),
        client.issue_comments(issue),
    )
    return {"issue": shaping.issue_detail(issue, state, assignee, project, team, milestone, comments)}


async def _create_issue(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "title", "teamId")
    data = {"title": args["title"], "teamId": args["teamId"]}
    data.update(_optional_fields(args, {
        "description": "description",
        "projectId": "projectId",
        "stateId": "stateId",
        "priority": "priority",
        "assigneeId": "assigneeId",
        "milestoneId": "projectMilestoneId",
    }))
    issue = await client.create_issue(data)
    return {"issue": shaping.created_issue(issue)}


async def _update_issue(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "issueId")
    data = _supplied_fields(args, {
        "title": "title",
        "description": "description",
        "stateId": "stateId",
        "priority": "priority",
        "assigneeId": "assigneeId",
        "milestoneId": "projectMilestoneId",
    })
    await client.update_issue(args["issueId"], data)
    return {"message": "Issue updated successfully"}


async def _delete_issue(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "issueId")
    await client.delete_issue(args["issueId"])
    return {"message": "Issue deleted successfully"}


async def _move_issue(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "issueId")
    issue_id = args["issueId"]
    state_id = args.get("stateId")
    state_name = args.get("stateName")

    if state_name and not state_id:
        state_id = await _resolve_state_id(client, issue_id, state_name)

    if not state_id:
        raise MissingRequiredArgument(["stateId", "stateName"], message="Either stateId or stateName is required")

    await client.update_issue(issue_id, {"stateId": state_id})
    return {"message": "Issue moved successfully"}


async def _add_comment(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "issueId", "body")
    comment = await client.create_comment({"issueId": args["issueId"], "body": args["body"]})
    return {"comment": {"id": comment.id, "body": comment.body}}


async def _search_issues(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "query")
    issues = await client.search_issues(args["query"], _limit(args, DEFAULT_SEARCH_LIMIT))
    return {"issues": await _search_rows(client, issues)}


# ============== Milestones ==============


async def _list_milestones(client: LinearClient, args: Dict[str, Any]) -> dict:
    limit = _limit(args, DEFAULT_MILESTONE_LIMIT)
    project_id = args.get("projectId")
    if project_id:
        milestones = await client.project_milestones_for_project(project_id, limit)
    else:
        milestones = await client.project_milestones(limit)
    projects = await asyncio.gather(*(client.milestone_project(m) for m in milestones))
    return {"milestones": [shaping.milestone_summary(m, p) for m, p in zip(milestones, projects)]}


async def _get_milestone(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "milestoneId")
    milestone = await client.project_milestone(args["milestoneId"])
    project, issues = await asyncio.gather(
        client.milestone_project(milestone),
        client.milestone_issues(milestone.id, MILESTONE_DETAIL_ISSUES),
    )
    rows = await _issue_rows(client, issues, shape=shaping.milestone_issue)
    return {"milestone": shaping.milestone_detail(milestone, project, rows)}


async def _create_milestone(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "name", "projectId")
    data = {"name": args["name"], "projectId": args["projectId"]}
    data.update(_optional_fields(args, {
        "description": "description",
        "targetDate": "targetDate",
        "sortOrder": "sortOrder",
    }))
    milestone = await client.create_project_milestone(data)
    return {"milestone": shaping.created_milestone(milestone)}


async def _update_milestone(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "milestoneId")
    data = _supplied_fields(args, {
        "name": "name",
        "description": "description",
        "targetDate": "targetDate",
        "sortOrder": "sortOrder",
    })
    await client.update_project_milestone(args["milestoneId"], data)
    return {"message": "Milestone updated successfully"}


async def _delete_milestone(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "milestoneId")
    await client.delete_project_milestone(args["milestoneId"])
    return {"message": "Milestone deleted successfully"}


async def _assign_issue_to_milestone(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "issueId")
    milestone_id = args.get("milestoneId") or None
    await client.update_issue(args["issueId"], {"projectMilestoneId": milestone_id})
    if milestone_id:
        return {"message": "Issue assigned to milestone successfully"}
    return {"message": "Issue removed from milestone successfully"}


async def _list_milestone_issues(client: LinearClient, args: Dict[str, Any]) -> dict:
    _require(args, "milestoneId")
    issues = await client.milestone_issues(args["milestoneId"], _limit(args, DEFAULT_MILESTONE_ISSUE_LIMIT))
    return {"issues": await _issue_rows(client, issues)}


_HANDLERS: Dict[str, Callable[[LinearClient, Dict[str, Any]], Awaitable[dict]]] = {
    "list_teams": _list_teams,
    "get_team": _get_team,
    "list_projects": _list_projects,
    "list_issues": _list_issues,
    "get_issue": _get_issue,
    "list_workflow_states": _list_workflow_states,
    "create_issue": _create_issue,
    "update_issue": _update_issue,
    "move_issue": _move_issue,
    "add_comment": _add_comment,
    "search_issues": _search_issues,
    "list_users": _list_users,
    "create_project_update": _create_project_update,
    "list_project_updates": _list_project_updates,
    "get_project_update": _get_project_update,
    "get_project": _get_project,
    "create_project": _create_project,
    "list_milestones": _list_milestones,
    "get_milestone": _get_milestone,
    "create_milestone": _create_milestone,
    "update_milestone": _update_milestone,
    "delete_milestone": _delete_milestone,
    "delete_issue": _delete_issue,
    "assign_issue_to_milestone": _assign_issue_to_milestone,
    "list_milestone_issues": _list_milestone_issues,
}


async def dispatch(client: LinearClient, name: str, arguments: Dict[str, Any]) -> CallToolResult:
    """Run tool `name` and wrap its payload (or failure) in an envelope."""
    args = arguments or {}
    logger.debug(f"Tool call: {name} with arguments {sorted(args)}")
    try:
        handler = _HANDLERS.get(name)
        if handler is None:
            raise UnknownOperation(name)
        payload = await handler(client, args)
    except KanbanMCPError as e:
        logger.warning(f"Tool {name} failed: {e.message}")
        return error_result(e.message, **e.details)
    except Exception as e:
        logger.exception(f"Tool {name} raised an unexpected error")
        return error_result(str(e))
    return success_result(payload)
