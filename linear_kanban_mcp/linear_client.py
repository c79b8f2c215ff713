"""
Linear GraphQL client.

Every call is a single POST to the Linear GraphQL endpoint returning
pydantic models from schemas.py. Related nodes (an issue's state, assignee,
team...) come back as NodeRef ids only; they are fetched through the
explicit async accessors at the bottom of LinearClient, so callers decide
where to fan out and join.

Listings fetch one page (`first: N`) and never follow cursors.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import httpx

from . import config
from .errors import UpstreamCallFailure, UpstreamNotFound
from .schemas import (
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

logger = logging.getLogger(__name__)

T = TypeVar("T")

NOT_FOUND_MARKER = "Entity not found"

# ---------------------------------------------------------------------------
# Fragments
# ---------------------------------------------------------------------------

_TEAM_FRAGMENT = """
fragment TeamFields on Team {
  id
  name
  key
  description
}
"""

_STATE_FRAGMENT = """
fragment StateFields on WorkflowState {
  id
  name
  type
  position
  color
}
"""

_USER_FRAGMENT = """
fragment UserFields on User {
  id
  name
  email
  displayName
  active
}
"""

_PROJECT_FRAGMENT = """
fragment ProjectFields on Project {
  id
  name
  description
  state
  progress
  health
  targetDate
  startDate
  url
  createdAt
  updatedAt
  lead { id }
}
"""

_PROJECT_UPDATE_FRAGMENT = """
fragment ProjectUpdateFields on ProjectUpdate {
  id
  body
  health
  createdAt
  url
  user { id }
  project { id }
}
"""

_MILESTONE_FRAGMENT = """
fragment MilestoneFields on ProjectMilestone {
  id
  name
  description
  targetDate
  sortOrder
  createdAt
  updatedAt
  project { id }
}
"""

_ISSUE_FRAGMENT = """
fragment IssueFields on Issue {
  id
  identifier
  title
  description
  priority
  priorityLabel
  url
  createdAt
  updatedAt
  state { id }
  assignee { id }
  project { id }
  team { id }
  projectMilestone { id }
}
"""

_COMMENT_FRAGMENT = """
fragment CommentFields on Comment {
  id
  body
  createdAt
}
"""

# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

_TEAMS_QUERY = """
query Teams {
  teams { nodes { ...TeamFields } }
}
""" + _TEAM_FRAGMENT

_TEAM_QUERY = """
query Team($id: String!) {
  team(id: $id) { ...TeamFields }
}
""" + _TEAM_FRAGMENT

_TEAM_STATES_QUERY = """
query TeamStates($id: String!) {
  team(id: $id) { states { nodes { ...StateFields } } }
}
""" + _STATE_FRAGMENT

_WORKFLOW_STATE_QUERY = """
query WorkflowState($id: String!) {
  workflowState(id: $id) { ...StateFields }
}
""" + _STATE_FRAGMENT

_USERS_QUERY = """
query Users {
  users { nodes { ...UserFields } }
}
""" + _USER_FRAGMENT

_USER_QUERY = """
query User($id: String!) {
  user(id: $id) { ...UserFields }
}
""" + _USER_FRAGMENT

_PROJECTS_QUERY = """
query Projects($first: Int) {
  projects(first: $first) { nodes { ...ProjectFields } }
}
""" + _PROJECT_FRAGMENT

_PROJECT_QUERY = """
query Project($id: String!) {
  project(id: $id) { ...ProjectFields }
}
""" + _PROJECT_FRAGMENT

_PROJECT_ISSUES_QUERY = """
query ProjectIssues($id: String!, $first: Int) {
  project(id: $id) { issues(first: $first) { nodes { ...IssueFields } } }
}
""" + _ISSUE_FRAGMENT

_PROJECT_UPDATES_QUERY = """
query ProjectUpdates($id: String!, $first: Int) {
  project(id: $id) { projectUpdates(first: $first) { nodes { ...ProjectUpdateFields } } }
}
""" + _PROJECT_UPDATE_FRAGMENT

_PROJECT_UPDATE_QUERY = """
query ProjectUpdate($id: String!) {
  projectUpdate(id: $id) { ...ProjectUpdateFields }
}
""" + _PROJECT_UPDATE_FRAGMENT

_PROJECT_MILESTONES_FOR_PROJECT_QUERY = """
query ProjectMilestonesForProject($id: String!, $first: Int) {
  project(id: $id) { projectMilestones(first: $first) { nodes { ...MilestoneFields } } }
}
""" + _MILESTONE_FRAGMENT

_PROJECT_MILESTONES_QUERY = """
query ProjectMilestones($first: Int) {
  projectMilestones(first: $first) { nodes { ...MilestoneFields } }
}
""" + _MILESTONE_FRAGMENT

_PROJECT_MILESTONE_QUERY = """
query ProjectMilestone($id: String!) {
  projectMilestone(id: $id) { ...MilestoneFields }
}
""" + _MILESTONE_FRAGMENT

_MILESTONE_ISSUES_QUERY = """
query MilestoneIssues($id: String!, $first: Int) {
  projectMilestone(id: $id) { issues(first: $first) { nodes { ...IssueFields } } }
}
""" + _ISSUE_FRAGMENT

_ISSUES_QUERY = """
query Issues($first: Int) {
  issues(first: $first) { nodes { ...IssueFields } }
}
""" + _ISSUE_FRAGMENT

_ISSUE_QUERY = """
query Issue($id: String!) {
  issue(id: $id) { ...IssueFields }
}
""" + _ISSUE_FRAGMENT

_ISSUE_COMMENTS_QUERY = """
query IssueComments($id: String!) {
  issue(id: $id) { comments { nodes { ...CommentFields } } }
}
""" + _COMMENT_FRAGMENT

_SEARCH_ISSUES_QUERY = """
query SearchIssues($term: String!, $first: Int) {
  searchIssues(term: $term, first: $first) { nodes { ...IssueFields } }
}
""" + _ISSUE_FRAGMENT

# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

_CREATE_ISSUE_MUTATION = """
mutation IssueCreate($input: IssueCreateInput!) {
  issueCreate(input: $input) { success issue { ...IssueFields } }
}
""" + _ISSUE_FRAGMENT

_UPDATE_ISSUE_MUTATION = """
mutation IssueUpdate($id: String!, $input: IssueUpdateInput!) {
  issueUpdate(id: $id, input: $input) { success }
}
"""

_DELETE_ISSUE_MUTATION = """
mutation IssueDelete($id: String!) {
  issueDelete(id: $id) { success }
}
"""

_CREATE_COMMENT_MUTATION = """
mutation CommentCreate($input: CommentCreateInput!) {
  commentCreate(input: $input) { success comment { ...CommentFields } }
}
""" + _COMMENT_FRAGMENT

_CREATE_PROJECT_MUTATION = """
mutation ProjectCreate($input: ProjectCreateInput!) {
  projectCreate(input: $input) { success project { ...ProjectFields } }
}
""" + _PROJECT_FRAGMENT

_CREATE_PROJECT_UPDATE_MUTATION = """
mutation ProjectUpdateCreate($input: ProjectUpdateCreateInput!) {
  projectUpdateCreate(input: $input) { success projectUpdate { ...ProjectUpdateFields } }
}
""" + _PROJECT_UPDATE_FRAGMENT

_CREATE_MILESTONE_MUTATION = """
mutation ProjectMilestoneCreate($input: ProjectMilestoneCreateInput!) {
  projectMilestoneCreate(input: $input) { success projectMilestone { ...MilestoneFields } }
}
""" + _MILESTONE_FRAGMENT

_UPDATE_MILESTONE_MUTATION = """
mutation ProjectMilestoneUpdate($id: String!, $input: ProjectMilestoneUpdateInput!) {
  projectMilestoneUpdate(id: $id, input: $input) { success }
}
"""

_DELETE_MILESTONE_MUTATION = """
mutation ProjectMilestoneDelete($id: String!) {
  projectMilestoneDelete(id: $id) { success }
}
"""


def _nodes(data: dict, *path: str) -> List[dict]:
    """Walk `path` into a GraphQL response and return the connection's nodes."""
    current: Any = data
    for key in path:
        if current is None:
            return []
        current = current.get(key)
    if not current:
        return []
    return current.get("nodes") or []


class LinearClient:
    """Async client for the Linear GraphQL API."""

    def __init__(
        self,
        api_key: str,
        api_url: str = config.LINEAR_API_URL,
        timeout: float = config.REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = api_key
        self.api_url = api_url
        self._http = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "LinearClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> dict:
        """Run a GraphQL document and return its `data` object."""
        try:
            response = await self._http.post(
                self.api_url, json={"query": query, "variables": variables or {}}
            )
        except httpx.RequestError as e:
            raise UpstreamCallFailure(f"Request failed: {str(e)}") from e

        try:
            body = response.json()
        except json.JSONDecodeError:
            body = None

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            message = "; ".join(err.get("message", "Unknown error") for err in errors)
            if NOT_FOUND_MARKER in message:
                raise UpstreamNotFound(message)
            raise UpstreamCallFailure(message, status_code=response.status_code)

        if response.status_code >= 400:
            raise UpstreamCallFailure(f"API error: {response.status_code}", status_code=response.status_code)

        if not isinstance(body, dict):
            raise UpstreamCallFailure("Invalid JSON response from API")

        return body.get("data") or {}

    async def _fetch_node(self, query: str, key: str, entity: str, identifier: str) -> dict:
        data = await self.execute(query, {"id": identifier})
        node = data.get(key)
        if node is None:
            raise UpstreamNotFound(f"{entity} not found: {identifier}", entity=entity, identifier=identifier)
        return node

    async def _child_nodes(
        self, query: str, variables: Dict[str, Any], key: str, entity: str, field: str
    ) -> List[dict]:
        """Nodes of connection `field` under node `key`; the parent node must exist."""
        data = await self.execute(query, variables)
        if data.get(key) is None:
            identifier = variables["id"]
            raise UpstreamNotFound(f"{entity} not found: {identifier}", entity=entity, identifier=identifier)
        return _nodes(data, key, field)

    async def _mutate(self, query: str, variables: Dict[str, Any], key: str, field: str = None) -> Any:
        data = await self.execute(query, variables)
        payload = data.get(key) or {}
        if not payload.get("success"):
            raise UpstreamCallFailure(f"{key} failed")
        return payload.get(field) if field else True

    # -- Teams -------------------------------------------------------------

    async def teams(self) -> List[Team]:
        data = await self.execute(_TEAMS_QUERY)
        return [Team.model_validate(node) for node in _nodes(data, "teams")]

    async def team(self, team_id: str) -> Team:
        return Team.model_validate(await self._fetch_node(_TEAM_QUERY, "team", "Team", team_id))

    async def team_states(self, team_id: str) -> List[WorkflowState]:
        nodes = await self._child_nodes(_TEAM_STATES_QUERY, {"id": team_id}, "team", "Team", "states")
        return [WorkflowState.model_validate(node) for node in nodes]

    async def workflow_state(self, state_id: str) -> WorkflowState:
        node = await self._fetch_node(_WORKFLOW_STATE_QUERY, "workflowState", "WorkflowState", state_id)
        return WorkflowState.model_validate(node)

    # -- Users -------------------------------------------------------------

    async def users(self) -> List[User]:
        data = await self.execute(_USERS_QUERY)
        return [User.model_validate(node) for node in _nodes(data, "users")]

    async def user(self, user_id: str) -> User:
        return User.model_validate(await self._fetch_node(_USER_QUERY, "user", "User", user_id))

    # -- Projects ----------------------------------------------------------

    async def projects(self, first: Optional[int] = None) -> List[Project]:
        data = await self.execute(_PROJECTS_QUERY, {"first": first})
        return [Project.model_validate(node) for node in _nodes(data, "projects")]

    async def project(self, project_id: str) -> Project:
        node = await self._fetch_node(_PROJECT_QUERY, "project", "Project", project_id)
        return Project.model_validate(node)

    async def project_issues(self, project_id: str, first: int) -> List[Issue]:
        nodes = await self._child_nodes(
            _PROJECT_ISSUES_QUERY, {"id": project_id, "first": first}, "project", "Project", "issues"
        )
        return [Issue.model_validate(node) for node in nodes]

    async def project_updates(self, project_id: str, first: int) -> List[ProjectUpdate]:
        nodes = await self._child_nodes(
            _PROJECT_UPDATES_QUERY, {"id": project_id, "first": first}, "project", "Project", "projectUpdates"
        )
        return [ProjectUpdate.model_validate(node) for node in nodes]

    async def project_update(self, update_id: str) -> ProjectUpdate:
        node = await self._fetch_node(_PROJECT_UPDATE_QUERY, "projectUpdate", "ProjectUpdate", update_id)
        return ProjectUpdate.model_validate(node)

    async def create_project(self, data: Dict[str, Any]) -> Project:
        node = await self._mutate(_CREATE_PROJECT_MUTATION, {"input": data}, "projectCreate", "project")
        return Project.model_validate(node)

    async def create_project_update(self, data: Dict[str, Any]) -> ProjectUpdate:
        node = await self._mutate(
            _CREATE_PROJECT_UPDATE_MUTATION, {"input": data}, "projectUpdateCreate", "projectUpdate"
        )
        return ProjectUpdate.model_validate(node)

    # -- Milestones --------------------------------------------------------

    async def project_milestones(self, first: int) -> List[ProjectMilestone]:
        data = await self.execute(_PROJECT_MILESTONES_QUERY, {"first": first})
        return [ProjectMilestone.model_validate(node) for node in _nodes(data, "projectMilestones")]

    async def project_milestones_for_project(self, project_id: str, first: int) -> List[ProjectMilestone]:
        nodes = await self._child_nodes(
            _PROJECT_MILESTONES_FOR_PROJECT_QUERY, {"id": project_id, "first": first},
            "project", "Project", "projectMilestones",
        )
        return [ProjectMilestone.model_validate(node) for node in nodes]

    async def project_milestone(self, milestone_id: str) -> ProjectMilestone:
        node = await self._fetch_node(_PROJECT_MILESTONE_QUERY, "projectMilestone", "ProjectMilestone", milestone_id)
        return ProjectMilestone.model_validate(node)

    async def milestone_issues(self, milestone_id: str, first: int) -> List[Issue]:
        nodes = await self._child_nodes(
            _MILESTONE_ISSUES_QUERY, {"id": milestone_id, "first": first}, "projectMilestone", "ProjectMilestone", "issues"
        )
        return [Issue.model_validate(node) for node in nodes]

    async def create_project_milestone(self, data: Dict[str, Any]) -> ProjectMilestone:
        node = await self._mutate(
            _CREATE_MILESTONE_MUTATION, {"input": data}, "projectMilestoneCreate", "projectMilestone"
        )
        return ProjectMilestone.model_validate(node)

    async def update_project_milestone(self, milestone_id: str, data: Dict[str, Any]) -> bool:
        return await self._mutate(
            _UPDATE_MILESTONE_MUTATION, {"id": milestone_id, "input": data}, "projectMilestoneUpdate"
        )

    async def delete_project_milestone(self, milestone_id: str) -> bool:
        return await self._mutate(_DELETE_MILESTONE_MUTATION, {"id": milestone_id}, "projectMilestoneDelete")

    # -- Issues ------------------------------------------------------------

    async def issues(self, first: int) -> List[Issue]:
        data = await self.execute(_ISSUES_QUERY, {"first": first})
        return [Issue.model_validate(node) for node in _nodes(data, "issues")]

    async def issue(self, issue_id: str) -> Issue:
        return Issue.model_validate(await self._fetch_node(_ISSUE_QUERY, "issue", "Issue", issue_id))

    async def search_issues(self, term: str, first: int) -> List[Issue]:
        data = await self.execute(_SEARCH_ISSUES_QUERY, {"term": term, "first": first})
        return [Issue.model_validate(node) for node in _nodes(data, "searchIssues")]

    async def create_issue(self, data: Dict[str, Any]) -> Issue:
        node = await self._mutate(_CREATE_ISSUE_MUTATION, {"input": data}, "issueCreate", "issue")
        return Issue.model_validate(node)

    async def update_issue(self, issue_id: str, data: Dict[str, Any]) -> bool:
        return await self._mutate(_UPDATE_ISSUE_MUTATION, {"id": issue_id, "input": data}, "issueUpdate")

    async def delete_issue(self, issue_id: str) -> bool:
        return await self._mutate(_DELETE_ISSUE_MUTATION, {"id": issue_id}, "issueDelete")

    async def create_comment(self, data: Dict[str, Any]) -> Comment:
        node = await self._mutate(_CREATE_COMMENT_MUTATION, {"input": data}, "commentCreate", "comment")
        return Comment.model_validate(node)

    # -- Relation accessors ------------------------------------------------
    # Each resolves one NodeRef to its full node, or None when unset.

    async def _related(self, ref: Optional[NodeRef], fetch: Callable[[str], Awaitable[T]]) -> Optional[T]:
        if ref is None:
            return None
        return await fetch(ref.id)

    async def issue_state(self, issue: Issue) -> Optional[WorkflowState]:
        return await self._related(issue.state, self.workflow_state)

    async def issue_assignee(self, issue: Issue) -> Optional[User]:
        return await self._related(issue.assignee, self.user)

    async def issue_project(self, issue: Issue) -> Optional[Project]:
        return await self._related(issue.project, self.project)

    async def issue_team(self, issue: Issue) -> Optional[Team]:
        return await self._related(issue.team, self.team)

    async def issue_milestone(self, issue: Issue) -> Optional[ProjectMilestone]:
        return await self._related(issue.project_milestone, self.project_milestone)

    async def issue_comments(self, issue: Issue) -> List[Comment]:
        nodes = await self._child_nodes(_ISSUE_COMMENTS_QUERY, {"id": issue.id}, "issue", "Issue", "comments")
        return [Comment.model_validate(node) for node in nodes]

    async def project_lead(self, project: Project) -> Optional[User]:
        return await self._related(project.lead, self.user)

    async def update_user(self, update: ProjectUpdate) -> Optional[User]:
        return await self._related(update.user, self.user)

    async def update_project(self, update: ProjectUpdate) -> Optional[Project]:
        return await self._related(update.project, self.project)

    async def milestone_project(self, milestone: ProjectMilestone) -> Optional[Project]:
        return await self._related(milestone.project, self.project)
