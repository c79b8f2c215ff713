"""
Response shaping: project Linear models into the flat JSON payloads tools return.

Every function here is pure. Related nodes are resolved by the caller and
passed in; a missing relation is None.
"""

from typing import Iterable, List, Optional, Union

from .schemas import (
    Comment,
    Issue,
    Project,
    ProjectMilestone,
    ProjectUpdate,
    Team,
    User,
    WorkflowState,
)

# Text limits, in characters
ISSUE_DESCRIPTION_LIMIT = 300
SEARCH_DESCRIPTION_LIMIT = 200
UPDATE_BODY_LIMIT = 300
RESOURCE_UPDATE_BODY_LIMIT = 500

UNKNOWN_STATE = "Unknown"

Named = Union[Team, User, Project, ProjectMilestone]


def truncate(text: Optional[str], limit: int) -> str:
    """First `limit` characters of `text`; empty string when there is none."""
    if not text:
        return ""
    return text[:limit]


def ref(entity: Optional[Named]) -> Optional[dict]:
    """Reduce a related entity to {id, name}."""
    if entity is None:
        return None
    return {"id": entity.id, "name": entity.name}


def name_of(entity: Optional[Named]) -> Optional[str]:
    return entity.name if entity else None


def state_name(state: Optional[WorkflowState]) -> str:
    return state.name if state else UNKNOWN_STATE


def sort_states(states: Iterable[WorkflowState]) -> List[WorkflowState]:
    """Workflow states ordered by board position, leftmost column first."""
    return sorted(states, key=lambda s: s.position)


# Teams

def team_summary(team: Team) -> dict:
    return {
        "id": team.id,
        "name": team.name,
        "key": team.key,
        "description": team.description,
    }


def workflow_state(state: WorkflowState, include_color: bool = True) -> dict:
    shaped = {
        "id": state.id,
        "name": state.name,
        "type": state.type,
        "position": state.position,
    }
    if include_color:
        shaped["color"] = state.color
    return shaped


def workflow_states(states: Iterable[WorkflowState], include_color: bool = True) -> List[dict]:
    return [workflow_state(s, include_color) for s in sort_states(states)]


# Users

def user_summary(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "displayName": user.display_name,
        "active": user.active,
    }


# Projects

def project_summary(project: Project) -> dict:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "state": project.state,
        "progress": project.progress,
        "url": project.url,
    }


def project_detail(project: Project, lead: Optional[User], recent_updates: List[dict]) -> dict:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "state": project.state,
        "progress": project.progress,
        "health": project.health,
        "targetDate": project.target_date,
        "startDate": project.start_date,
        "lead": ref(lead),
        "url": project.url,
        "createdAt": project.created_at,
        "updatedAt": project.updated_at,
        "recentUpdates": recent_updates,
    }


def created_project(project: Project) -> dict:
    return {
        "id": project.id,
        "name": project.name,
        "state": project.state,
        "url": project.url,
    }


# Project updates

def project_update(update: ProjectUpdate, user: Optional[User]) -> dict:
    return {
        "id": update.id,
        "body": update.body,
        "health": update.health,
        "createdAt": update.created_at,
        "url": update.url,
        "user": ref(user),
    }


def project_update_detail(update: ProjectUpdate, user: Optional[User], project: Optional[Project]) -> dict:
    shaped = project_update(update, user)
    shaped["project"] = ref(project)
    return shaped


def recent_update(update: ProjectUpdate, user: Optional[User]) -> dict:
    """Compact update embedded in a project's detail view."""
    return {
        "id": update.id,
        "body": truncate(update.body, UPDATE_BODY_LIMIT),
        "health": update.health,
        "createdAt": update.created_at,
        "user": name_of(user),
    }


def created_project_update(update: ProjectUpdate) -> dict:
    return {
        "id": update.id,
        "body": update.body,
        "health": update.health,
        "createdAt": update.created_at,
        "url": update.url,
    }


# Milestones

def milestone_summary(milestone: ProjectMilestone, project: Optional[Project]) -> dict:
    return {
        "id": milestone.id,
        "name": milestone.name,
        "description": milestone.description,
        "targetDate": milestone.target_date,
        "sortOrder": milestone.sort_order,
        "project": ref(project),
        "createdAt": milestone.created_at,
        "updatedAt": milestone.updated_at,
    }


def milestone_detail(milestone: ProjectMilestone, project: Optional[Project], issues: List[dict]) -> dict:
    shaped = milestone_summary(milestone, project)
    shaped["issues"] = issues
    return shaped


def created_milestone(milestone: ProjectMilestone) -> dict:
    return {
        "id": milestone.id,
        "name": milestone.name,
        "description": milestone.description,
        "targetDate": milestone.target_date,
    }


# Issues

def issue_summary(issue: Issue, state: Optional[WorkflowState], assignee: Optional[User]) -> dict:
    """Issue row used by issue listings."""
    return {
        "id": issue.id,
        "identifier": issue.identifier,
        "title": issue.title,
        "description": truncate(issue.description, ISSUE_DESCRIPTION_LIMIT),
        "state": state_name(state),
        "stateId": state.id if state else None,
        "priority": issue.priority,
        "priorityLabel": issue.priority_label,
        "assignee": name_of(assignee),
        "url": issue.url,
    }


def search_hit(issue: Issue, state: Optional[WorkflowState]) -> dict:
    return {
        "id": issue.id,
        "identifier": issue.identifier,
        "title": issue.title,
        "description": truncate(issue.description, SEARCH_DESCRIPTION_LIMIT),
        "state": state_name(state),
        "priority": issue.priority,
        "priorityLabel": issue.priority_label,
        "url": issue.url,
    }


def milestone_issue(issue: Issue, state: Optional[WorkflowState], assignee: Optional[User]) -> dict:
    """Compact issue row embedded in a milestone's detail view."""
    return {
        "id": issue.id,
        "identifier": issue.identifier,
        "title": issue.title,
        "state": state_name(state),
        "priority": issue.priority_label,
        "assignee": name_of(assignee),
        "url": issue.url,
    }


def comment(c: Comment) -> dict:
    return {"id": c.id, "body": c.body, "createdAt": c.created_at}


def issue_detail(
    issue: Issue,
    state: Optional[WorkflowState],
    assignee: Optional[User],
    project: Optional[Project],
    team: Optional[Team],
    milestone: Optional[ProjectMilestone],
    comments: Iterable[Comment],
) -> dict:
    return {
        "id": issue.id,
        "identifier": issue.identifier,
        "title": issue.title,
        "description": issue.description,
        "state": state.name if state else None,
        "stateId": state.id if state else None,
        "priority": issue.priority,
        "priorityLabel": issue.priority_label,
        "assignee": ref(assignee),
        "project": ref(project),
        "team": ref(team),
        "milestone": ref(milestone),
        "url": issue.url,
        "createdAt": issue.created_at,
        "updatedAt": issue.updated_at,
        "comments": [comment(c) for c in comments],
    }


def created_issue(issue: Issue) -> dict:
    return {
        "id": issue.id,
        "identifier": issue.identifier,
        "title": issue.title,
        "url": issue.url,
    }
