from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class ProjectUpdateHealth(str, Enum):
    onTrack = "onTrack"
    atRisk = "atRisk"
    offTrack = "offTrack"


class LinearModel(BaseModel):
    """
    Base for Linear GraphQL nodes.

    Linear returns camelCase keys; fields are snake_case with aliases so nodes
    validate straight from the API and can still be built by field name.
    """

    class Config:
        populate_by_name = True


class NodeRef(LinearModel):
    """Unresolved relation: only the id of the related node is known."""
    id: str


# Team schemas
class Team(LinearModel):
    id: str
    name: str
    key: Optional[str] = None
    description: Optional[str] = None


class WorkflowState(LinearModel):
    id: str
    name: str
    type: Optional[str] = None
    position: float = 0
    color: Optional[str] = None


# User schemas
class User(LinearModel):
    id: str
    name: str
    email: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")
    active: bool = True


# Project schemas
class Project(LinearModel):
    id: str
    name: str
    description: Optional[str] = None
    state: Optional[str] = None
    progress: Optional[float] = None
    health: Optional[str] = None
    target_date: Optional[str] = Field(None, alias="targetDate")
    start_date: Optional[str] = Field(None, alias="startDate")
    url: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")
    lead: Optional[NodeRef] = None


class ProjectUpdate(LinearModel):
    id: str
    body: Optional[str] = None
    health: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    url: Optional[str] = None
    user: Optional[NodeRef] = None
    project: Optional[NodeRef] = None


class ProjectMilestone(LinearModel):
    id: str
    name: str
    description: Optional[str] = None
    target_date: Optional[str] = Field(None, alias="targetDate")
    sort_order: Optional[float] = Field(None, alias="sortOrder")
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")
    project: Optional[NodeRef] = None


# Issue schemas
class Issue(LinearModel):
    id: str
    identifier: Optional[str] = None
    title: str
    description: Optional[str] = None
    priority: int = 0
    priority_label: Optional[str] = Field(None, alias="priorityLabel")
    url: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")
    state: Optional[NodeRef] = None
    assignee: Optional[NodeRef] = None
    project: Optional[NodeRef] = None
    team: Optional[NodeRef] = None
    project_milestone: Optional[NodeRef] = Field(None, alias="projectMilestone")


class Comment(LinearModel):
    id: str
    body: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
