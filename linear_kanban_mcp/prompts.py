"""
Guided prompt templates.

Each prompt renders fixed multi-step instructions that tell the agent which
tools to call. Rendering never touches the Linear API.
"""

from typing import Dict, List, Optional

from mcp.types import GetPromptResult, Prompt, PromptArgument, PromptMessage, TextContent

from .errors import MissingRequiredArgument, UnknownOperation

PROMPTS: List[Prompt] = [
    Prompt(
        name="kanban_overview",
        description="Get an overview of the current kanban board state with all issues organized by column",
        arguments=[PromptArgument(name="teamId", description="Optional team ID to filter by", required=False)],
    ),
    Prompt(
        name="create_task",
        description="Guided prompt for creating a new task/issue in Linear",
        arguments=[
            PromptArgument(name="title", description="Title of the task to create", required=True),
            PromptArgument(name="description", description="Description of the task", required=False),
        ],
    ),
    Prompt(
        name="daily_standup",
        description="Generate a summary suitable for a daily standup meeting based on recent issue activity",
        arguments=[],
    ),
    Prompt(
        name="write_project_update",
        description="Guided prompt for writing a project update that summarizes development progress, "
                    "accomplishments, and next steps",
        arguments=[
            PromptArgument(name="projectId", description="The ID of the project to write an update for", required=True),
            PromptArgument(
                name="focus",
                description="Optional focus area: 'progress' (what was accomplished), 'blockers' (issues encountered), "
                            "'planning' (next steps), or 'summary' (comprehensive)",
                required=False,
            ),
        ],
    ),
    Prompt(
        name="milestone_overview",
        description="Get an overview of milestones for a project, including progress and assigned issues",
        arguments=[
            PromptArgument(name="projectId", description="The ID of the project to show milestones for", required=True),
        ],
    ),
]

FOCUS_INSTRUCTIONS = {
    "progress": "Focus on what has been accomplished recently",
    "blockers": "Focus on any blockers, risks, or issues encountered",
    "planning": "Focus on upcoming work and next steps",
}
DEFAULT_FOCUS = "summary"
SUMMARY_INSTRUCTION = "Provide a comprehensive summary covering progress, blockers, and next steps"


def _kanban_overview(args: Dict[str, str]) -> str:
    team_id = args.get("teamId")
    team_suffix = f" (team: {team_id})" if team_id else ""
    return f"""Please provide a kanban board overview for my Linear workspace{team_suffix}.

First, use the list_workflow_states tool to get all available columns.
Then, use the list_issues tool to get all issues.
Finally, organize the issues by their workflow state and present them as a kanban board with columns.

For each issue, show:
- Issue identifier and title
- Priority (if set)
- Assignee (if assigned)"""


def _create_task(args: Dict[str, str]) -> str:
    description = args.get("description")
    description_line = f"Description: {description}" if description else ""
    return f"""Please help me create a new task in Linear.

Title: {args["title"]}
{description_line}

First, use list_teams to find available teams.
Then, use list_workflow_states to see available starting states.
Finally, use create_issue to create the task with appropriate defaults."""


def _daily_standup(args: Dict[str, str]) -> str:
    return """Please generate a daily standup summary from my Linear issues.

Use list_issues to get recent issues, then summarize:

1. **Completed** (Done state): What was finished recently
2. **In Progress**: What's currently being worked on
3. **Blocked/Needs Review**: Any items that need attention
4. **Coming Up** (Backlog/Todo): What's planned next

Keep it concise and suitable for a standup meeting."""


def _write_project_update(args: Dict[str, str]) -> str:
    focus = args.get("focus") or DEFAULT_FOCUS
    focus_instruction = FOCUS_INSTRUCTIONS.get(focus, SUMMARY_INSTRUCTION)
    return f"""Please help me write a project update for Linear project ID: {args["projectId"]}

Focus area: {focus}

Steps to follow:

1. First, use get_project to get the project details and recent updates
2. Use list_issues with projectId to see all issues in this project
3. Analyze the current state of issues (completed, in progress, backlog)
4. {focus_instruction}

5. Draft a well-structured update in markdown format with:
   - **Summary**: A brief overview (1-2 sentences)
   - **Accomplishments**: What was completed
   - **In Progress**: Current active work
   - **Next Steps**: What's coming up
   - **Blockers/Risks**: Any issues (if applicable)

6. Suggest an appropriate health status:
   - onTrack (green): Everything is progressing well
   - atRisk (yellow): Some concerns but manageable
   - offTrack (red): Significant issues affecting timeline

7. Use create_project_update to post the update with the appropriate health status

Keep the update concise but informative - suitable for stakeholders to quickly understand project status."""


def _milestone_overview(args: Dict[str, str]) -> str:
    return f"""Please provide a milestone overview for Linear project ID: {args["projectId"]}

Steps to follow:

1. First, use get_project to get the project details
2. Use list_milestones with the projectId to get all milestones for this project
3. For each milestone, use list_milestone_issues to see all assigned issues
4. Present an overview showing:
   - Each milestone with its name, description, and target date
   - Progress: count of completed vs total issues for each milestone
   - Issue breakdown by state (completed, in progress, todo)
   - Any milestones approaching their target date

Format the output as a clear summary showing milestone progress and any upcoming deadlines."""


_TEMPLATES = {
    "kanban_overview": _kanban_overview,
    "create_task": _create_task,
    "daily_standup": _daily_standup,
    "write_project_update": _write_project_update,
    "milestone_overview": _milestone_overview,
}


def render(name: str, arguments: Optional[Dict[str, str]] = None) -> GetPromptResult:
    """Render prompt `name` as a single user message."""
    template = _TEMPLATES.get(name)
    prompt = next((p for p in PROMPTS if p.name == name), None)
    if template is None or prompt is None:
        raise UnknownOperation(name, kind="prompt")

    args = arguments or {}
    missing = [a.name for a in prompt.arguments or [] if a.required and not args.get(a.name)]
    if missing:
        raise MissingRequiredArgument(missing)

    text = template(args)
    return GetPromptResult(
        description=prompt.description,
        messages=[PromptMessage(role="user", content=TextContent(type="text", text=text))],
    )
