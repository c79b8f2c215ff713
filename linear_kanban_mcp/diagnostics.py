#!/usr/bin/env python3
"""
Milestone Smoke Check

Finds a project by name and creates a test milestone on it, to verify the
API key and milestone support end to end without going through MCP.

Usage:
    linear-kanban-diagnose [PROJECT_QUERY]
"""

import argparse
import asyncio
import sys

from . import config
from .errors import KanbanMCPError
from .linear_client import LinearClient
from .time_utils import date_in_days

DEFAULT_PROJECT_QUERY = "21app"
TARGET_DAYS_AHEAD = 30


def find_project(projects, query: str):
    """First project whose name contains `query`, case-insensitively."""
    wanted = query.lower()
    return next((p for p in projects if wanted in p.name.lower()), None)


async def check_milestones(client: LinearClient, query: str) -> int:
    print(f"Searching for {query} project...")
    projects = await client.projects()

    project = find_project(projects, query)
    if project is None:
        print("Available projects:")
        for p in projects:
            print(f"  - {p.name} (ID: {p.id})")
        print(f"\nCould not find a project containing '{query}'. Please check the project name above.",
              file=sys.stderr)
        return 1

    print(f"Found project: {project.name} (ID: {project.id})")

    print("\nCreating test milestone...")
    milestone = await client.create_project_milestone({
        "name": "Test Milestone",
        "projectId": project.id,
        "description": "This is a test milestone created via the Linear Kanban MCP server",
        "targetDate": date_in_days(TARGET_DAYS_AHEAD),
    })

    print("\nMilestone created successfully!")
    print(f"  ID: {milestone.id}")
    print(f"  Name: {milestone.name}")
    print(f"  Description: {milestone.description}")
    print(f"  Target Date: {milestone.target_date}")
    return 0


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a test milestone on a Linear project")
    parser.add_argument("project_query", nargs="?", default=DEFAULT_PROJECT_QUERY,
                        help=f"Part of the project name to look for (default: {DEFAULT_PROJECT_QUERY})")
    args = parser.parse_args(argv)

    api_key = config.validate_api_key()

    async with LinearClient(api_key, api_url=config.LINEAR_API_URL, timeout=config.REQUEST_TIMEOUT) as client:
        try:
            return await check_milestones(client, args.project_query)
        except KanbanMCPError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1


def run():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
