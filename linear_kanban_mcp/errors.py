"""
Error taxonomy for the Linear Kanban MCP server.

Tool handlers raise these and the dispatcher turns them into error envelopes.
Resource reads wrap every failure in ResourceReadError and let it propagate.
"""

from typing import Any, Dict, Iterable, Optional


class KanbanMCPError(Exception):
    """Base exception. `details` are merged into the error envelope."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class UnknownOperation(KanbanMCPError):
    """Raised when a tool or prompt name is not in its catalog."""

    def __init__(self, name: str, kind: str = "tool"):
        self.name = name
        self.kind = kind
        super().__init__(f"Unknown {kind}: {name}")


class MissingRequiredArgument(KanbanMCPError):
    """Raised when a required argument is absent from the argument bag."""

    def __init__(self, missing: Iterable[str] = (), message: str = None):
        self.missing = list(missing)
        if message is None:
            message = f"Missing required argument(s): {', '.join(self.missing)}"
        super().__init__(message)


class UpstreamNotFound(KanbanMCPError):
    """Raised when Linear has no entity for the requested identifier."""

    def __init__(self, message: str, entity: str = None, identifier: str = None,
                 details: Optional[Dict[str, Any]] = None):
        self.entity = entity
        self.identifier = identifier
        super().__init__(message, details)


class TeamNotFound(UpstreamNotFound):
    def __init__(self, message: str = "No team found", identifier: str = None):
        super().__init__(message, entity="Team", identifier=identifier)


class StateNotFound(UpstreamNotFound):
    """Raised when no workflow state matches a name; lists the names that do exist."""

    def __init__(self, state_name: str, available_states: Iterable[str]):
        self.state_name = state_name
        self.available_states = list(available_states)
        super().__init__(
            f"State '{state_name}' not found",
            entity="WorkflowState",
            identifier=state_name,
            details={"availableStates": self.available_states},
        )


class UpstreamCallFailure(KanbanMCPError):
    """Network, authentication or validation failure reported by the Linear API."""

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)


class ResourceReadError(KanbanMCPError):
    def __init__(self, uri: str, cause: str):
        self.uri = uri
        super().__init__(f"Failed to read resource {uri}: {cause}")
