"""Error taxonomy shared by the dispatcher, store and orchestration loop"""


class AgentError(Exception):
    """Base class for errors surfaced to the model as a failed tool result"""

    error_type = "agent_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AgentError):
    """Missing or malformed operation argument"""

    error_type = "validation_error"


class ConflictError(AgentError):
    """Requested slot already holds a confirmed appointment"""

    error_type = "conflict_error"


class NotFoundError(AgentError):
    """Target appointment is absent, not owned by the caller, or not in a modifiable state"""

    error_type = "not_found_error"


class SessionEndedError(AgentError):
    """Operation attempted on a session that has already ended"""

    error_type = "session_ended_error"


class CollaboratorError(AgentError):
    """Database, model or summarizer failure (including timeouts)"""

    error_type = "collaborator_error"


class UnknownOperationError(AgentError):
    """Operation name is not part of the tool catalog"""

    error_type = "unknown_operation"
