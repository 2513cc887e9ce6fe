"""Exceptions raised by cc-chats."""


class CcChatsError(Exception):
    """Base class for cc-chats errors."""


class SessionNotFoundError(CcChatsError):
    """A session transcript does not exist or has no messages."""

    def __init__(self, project_path: str, session_id: str):
        self.project_path = project_path
        self.session_id = session_id
        super().__init__(f"Session not found: {project_path}/{session_id}")


class ProjectNotFoundError(CcChatsError):
    """A project has no indexed sessions."""

    def __init__(self, project_path: str):
        self.project_path = project_path
        super().__init__(f"Project not found: {project_path}")


class SummaryGenerationError(CcChatsError):
    """The summary generator failed or had nothing to summarise."""

    def __init__(self, message: str, details: str | None = None):
        self.details = details
        super().__init__(f"{message}: {details}" if details else message)


class InvalidSummaryTypeError(CcChatsError, ValueError):
    """Summary type is neither 'session' nor 'project'."""


class ConfigurationError(CcChatsError):
    """An environment setting has an unusable value."""
