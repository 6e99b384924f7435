"""Domain exceptions raised by the orchestrator and mapped to HTTP codes in main."""


class SpecDriveError(Exception):
    """Base class for all SpecDrive domain errors."""


class ProjectNotFoundError(SpecDriveError, LookupError):
    """Unknown project id."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")


class InvalidStateError(SpecDriveError, ValueError):
    """Operation is not allowed in the project's current phase or run state."""


class AlreadyFinalError(InvalidStateError):
    """Advance requested while the project is already in the terminal phase."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project {project_id} is already at final phase")
