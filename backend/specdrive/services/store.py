"""Store of record — keyed CRUD over projects, artifacts, history, rules and reports.

Two backends implement the same async interface: `InMemoryStore` (default, tests)
and `RedisStore` (see redis_store.py). Both hand out copies, so callers never
mutate stored state by accident.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

import structlog

from specdrive.models.domain import Artifact, Phase, PhaseHistoryEntry, Project

if TYPE_CHECKING:
    from specdrive.validators.models import ValidationReport

logger = structlog.get_logger()


class Store(ABC):
    """Async keyed store with read-your-writes consistency."""

    # ── Projects ──

    @abstractmethod
    async def get_project(self, project_id: str) -> Optional[Project]:
        ...

    @abstractmethod
    async def save_project(self, project: Project) -> None:
        ...

    # ── Artifacts ──

    @abstractmethod
    async def add_artifact(self, artifact: Artifact) -> None:
        ...

    @abstractmethod
    async def update_artifact(self, artifact: Artifact) -> None:
        ...

    @abstractmethod
    async def list_artifacts(self, project_id: str, phase: Optional[Phase] = None) -> list[Artifact]:
        """Artifacts in creation order, optionally restricted to one phase."""
        ...

    # ── Phase history ──

    @abstractmethod
    async def append_history(self, entry: PhaseHistoryEntry) -> None:
        ...

    @abstractmethod
    async def list_history(self, project_id: str) -> list[PhaseHistoryEntry]:
        """Transitions in the order they happened."""
        ...

    # ── Validation reports ──

    @abstractmethod
    async def save_report(self, report: "ValidationReport") -> None:
        ...

    @abstractmethod
    async def list_reports(self, project_id: str, limit: int) -> list["ValidationReport"]:
        """Newest first, at most `limit` reports."""
        ...

    @abstractmethod
    async def get_report(self, report_id: str) -> Optional["ValidationReport"]:
        ...

    # ── Validation rules (stored as plain dicts) ──

    @abstractmethod
    async def save_rule(self, rule: dict) -> None:
        ...

    @abstractmethod
    async def list_rules(self) -> list[dict]:
        ...

    @abstractmethod
    async def delete_rule(self, rule_id: str) -> bool:
        ...

    @abstractmethod
    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryStore(Store):
    """Process-local store. State is lost when the process exits."""

    def __init__(self):
        self._projects: dict[str, Project] = {}
        self._artifacts: dict[str, list[Artifact]] = {}
        self._history: dict[str, list[PhaseHistoryEntry]] = {}
        self._reports: dict[str, "ValidationReport"] = {}
        self._reports_by_project: dict[str, list[str]] = {}
        self._rules: dict[str, dict] = {}

    async def get_project(self, project_id: str) -> Optional[Project]:
        project = self._projects.get(project_id)
        return project.model_copy(deep=True) if project else None

    async def save_project(self, project: Project) -> None:
        self._projects[project.id] = project.model_copy(deep=True)

    async def add_artifact(self, artifact: Artifact) -> None:
        self._artifacts.setdefault(artifact.project_id, []).append(artifact.model_copy(deep=True))
        logger.debug(
            "artifact_stored",
            project_id=artifact.project_id,
            artifact=artifact.artifact_name,
            version=artifact.version,
        )

    async def update_artifact(self, artifact: Artifact) -> None:
        rows = self._artifacts.get(artifact.project_id, [])
        for index, row in enumerate(rows):
            if row.id == artifact.id:
                rows[index] = artifact.model_copy(deep=True)
                return
        raise ValueError(f"Artifact {artifact.id} not found")

    async def list_artifacts(self, project_id: str, phase: Optional[Phase] = None) -> list[Artifact]:
        rows = self._artifacts.get(project_id, [])
        if phase is not None:
            rows = [a for a in rows if a.phase == Phase(phase)]
        return [a.model_copy(deep=True) for a in rows]

    async def append_history(self, entry: PhaseHistoryEntry) -> None:
        self._history.setdefault(entry.project_id, []).append(entry.model_copy(deep=True))

    async def list_history(self, project_id: str) -> list[PhaseHistoryEntry]:
        return [e.model_copy(deep=True) for e in self._history.get(project_id, [])]

    async def save_report(self, report: "ValidationReport") -> None:
        self._reports[report.id] = report
        self._reports_by_project.setdefault(report.project_id, []).insert(0, report.id)

    async def list_reports(self, project_id: str, limit: int) -> list["ValidationReport"]:
        ids = self._reports_by_project.get(project_id, [])[:max(limit, 0)]
        return [self._reports[report_id] for report_id in ids]

    async def get_report(self, report_id: str) -> Optional["ValidationReport"]:
        return self._reports.get(report_id)

    async def save_rule(self, rule: dict) -> None:
        self._rules[rule["id"]] = dict(rule)

    async def list_rules(self) -> list[dict]:
        return [dict(rule) for rule in self._rules.values()]

    async def delete_rule(self, rule_id: str) -> bool:
        return self._rules.pop(rule_id, None) is not None

    async def ping(self) -> bool:
        return True
