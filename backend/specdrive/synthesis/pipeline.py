"""Artifact synthesis pipeline — the per-phase artifact plan and artifact construction."""

import hashlib
from typing import Iterable, NamedTuple

import structlog

from specdrive.models.domain import Artifact, Phase, Project
from specdrive.synthesis.templates import RENDERERS

logger = structlog.get_logger()


class PlannedArtifact(NamedTuple):
    artifact_name: str
    agent_label: str


ANALYST = "Analyst"
ARCHITECT = "Architect"
PRODUCT_MANAGER = "Product Manager"
DEVOPS_ENGINEER = "DevOps Engineer"
SCRUM_MASTER = "Scrum Master"

# Ordered synthesis steps per phase; "done" has none
PHASE_PLAN: dict[Phase, list[PlannedArtifact]] = {
    Phase.ANALYSIS: [
        PlannedArtifact("constitution.md", ANALYST),
        PlannedArtifact("project-brief.md", ANALYST),
        PlannedArtifact("personas.md", ANALYST),
    ],
    Phase.STACK_SELECTION: [
        PlannedArtifact("plan.md", ARCHITECT),
        PlannedArtifact("README.md", ARCHITECT),
        PlannedArtifact("stack-proposal.md", ARCHITECT),
        PlannedArtifact("stack-scorecard.json", ARCHITECT),
    ],
    Phase.SPEC: [
        PlannedArtifact("PRD.md", PRODUCT_MANAGER),
        PlannedArtifact("data-model.md", ARCHITECT),
        PlannedArtifact("api-spec.json", ARCHITECT),
        PlannedArtifact("traceability.json", PRODUCT_MANAGER),
    ],
    Phase.DEPENDENCIES: [
        PlannedArtifact("DEPENDENCIES.md", DEVOPS_ENGINEER),
        PlannedArtifact("dependency-proposal.json", DEVOPS_ENGINEER),
        PlannedArtifact("sbom.json", DEVOPS_ENGINEER),
    ],
    Phase.SOLUTIONING: [
        PlannedArtifact("architecture.md", ARCHITECT),
        PlannedArtifact("epics.md", SCRUM_MASTER),
        PlannedArtifact("tasks.md", SCRUM_MASTER),
        PlannedArtifact("traceability.json", SCRUM_MASTER),
    ],
    Phase.DONE: [],
}

MIN_QUALITY_SCORE = 85
MAX_QUALITY_SCORE = 100


def phase_plan(phase: Phase) -> list[PlannedArtifact]:
    return PHASE_PLAN[Phase(phase)]


def next_version(existing: Iterable[Artifact], artifact_name: str) -> str:
    """1.0.0 for a new name, then 1.1.0, 1.2.0, ... for each re-synthesis."""
    count = sum(1 for a in existing if a.artifact_name == artifact_name)
    return f"1.{count}.0"


def quality_score(project_id: str, artifact_name: str, version: str) -> int:
    """Stable score in [85, 100] derived from the artifact's identity."""
    digest = hashlib.sha256(f"{project_id}:{artifact_name}:{version}".encode()).hexdigest()
    span = MAX_QUALITY_SCORE - MIN_QUALITY_SCORE + 1
    return MIN_QUALITY_SCORE + int(digest, 16) % span


class ArtifactSynthesizer:
    """Builds the artifact for one plan step. Persisting it is the caller's job."""

    def render(self, project: Project, phase: Phase, artifact_name: str) -> str:
        renderer = RENDERERS.get((Phase(phase).value, artifact_name))
        if renderer is None:
            raise ValueError(f"No template for {artifact_name} in phase {Phase(phase).value}")
        return renderer(project)

    async def synthesize(
        self,
        project: Project,
        phase: Phase,
        step_index: int,
        existing: list[Artifact],
    ) -> Artifact:
        """Synthesize step `step_index` of `phase` for the project.

        Args:
            project: Source of name, description and idea for the templates
            phase: Phase whose plan is being executed
            step_index: Position in the phase plan
            existing: The project's stored artifacts, used for versioning

        Returns:
            A new Artifact with validation_status "pass"
        """
        planned = phase_plan(phase)[step_index]
        content = self.render(project, phase, planned.artifact_name)
        version = next_version(existing, planned.artifact_name)

        artifact = Artifact(
            project_id=project.id,
            phase=phase,
            artifact_name=planned.artifact_name,
            version=version,
            validation_status="pass",
            quality_score=quality_score(project.id, planned.artifact_name, version),
            content=content,
            content_hash=hashlib.sha256(content.encode()).hexdigest(),
            agent_label=planned.agent_label,
        )

        logger.info(
            "artifact_synthesized",
            project_id=project.id,
            phase=Phase(phase).value,
            artifact=planned.artifact_name,
            version=version,
            agent=planned.agent_label,
            quality_score=artifact.quality_score,
        )
        return artifact
