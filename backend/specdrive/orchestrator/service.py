"""Phase Orchestrator — public operations, routed to one actor per project."""

from typing import Optional

import structlog

from specdrive.exceptions import ProjectNotFoundError
from specdrive.models.domain import Artifact, Phase, PhaseHistoryEntry, Project
from specdrive.orchestrator.actor import ProjectActor
from specdrive.orchestrator.clock import Clock, SystemClock
from specdrive.orchestrator.phases import calculate_progress
from specdrive.orchestrator.state import (
    Advance,
    Approve,
    OrchestrationProgress,
    OrchestrationRecord,
    Pause,
    RunStatus,
    Start,
)
from specdrive.services.store import Store
from specdrive.synthesis.pipeline import ArtifactSynthesizer

logger = structlog.get_logger()


class Orchestrator:
    """Drives projects through the delivery phases.

    Mutations go through the project's actor and are therefore serialized per
    project id. Reads (`progress`, `history`, `artifacts`) go straight to the
    store, which gives read-your-writes consistency.
    """

    def __init__(
        self,
        store: Store,
        think_time: float,
        synthesizer: Optional[ArtifactSynthesizer] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.think_time = think_time
        self.synthesizer = synthesizer or ArtifactSynthesizer()
        self.clock = clock or SystemClock()
        self._actors: dict[str, ProjectActor] = {}

    async def get_project(self, project_id: str) -> Project:
        project = await self.store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def _actor(self, project_id: str) -> ProjectActor:
        await self.get_project(project_id)
        actor = self._actors.get(project_id)
        if actor is None:
            actor = ProjectActor(project_id, self.store, self.synthesizer, self.clock, self.think_time)
            actor.start()
            self._actors[project_id] = actor
        return actor

    # ── Commands ──

    async def start(self, project_id: str, user_id: Optional[str] = None) -> OrchestrationProgress:
        """Begin or resume synthesis; a start during an active run joins that run."""
        actor = await self._actor(project_id)
        await actor.ask(Start(user_id=user_id))
        return await self.progress(project_id)

    async def pause(self, project_id: str, user_id: Optional[str] = None) -> OrchestrationProgress:
        """Stop the active run; the step in flight is discarded. InvalidStateError if none is active."""
        actor = await self._actor(project_id)
        await actor.ask(Pause(user_id=user_id))
        return await self.progress(project_id)

    async def advance(self, project_id: str, user_id: Optional[str] = None) -> Project:
        """Explicit transition to the next phase. AlreadyFinalError at the terminal phase."""
        actor = await self._actor(project_id)
        return await actor.ask(Advance(user_id=user_id))

    async def approve_stack(self, project_id: str, user_id: Optional[str] = None) -> Project:
        actor = await self._actor(project_id)
        return await actor.ask(Approve(flag="stack_approved", user_id=user_id))

    async def approve_dependencies(self, project_id: str, user_id: Optional[str] = None) -> Project:
        actor = await self._actor(project_id)
        return await actor.ask(Approve(flag="dependencies_approved", user_id=user_id))

    # ── Reads ──

    async def progress(self, project_id: str) -> OrchestrationProgress:
        project = await self.get_project(project_id)
        if project.orchestration_state:
            record = OrchestrationRecord.model_validate(project.orchestration_state)
        else:
            record = OrchestrationRecord(project_id=project.id, phase=project.current_phase)

        return OrchestrationProgress(
            project_id=project.id,
            current_phase=project.current_phase,
            percent_complete=calculate_progress(project.current_phase, record.is_running),
            is_running=record.is_running,
            status=record.status,
            current_agent_label=record.current_agent_label if record.is_running else None,
            estimated_remaining=record.estimated_remaining_seconds if record.is_running else None,
            last_error=record.last_error if record.status == RunStatus.FAILED else None,
            phase_history=await self.store.list_history(project.id),
        )

    async def history(self, project_id: str) -> list[PhaseHistoryEntry]:
        await self.get_project(project_id)
        return await self.store.list_history(project_id)

    async def artifacts(self, project_id: str, phase: Optional[Phase] = None) -> list[Artifact]:
        await self.get_project(project_id)
        return await self.store.list_artifacts(project_id, phase=phase)

    # ── Lifecycle ──

    async def wait_idle(self, project_id: str) -> None:
        """Wait until the project's actor has no queued messages or pending steps."""
        actor = self._actors.get(project_id)
        if actor is not None:
            await actor.wait_idle()

    async def shutdown(self) -> None:
        for actor in self._actors.values():
            await actor.stop()
        logger.info("orchestrator_stopped", actors=len(self._actors))
        self._actors.clear()
