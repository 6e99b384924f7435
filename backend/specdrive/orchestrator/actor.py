"""Project actor — the single writer for one project's phase and run state.

Every mutation arrives as a message on the actor's mailbox and is handled to
completion before the next one starts. Synthesis is an explicit state machine:
a timer task waits the think-time on the injected clock, then posts
StepCompleted(run_id, step_index); completions that no longer match the
stored record are ignored.
"""

import asyncio
from typing import Any, Optional

import structlog

from specdrive.exceptions import AlreadyFinalError, InvalidStateError, ProjectNotFoundError
from specdrive.models.domain import Phase, PhaseHistoryEntry, Project, new_id, next_phase
from specdrive.orchestrator.clock import Clock
from specdrive.orchestrator.phases import GATE_PHASES, gate_satisfied
from specdrive.orchestrator.state import (
    Advance,
    Approve,
    Message,
    OrchestrationRecord,
    Pause,
    RunStatus,
    Start,
    StepCompleted,
)
from specdrive.services.store import Store
from specdrive.synthesis.pipeline import ArtifactSynthesizer, phase_plan

logger = structlog.get_logger()


class ProjectActor:
    """Serializes start, pause, advance, approvals and step completions for one project."""

    def __init__(
        self,
        project_id: str,
        store: Store,
        synthesizer: ArtifactSynthesizer,
        clock: Clock,
        think_time: float,
    ):
        self.project_id = project_id
        self.store = store
        self.synthesizer = synthesizer
        self.clock = clock
        self.think_time = think_time

        self._mailbox: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._timer: Optional[asyncio.Task] = None

    # ── Lifecycle ──

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name=f"project-actor-{self.project_id}")

    async def stop(self) -> None:
        tasks = [t for t in (self._timer, self._task) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._task = None
        self._timer = None

    async def ask(self, message: Message) -> Any:
        """Post a message and wait for the handler's result (or exception)."""
        reply = asyncio.get_running_loop().create_future()
        await self._mailbox.put((message, reply))
        return await reply

    async def wait_idle(self) -> None:
        """Return once the mailbox is drained and no step timer is pending."""
        while True:
            await self._mailbox.join()
            timer = self._timer
            if timer is not None and not timer.done():
                await asyncio.wait([timer])
                continue
            if self._mailbox.empty():
                return

    async def _run(self) -> None:
        try:
            await self._recover()
        except Exception as e:
            # The mailbox must keep serving; handlers reload the record themselves
            logger.error(
                "orchestration_recovery_failed",
                project_id=self.project_id,
                error=str(e),
                error_type=type(e).__name__,
            )
        while True:
            message, reply = await self._mailbox.get()
            try:
                result = await self._handle(message)
            except Exception as e:
                if reply is not None and not reply.done():
                    reply.set_exception(e)
                else:
                    logger.error(
                        "actor_message_failed",
                        project_id=self.project_id,
                        message=type(message).__name__,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
            else:
                if reply is not None and not reply.done():
                    reply.set_result(result)
            finally:
                self._mailbox.task_done()

    async def _recover(self) -> None:
        """A record left `running` by an earlier process has no live timer; park it as paused."""
        project = await self.store.get_project(self.project_id)
        if project is None:
            return
        record = self._record_for(project)
        if record.status == RunStatus.RUNNING:
            record.status = RunStatus.PAUSED
            record.run_id = None
            record.current_agent_label = None
            record.estimated_remaining_seconds = None
            await self._save(project, record)
            logger.warning("orchestration_recovered_as_paused", project_id=self.project_id)

    async def _handle(self, message: Message) -> Any:
        if isinstance(message, StepCompleted):
            return await self._on_step_completed(message)
        if isinstance(message, Start):
            return await self._on_start(message)
        if isinstance(message, Pause):
            return await self._on_pause(message)
        if isinstance(message, Advance):
            return await self._on_advance(message)
        if isinstance(message, Approve):
            return await self._on_approve(message)
        raise TypeError(f"Unknown message {message!r}")

    # ── Record persistence ──

    def _record_for(self, project: Project) -> OrchestrationRecord:
        if project.orchestration_state:
            return OrchestrationRecord.model_validate(project.orchestration_state)
        return OrchestrationRecord(project_id=project.id, phase=project.current_phase)

    async def _load(self) -> tuple[Project, OrchestrationRecord]:
        project = await self.store.get_project(self.project_id)
        if project is None:
            raise ProjectNotFoundError(self.project_id)
        return project, self._record_for(project)

    async def _save(self, project: Project, record: OrchestrationRecord) -> None:
        now = self.clock.now()
        record.version += 1
        record.updated_at = now
        project.orchestration_state = record.model_dump(mode="json")
        project.updated_at = now
        await self.store.save_project(project)

    # ── Step scheduling ──

    def _schedule_step(self, record: OrchestrationRecord) -> None:
        """Point the record at its next step; the caller saves before the timer fires."""
        plan = phase_plan(record.phase)
        record.current_agent_label = plan[record.step_index].agent_label
        record.estimated_remaining_seconds = (len(plan) - record.step_index) * self.think_time
        self._timer = asyncio.create_task(self._step_timer(record.run_id, record.step_index))

    async def _schedule_and_save(self, project: Project, record: OrchestrationRecord) -> None:
        """A timer only outlives this call if the record that expects it was stored."""
        self._schedule_step(record)
        try:
            await self._save(project, record)
        except Exception:
            self._cancel_timer()
            raise

    async def _step_timer(self, run_id: str, step_index: int) -> None:
        await self.clock.sleep(self.think_time)
        await self._mailbox.put((StepCompleted(run_id=run_id, step_index=step_index), None))

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    @staticmethod
    def _clear_run(record: OrchestrationRecord, status: RunStatus) -> None:
        record.status = status
        record.run_id = None
        record.current_agent_label = None
        record.estimated_remaining_seconds = None

    async def _fail_run(
        self,
        error: Exception,
        phase: Optional[Phase] = None,
        step_index: Optional[int] = None,
    ) -> None:
        """Persist the run as failed, starting from the stored record.

        `step_index` records steps already synthesized in `phase`; it is kept
        only while the stored record still points at that phase.
        """
        self._cancel_timer()
        project, record = await self._load()
        self._clear_run(record, RunStatus.FAILED)
        record.last_error = str(error)
        if step_index is not None and record.phase == phase == project.current_phase:
            record.step_index = step_index
        await self._save(project, record)

    # ── Transitions ──

    async def _transition(
        self,
        project: Project,
        record: OrchestrationRecord,
        artifacts_generated: list[str],
        transitioned_by: Optional[str],
    ) -> Phase:
        """Move the project one phase forward and append the history entry.

        The caller saves the project afterwards. Phases only move forward, so a
        (from, to) pair already in the history was written by an earlier
        attempt whose save failed; it is not written again.
        """
        from_phase = project.current_phase
        to_phase = next_phase(from_phase)
        if to_phase is None:
            raise AlreadyFinalError(project.id)

        history = await self.store.list_history(project.id)
        if not any(h.from_phase == from_phase and h.to_phase == to_phase for h in history):
            await self.store.append_history(PhaseHistoryEntry(
                project_id=project.id,
                from_phase=from_phase,
                to_phase=to_phase,
                artifacts_generated=artifacts_generated,
                validation_passed=True,
                transitioned_by=transitioned_by,
                transitioned_at=self.clock.now(),
            ))

        if from_phase not in project.phases_completed:
            project.phases_completed.append(from_phase)
        project.current_phase = to_phase

        record.phase = to_phase
        record.step_index = 0
        record.current_agent_label = None
        record.estimated_remaining_seconds = None

        logger.info(
            "phase_transitioned",
            project_id=project.id,
            from_phase=from_phase.value,
            to_phase=to_phase.value,
            artifacts=len(artifacts_generated),
            transitioned_by=transitioned_by,
        )
        return to_phase

    async def _continue_after_phase(self, project: Project, record: OrchestrationRecord) -> None:
        """Transition after a fully synthesized phase and keep the run going."""
        planned = [step.artifact_name for step in phase_plan(project.current_phase)]
        to_phase = await self._transition(project, record, planned, record.started_by)

        if to_phase == Phase.DONE:
            self._clear_run(record, RunStatus.COMPLETED)
            await self._save(project, record)
            logger.info("orchestration_completed", project_id=project.id)
            return

        record.status = RunStatus.RUNNING
        await self._schedule_and_save(project, record)

    async def _finish_phase(self, project: Project, record: OrchestrationRecord) -> None:
        """Every planned artifact of the current phase exists: halt at its gate or move on."""
        if not gate_satisfied(project, project.current_phase):
            self._clear_run(record, RunStatus.AWAITING_APPROVAL)
            await self._save(project, record)
            logger.info(
                "orchestration_awaiting_approval",
                project_id=project.id,
                phase=project.current_phase.value,
            )
            return

        await self._continue_after_phase(project, record)

    # ── Handlers ──

    async def _on_start(self, message: Start) -> None:
        project, record = await self._load()

        if project.current_phase == Phase.DONE:
            return
        if record.status == RunStatus.RUNNING:
            logger.info("orchestration_start_coalesced", project_id=project.id, run_id=record.run_id)
            return

        if record.status == RunStatus.AWAITING_APPROVAL and record.phase == project.current_phase:
            if not gate_satisfied(project, project.current_phase):
                logger.info("orchestration_awaiting_approval", project_id=project.id, phase=project.current_phase.value)
                return
            record.run_id = new_id()
            record.started_at = self.clock.now()
            record.started_by = message.user_id
            await self._continue_after_phase(project, record)
            return

        resumable = record.status in (RunStatus.PAUSED, RunStatus.FAILED) and record.phase == project.current_phase
        if not resumable:
            record.phase = project.current_phase
            record.step_index = 0

        record.status = RunStatus.RUNNING
        record.run_id = new_id()
        record.started_at = self.clock.now()
        record.started_by = message.user_id
        record.last_error = None

        if record.step_index >= len(phase_plan(record.phase)):
            # Every artifact exists; an earlier attempt failed while leaving the phase
            await self._finish_phase(project, record)
        else:
            await self._schedule_and_save(project, record)

        logger.info(
            "orchestration_started",
            project_id=project.id,
            run_id=record.run_id,
            phase=record.phase.value,
            step_index=record.step_index,
            resumed=resumable,
        )

    async def _on_pause(self, message: Pause) -> None:
        project, record = await self._load()
        if record.status != RunStatus.RUNNING:
            raise InvalidStateError(f"Orchestration for project {project.id} is not running")

        self._cancel_timer()
        run_id = record.run_id
        self._clear_run(record, RunStatus.PAUSED)
        await self._save(project, record)

        logger.info("orchestration_paused", project_id=project.id, run_id=run_id, step_index=record.step_index)

    async def _on_advance(self, message: Advance) -> Project:
        project, record = await self._load()
        if project.current_phase == Phase.DONE:
            raise AlreadyFinalError(project.id)

        self._cancel_timer()
        was_running = record.status == RunStatus.RUNNING
        try:
            generated = []
            for artifact in await self.store.list_artifacts(project.id, phase=project.current_phase):
                if artifact.artifact_name not in generated:
                    generated.append(artifact.artifact_name)

            to_phase = await self._transition(project, record, generated, message.user_id)
            self._clear_run(record, RunStatus.COMPLETED if to_phase == Phase.DONE else RunStatus.IDLE)
            record.last_error = None
            await self._save(project, record)
        except Exception as e:
            # The timer is gone, so a stored running record must not survive
            if was_running:
                await self._fail_run(e)
            raise
        return project

    async def _on_approve(self, message: Approve) -> Project:
        project, record = await self._load()
        required_phase = GATE_PHASES[message.flag]
        if project.current_phase != required_phase:
            raise InvalidStateError(
                f"Cannot set {message.flag} while project {project.id} is in phase "
                f"{project.current_phase.value}; it requires {required_phase.value}"
            )

        setattr(project, message.flag, True)
        logger.info("gate_approved", project_id=project.id, flag=message.flag, user_id=message.user_id)

        if record.status == RunStatus.AWAITING_APPROVAL and record.phase == project.current_phase:
            record.run_id = record.run_id or new_id()
            record.started_by = message.user_id or record.started_by
            await self._continue_after_phase(project, record)
        else:
            await self._save(project, record)
        return project

    async def _on_step_completed(self, message: StepCompleted) -> None:
        project, record = await self._load()

        if (
            record.status != RunStatus.RUNNING
            or record.run_id != message.run_id
            or record.step_index != message.step_index
        ):
            logger.debug(
                "stale_step_ignored",
                project_id=project.id,
                run_id=message.run_id,
                step_index=message.step_index,
            )
            return

        phase = project.current_phase
        try:
            existing = await self.store.list_artifacts(project.id)
            artifact = await self.synthesizer.synthesize(project, phase, record.step_index, existing)
            await self.store.add_artifact(artifact)
        except Exception as e:
            # Run aborts; the phase is unchanged and a later start() resumes this step
            logger.error(
                "synthesis_failed",
                project_id=project.id,
                phase=phase.value,
                step_index=record.step_index,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self._fail_run(e)
            return

        self._timer = None
        record.step_index += 1
        completed = record.step_index

        try:
            if completed < len(phase_plan(phase)):
                await self._schedule_and_save(project, record)
            else:
                await self._finish_phase(project, record)
        except Exception as e:
            # The artifact is stored; a later start() continues after it
            logger.error(
                "orchestration_step_failed",
                project_id=project.id,
                phase=phase.value,
                step_index=completed,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self._fail_run(e, phase=phase, step_index=completed)

