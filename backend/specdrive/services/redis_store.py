"""Redis store — JSON documents under a key prefix, lists for ordering."""

import json
from typing import Optional

import structlog
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from specdrive.models.domain import Artifact, Phase, PhaseHistoryEntry, Project
from specdrive.services.store import Store
from specdrive.validators.models import ValidationReport

logger = structlog.get_logger()

redis_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    retry=retry_if_exception_type((RedisConnectionError, RedisTimeoutError)),
    before_sleep=lambda retry_state: logger.warning(
        "redis_retry",
        attempt=retry_state.attempt_number,
        wait=retry_state.next_action.sleep,
    ),
    reraise=True,
)


class RedisStore(Store):
    """Store of record backed by `redis.asyncio`.

    Layout (all keys under the configured prefix):
        project:{id}              → Project JSON
        artifacts:{project_id}    → hash of artifact id → Artifact JSON
        history:{project_id}      → list of PhaseHistoryEntry JSON, oldest first
        report:{id}               → ValidationReport JSON
        reports:{project_id}      → list of report ids, newest first
        rules / rules:order       → hash of rule id → rule JSON, plus insertion order
    """

    def __init__(self, redis_client, prefix: str = "specdrive:"):
        self.redis = redis_client
        self._prefix = prefix

    def _key(self, *parts: str) -> str:
        return self._prefix + ":".join(parts)

    # ── Projects ──

    @redis_retry
    async def get_project(self, project_id: str) -> Optional[Project]:
        data = await self.redis.get(self._key("project", project_id))
        if data is None:
            return None
        return Project.model_validate_json(data)

    @redis_retry
    async def save_project(self, project: Project) -> None:
        await self.redis.set(self._key("project", project.id), project.model_dump_json())

    # ── Artifacts ──

    @redis_retry
    async def add_artifact(self, artifact: Artifact) -> None:
        await self.redis.hset(
            self._key("artifacts", artifact.project_id),
            artifact.id,
            artifact.model_dump_json(),
        )
        logger.debug(
            "artifact_stored",
            project_id=artifact.project_id,
            artifact=artifact.artifact_name,
            version=artifact.version,
        )

    @redis_retry
    async def update_artifact(self, artifact: Artifact) -> None:
        key = self._key("artifacts", artifact.project_id)
        if not await self.redis.hexists(key, artifact.id):
            raise ValueError(f"Artifact {artifact.id} not found")
        await self.redis.hset(key, artifact.id, artifact.model_dump_json())

    @redis_retry
    async def list_artifacts(self, project_id: str, phase: Optional[Phase] = None) -> list[Artifact]:
        rows = await self.redis.hvals(self._key("artifacts", project_id))
        artifacts = sorted(
            (Artifact.model_validate_json(row) for row in rows),
            key=lambda a: a.created_at,
        )
        if phase is not None:
            artifacts = [a for a in artifacts if a.phase == Phase(phase)]
        return artifacts

    # ── Phase history ──

    @redis_retry
    async def append_history(self, entry: PhaseHistoryEntry) -> None:
        await self.redis.rpush(self._key("history", entry.project_id), entry.model_dump_json())

    @redis_retry
    async def list_history(self, project_id: str) -> list[PhaseHistoryEntry]:
        rows = await self.redis.lrange(self._key("history", project_id), 0, -1)
        return [PhaseHistoryEntry.model_validate_json(row) for row in rows]

    # ── Validation reports ──

    @redis_retry
    async def save_report(self, report: ValidationReport) -> None:
        await self.redis.set(self._key("report", report.id), report.model_dump_json())
        await self.redis.lpush(self._key("reports", report.project_id), report.id)
        logger.debug("report_stored", project_id=report.project_id, report_id=report.id)

    @redis_retry
    async def list_reports(self, project_id: str, limit: int) -> list[ValidationReport]:
        if limit <= 0:
            return []
        ids = await self.redis.lrange(self._key("reports", project_id), 0, limit - 1)
        if not ids:
            return []
        rows = await self.redis.mget([self._key("report", report_id) for report_id in ids])
        return [ValidationReport.model_validate_json(row) for row in rows if row is not None]

    @redis_retry
    async def get_report(self, report_id: str) -> Optional[ValidationReport]:
        data = await self.redis.get(self._key("report", report_id))
        if data is None:
            return None
        return ValidationReport.model_validate_json(data)

    # ── Validation rules ──

    @redis_retry
    async def save_rule(self, rule: dict) -> None:
        rules_key = self._key("rules")
        if not await self.redis.hexists(rules_key, rule["id"]):
            await self.redis.rpush(self._key("rules", "order"), rule["id"])
        await self.redis.hset(rules_key, rule["id"], json.dumps(rule, default=str))

    @redis_retry
    async def list_rules(self) -> list[dict]:
        order = await self.redis.lrange(self._key("rules", "order"), 0, -1)
        if not order:
            return []
        rows = await self.redis.hmget(self._key("rules"), order)
        return [json.loads(row) for row in rows if row is not None]

    @redis_retry
    async def delete_rule(self, rule_id: str) -> bool:
        removed = await self.redis.hdel(self._key("rules"), rule_id)
        await self.redis.lrem(self._key("rules", "order"), 0, rule_id)
        return bool(removed)

    async def ping(self) -> bool:
        return await self.redis.ping()

    async def close(self) -> None:
        await self.redis.close()
        logger.info("redis_disconnected")
