"""Tests for the Redis store against an in-process stand-in for `redis.asyncio.Redis`."""

from collections import Counter

import pytest

from conftest import make_project
from specdrive.models.domain import Phase, PhaseHistoryEntry
from specdrive.services.redis_store import RedisStore
from specdrive.validators.models import ValidationReport


class FakeRedis:
    """Dict-backed subset of the redis.asyncio command set; counts every call."""

    def __init__(self):
        self.strings: dict[str, str] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.lists: dict[str, list[str]] = {}
        self.calls: Counter = Counter()

    async def get(self, key):
        self.calls["get"] += 1
        return self.strings.get(key)

    async def set(self, key, value):
        self.calls["set"] += 1
        self.strings[key] = value

    async def mget(self, keys):
        self.calls["mget"] += 1
        return [self.strings.get(key) for key in keys]

    async def hset(self, key, field, value):
        self.calls["hset"] += 1
        self.hashes.setdefault(key, {})[field] = value

    async def hexists(self, key, field):
        self.calls["hexists"] += 1
        return field in self.hashes.get(key, {})

    async def hvals(self, key):
        self.calls["hvals"] += 1
        return list(self.hashes.get(key, {}).values())

    async def hmget(self, key, fields):
        self.calls["hmget"] += 1
        return [self.hashes.get(key, {}).get(field) for field in fields]

    async def hdel(self, key, field):
        self.calls["hdel"] += 1
        return 1 if self.hashes.get(key, {}).pop(field, None) is not None else 0

    async def rpush(self, key, value):
        self.calls["rpush"] += 1
        self.lists.setdefault(key, []).append(value)

    async def lpush(self, key, value):
        self.calls["lpush"] += 1
        self.lists.setdefault(key, []).insert(0, value)

    async def lrange(self, key, start, end):
        self.calls["lrange"] += 1
        rows = self.lists.get(key, [])
        return rows[start:] if end == -1 else rows[start:end + 1]

    async def lrem(self, key, count, value):
        self.calls["lrem"] += 1
        self.lists[key] = [v for v in self.lists.get(key, []) if v != value]

    async def ping(self):
        return True

    async def close(self):
        pass


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_store(fake_redis):
    return RedisStore(fake_redis, prefix="t:")


def report(project_id: str, phase: str) -> ValidationReport:
    return ValidationReport.build(project_id=project_id, phase=phase, results=[])


class TestReports:
    @pytest.mark.asyncio
    async def test_list_reports_is_newest_first_in_one_read(self, redis_store, fake_redis):
        saved = [report("p1", f"phase-{i}") for i in range(4)]
        for r in saved:
            await redis_store.save_report(r)
        fake_redis.calls.clear()

        reports = await redis_store.list_reports("p1", limit=3)

        assert [r.id for r in reports] == [saved[3].id, saved[2].id, saved[1].id]
        assert fake_redis.calls["mget"] == 1
        assert fake_redis.calls["get"] == 0

    @pytest.mark.asyncio
    async def test_list_reports_empty_and_zero_limit(self, redis_store, fake_redis):
        assert await redis_store.list_reports("p1", limit=5) == []
        await redis_store.save_report(report("p1", "spec"))
        fake_redis.calls.clear()

        assert await redis_store.list_reports("p1", limit=0) == []
        assert sum(fake_redis.calls.values()) == 0

    @pytest.mark.asyncio
    async def test_get_report_by_id(self, redis_store):
        stored = report("p1", "spec")
        await redis_store.save_report(stored)

        assert (await redis_store.get_report(stored.id)).id == stored.id
        assert await redis_store.get_report("missing") is None


class TestProjectsAndHistory:
    @pytest.mark.asyncio
    async def test_project_round_trip_under_prefix(self, redis_store, fake_redis):
        project = make_project()
        await redis_store.save_project(project)

        assert f"t:project:{project.id}" in fake_redis.strings
        assert (await redis_store.get_project(project.id)).name == "Task Tracker"
        assert await redis_store.get_project("missing") is None

    @pytest.mark.asyncio
    async def test_history_is_oldest_first(self, redis_store):
        for from_phase, to_phase in [
            (Phase.ANALYSIS, Phase.STACK_SELECTION),
            (Phase.STACK_SELECTION, Phase.SPEC),
        ]:
            await redis_store.append_history(PhaseHistoryEntry(
                project_id="p1", from_phase=from_phase, to_phase=to_phase,
            ))

        history = await redis_store.list_history("p1")
        assert [h.to_phase for h in history] == [Phase.STACK_SELECTION, Phase.SPEC]


class TestRules:
    @pytest.mark.asyncio
    async def test_rules_keep_insertion_order_and_delete(self, redis_store):
        await redis_store.save_rule({"id": "B", "name": "second"})
        await redis_store.save_rule({"id": "A", "name": "first"})
        await redis_store.save_rule({"id": "B", "name": "second, edited"})

        assert [r["name"] for r in await redis_store.list_rules()] == ["second, edited", "first"]
        assert await redis_store.delete_rule("B") is True
        assert await redis_store.delete_rule("B") is False
        assert [r["id"] for r in await redis_store.list_rules()] == ["A"]
