"""Tests for the validation engine: rule evaluation, reports, history, write-back."""

import pytest

from conftest import api_spec, make_project
from specdrive.models.domain import Artifact, Phase
from specdrive.synthesis.pipeline import PHASE_PLAN, ArtifactSynthesizer
from specdrive.validators import ValidationEngine, engine as engine_module, parse_rule
from specdrive.validators.base import BaseRuleCheck
from specdrive.validators.models import TaskCoverageRule


def result_for(report, rule_id):
    return next(r for r in report.validation_results if r.rule_id == rule_id)


# ---------------------------------------------------------------------------
# Rule evaluation
# ---------------------------------------------------------------------------

class TestRuleEvaluation:
    @pytest.mark.asyncio
    async def test_api_requirement_with_matching_endpoint_passes(self, engine):
        report = await engine.validate_artifacts("p1", "spec", {
            "PRD.md": "REQ-API-001: User authentication endpoint",
            "api-spec.json": api_spec({"/api/auth": {"post": {"summary": "User authentication"}}}),
        })

        result = result_for(report, "REQ-API-001")
        assert result.passed is True
        assert result.details["matched"] == 1
        assert result.affected_requirements == ["REQ-API-001"]

    @pytest.mark.asyncio
    async def test_descriptive_words_count_as_endpoint_keywords(self, engine):
        report = await engine.validate_artifacts("p1", "spec", {
            "PRD.md": "REQ-API-001: Very specific matching",
            "api-spec.json": api_spec({"/api/matching": {"post": {"summary": "Run matching"}}}),
        })

        result = result_for(report, "REQ-API-001")
        assert result.passed is True
        assert result.details["matches"] == {"REQ-API-001": ["POST /api/matching"]}

    @pytest.mark.asyncio
    async def test_bytes_content_is_decoded(self, engine):
        report = await engine.validate_artifacts("p1", "spec", {
            "PRD.md": b"REQ-API-001: User authentication endpoint",
            "api-spec.json": api_spec({"/api/auth": {"post": {"summary": "User authentication"}}}).encode(),
        })

        result = result_for(report, "REQ-API-001")
        assert result.passed is True
        assert result.affected_requirements == ["REQ-API-001"]
        assert report.report_metadata.artifacts_validated == 2

    @pytest.mark.asyncio
    async def test_api_requirement_without_endpoint_fails_report(self, engine):
        report = await engine.validate_artifacts("p1", "spec", {
            "PRD.md": "REQ-API-001: Payment processing endpoint",
            "api-spec.json": api_spec({"/api/users": {"get": {"summary": "List users"}}}),
        })

        result = result_for(report, "REQ-API-001")
        assert result.passed is False
        assert result.severity == "error"
        assert result.details["unmatched"] == ["REQ-API-001"]
        assert set(result.affected_artifacts) == {"PRD.md", "api-spec.json"}
        assert report.overall_status == "fail"
        assert report.failed_rules >= 1

    @pytest.mark.asyncio
    async def test_empty_artifact_set_passes_every_rule(self, engine):
        report = await engine.validate_artifacts("p1", "analysis", {})

        assert report.overall_status == "pass"
        assert report.total_rules == 5
        assert report.passed_rules == 5
        assert report.report_metadata.artifacts_validated == 0

    @pytest.mark.asyncio
    async def test_disabled_rule_is_not_evaluated(self, engine):
        assert engine.set_rule_enabled("REQ-API-001", False) is True

        report = await engine.validate_artifacts("p1", "spec", {
            "PRD.md": "REQ-API-001: Payment processing endpoint",
        })

        assert all(r.rule_id != "REQ-API-001" for r in report.validation_results)
        assert report.total_rules == 4

    @pytest.mark.asyncio
    async def test_counts_are_consistent(self, engine):
        report = await engine.validate_artifacts("p1", "spec", {
            "PRD.md": "REQ-API-001: Payment processing endpoint\nREQ-DATA-001: Store user data",
            "tasks.md": "- [ ] Write docs",
        })

        enabled = [r for r in engine.get_rules() if r.enabled]
        assert report.total_rules == len(enabled)
        assert report.passed_rules + report.failed_rules + report.warning_rules <= report.total_rules

    @pytest.mark.asyncio
    async def test_warning_only_report(self, engine):
        report = await engine.validate_artifacts("p1", "solutioning", {
            "PRD.md": "REQ-UI-001: Responsive dashboard",
            "tasks.md": "- [ ] Write docs",
        })

        assert result_for(report, "REQ-TASK-001").passed is False
        assert report.warning_rules == 1
        assert report.overall_status == "warning"

    @pytest.mark.asyncio
    async def test_missing_stack_category_is_flagged(self, engine):
        report = await engine.validate_artifacts("p1", "dependencies", {
            "stack-proposal.md": "Next.js with React on PostgreSQL",
            "DEPENDENCIES.md": "- next@14.2.3\n- react@18.3.1",
        })

        result = result_for(report, "STACK-DEP-001")
        assert result.passed is False
        assert result.details["missing"] == ["database"]

    @pytest.mark.asyncio
    async def test_entity_coverage_requires_enough_entities(self, engine):
        prd = "\n".join(f"REQ-DATA-00{i}: Store record {i}" for i in range(1, 5))
        report = await engine.validate_artifacts("p1", "spec", {
            "PRD.md": prd,
            "data-model.md": "## Record Table",
        })

        result = result_for(report, "REQ-DATA-001")
        assert result.details["required_entities"] == 2
        assert result.passed is False

    @pytest.mark.asyncio
    async def test_synthesized_artifacts_pass(self, engine):
        project = make_project()
        synthesizer = ArtifactSynthesizer()
        contents = {
            step.artifact_name: synthesizer.render(project, phase, step.artifact_name)
            for phase, plan in PHASE_PLAN.items()
            for step in plan
        }

        report = await engine.validate_artifacts(project.id, "solutioning", contents)

        assert report.overall_status == "pass"
        for rule_id in ("REQ-API-001", "REQ-DATA-001", "REQ-TASK-001", "STACK-DEP-001"):
            assert result_for(report, rule_id).passed is True

    @pytest.mark.asyncio
    async def test_failing_evaluator_only_fails_its_rule(self, engine, monkeypatch):
        class ExplodingCheck(BaseRuleCheck):
            check = "endpoint_overlap"

            @property
            def name(self):
                return "ExplodingCheck"

            def evaluate(self, rule, artifacts):
                raise RuntimeError("boom")

        monkeypatch.setitem(engine_module._CHECKS, "endpoint_overlap", ExplodingCheck())

        report = await engine.validate_artifacts("p1", "spec", {})

        result = result_for(report, "REQ-API-001")
        assert result.passed is False
        assert result.severity == "error"
        assert "boom" in result.message
        assert report.total_rules == 5
        assert report.overall_status == "fail"


# ---------------------------------------------------------------------------
# Rule registry
# ---------------------------------------------------------------------------

class TestRuleRegistry:
    def test_get_rules_returns_copies(self, engine):
        rules = engine.get_rules()
        rules[0].enabled = False
        rules.clear()

        assert len(engine.get_rules()) == 5
        assert all(r.enabled for r in engine.get_rules())

    def test_add_rule_replaces_same_id(self, engine):
        engine.add_rule(TaskCoverageRule(id="REQ-TASK-001", name="Strict tasks", max_missing_ratio=0.0))

        rules = [r for r in engine.get_rules() if r.id == "REQ-TASK-001"]
        assert len(rules) == 1
        assert rules[0].max_missing_ratio == 0.0

    def test_unknown_rule_ids(self, engine):
        assert engine.set_rule_enabled("NOPE", False) is False
        assert engine.remove_rule("NOPE") is False
        assert engine.get_rule("NOPE") is None

    def test_parse_rule_picks_variant(self):
        rule = parse_rule({"id": "X-1", "name": "Terms", "check": "topic_consistency", "terms": ["billing"]})
        assert rule.terms == ["billing"]

    def test_parse_rule_rejects_unknown_check(self):
        with pytest.raises(ValueError):
            parse_rule({"id": "X-1", "name": "Bad", "check": "regex"})

    @pytest.mark.asyncio
    async def test_load_rules_seeds_and_restores(self, engine, report_store):
        await engine.load_rules()
        assert len(await report_store.load_rules()) == 5

        engine.set_rule_enabled("REQ-TASK-001", False)
        await engine.save_rules()

        restored = ValidationEngine(report_store, rules=[])
        await restored.load_rules()

        assert [r.id for r in restored.get_rules()] == [r.id for r in engine.get_rules()]
        assert restored.get_rule("REQ-TASK-001").enabled is False

    @pytest.mark.asyncio
    async def test_rule_changes_apply_to_later_runs(self, engine):
        first = await engine.validate_artifacts("p1", "spec", {})
        engine.remove_rule("CROSS-ARTIFACT-001")
        second = await engine.validate_artifacts("p1", "spec", {})

        assert first.total_rules == 5
        assert second.total_rules == 4


# ---------------------------------------------------------------------------
# History and reports
# ---------------------------------------------------------------------------

class TestHistory:
    @pytest.mark.asyncio
    async def test_history_is_newest_first_and_limited(self, engine):
        reports = [await engine.validate_artifacts("p1", "spec", {}) for _ in range(3)]
        await engine.validate_artifacts("other", "spec", {})

        history = await engine.get_validation_history("p1", limit=2)

        assert [r.id for r in history] == [reports[2].id, reports[1].id]

    @pytest.mark.asyncio
    async def test_get_report(self, engine):
        report = await engine.validate_artifacts("p1", "spec", {})

        assert (await engine.get_validation_report(report.id)).id == report.id
        assert await engine.get_validation_report("missing") is None

    @pytest.mark.asyncio
    async def test_dashboard_trend_and_stats(self, engine):
        await engine.validate_artifacts("p1", "spec", {
            "PRD.md": "REQ-API-001: Payment processing endpoint",
        })
        await engine.validate_artifacts("p1", "spec", {})

        dashboard = await engine.dashboard("p1")

        metrics = dashboard["metrics"]
        assert metrics["total_validations"] == 2
        assert metrics["passed_validations"] == 1
        assert metrics["failed_validations"] == 1
        assert metrics["trend"] == "improving"
        assert dashboard["rule_stats"]["by_type"]["requirement_api"] == 2
        assert dashboard["rule_stats"]["by_severity"] == {"error": 2, "warning": 2, "info": 1}
        assert len(dashboard["recent_reports"]) == 2

    @pytest.mark.asyncio
    async def test_dashboard_without_reports(self, engine):
        dashboard = await engine.dashboard("p1")

        assert dashboard["metrics"]["total_validations"] == 0
        assert dashboard["metrics"]["last_validation"] is None
        assert dashboard["metrics"]["trend"] == "stable"


# ---------------------------------------------------------------------------
# Write-back
# ---------------------------------------------------------------------------

class TestWriteBack:
    @pytest.mark.asyncio
    async def test_statuses_follow_failing_severities(self, engine, store):
        contents = {
            "PRD.md": "REQ-API-001: Payment processing endpoint",
            "api-spec.json": api_spec({"/api/users": {"get": {"summary": "List users"}}}),
            "tasks.md": "- [ ] Write docs",
            "personas.md": "Owners and members",
        }
        artifacts = [
            Artifact(project_id="p1", phase=Phase.SPEC, artifact_name=name, content=content)
            for name, content in contents.items()
        ]
        for artifact in artifacts:
            await store.add_artifact(artifact)

        report = await engine.validate_artifacts("p1", "spec", contents)
        await engine.write_back(report, artifacts)

        stored = {a.artifact_name: a for a in await store.list_artifacts("p1")}
        assert stored["PRD.md"].validation_status == "fail"
        assert stored["api-spec.json"].validation_status == "fail"
        assert stored["tasks.md"].validation_status == "warn"
        assert stored["personas.md"].validation_status == "pass"
        assert any(e.startswith("REQ-TASK-001") for e in stored["tasks.md"].validation_errors)
