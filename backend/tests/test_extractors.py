"""Tests for the artifact parsers shared by validation and traceability."""

import json

from specdrive.validators.artifacts import ArtifactSet, canonical_artifact_name
from specdrive.validators.extractors import (
    extract_api_endpoints,
    extract_data_entities,
    extract_dependencies,
    extract_requirements,
    extract_stack,
    extract_tasks,
    stack_categories,
    tokenize,
)


class TestRequirements:
    def test_plain_and_bulleted_lines(self):
        text = "REQ-API-001: User endpoints\n- REQ-DATA-002: Store orders\nnot a requirement"
        reqs = extract_requirements(text)
        assert [r.id for r in reqs] == ["REQ-API-001", "REQ-DATA-002"]
        assert reqs[0].title == "User endpoints"

    def test_categories_first_match_wins(self):
        reqs = extract_requirements(
            "REQ-AUTH-001: Login with password\n"
            "REQ-DATA-001: Store invoices\n"
            "REQ-UI-001: Responsive layout\n"
            "REQ-API-001: Billing service integration\n"
            "REQ-SEC-001: Permission checks\n"
            "REQ-GEN-001: Nightly export"
        )
        assert [r.category for r in reqs] == [
            "authentication", "data", "ui", "api", "security", "general",
        ]

    def test_empty_and_none(self):
        assert extract_requirements("") == []
        assert extract_requirements(None) == []


class TestApiEndpoints:
    def test_reads_methods_and_summaries(self):
        spec = json.dumps({"paths": {"/api/auth": {"post": {"summary": "User authentication"}}}})
        endpoints = extract_api_endpoints(spec)
        assert len(endpoints) == 1
        assert endpoints[0].label == "POST /api/auth"
        assert endpoints[0].description == "User authentication"

    def test_malformed_json_is_empty(self):
        assert extract_api_endpoints("{not json") == []

    def test_paths_not_an_object_is_empty(self):
        assert extract_api_endpoints(json.dumps({"paths": ["/api/a"]})) == []

    def test_ignores_non_http_keys(self):
        spec = json.dumps({"paths": {"/api/a": {"parameters": [], "get": {"description": "List a"}}}})
        assert [e.label for e in extract_api_endpoints(spec)] == ["GET /api/a"]


class TestDataEntities:
    def test_table_entity_schema_headings(self):
        text = "# Order Entity\n## User Table\n### Audit Schema\n## Notes\n#### Deep Table"
        assert [e.name for e in extract_data_entities(text)] == ["Order", "User", "Audit"]


class TestTasks:
    def test_checkbox_and_numbered(self):
        text = "- [ ] Build login\n- [x] Add tests\n- [T-7] Wire API\n1. Deploy\n* 2. Monitor\nprose"
        tasks = extract_tasks(text)
        assert [t.title for t in tasks] == ["Build login", "Add tests", "Wire API", "Deploy", "Monitor"]
        assert tasks[2].id == "T-7"


class TestStackAndDependencies:
    def test_stack_word_boundaries(self):
        text = "We use Next.js with React and Drizzle. Reactive streams are out."
        assert extract_stack(text) == ["Next.js", "React", "Drizzle"]
        assert stack_categories(text) == ["framework", "ui", "database"]

    def test_pinned_dependencies(self):
        deps = extract_dependencies("- next@14.2.3\n- @neondatabase/serverless@0.9.3\nfastapi==0.110.0")
        by_name = {d.name: d for d in deps}
        assert by_name["next"].category == "framework"
        assert by_name["@neondatabase/serverless"].category == "database"
        assert by_name["fastapi"].version == "0.110.0"

    def test_auth_packages_are_not_framework(self):
        deps = extract_dependencies("next-auth@4.24.7")
        assert deps[0].category == "auth"

    def test_package_json_manifest(self):
        manifest = json.dumps({"dependencies": {"react": "^18.3.1"}, "devDependencies": {"jest": "29.7.0"}})
        categories = {d.name: d.category for d in extract_dependencies(manifest)}
        assert categories == {"react": "ui", "jest": "testing"}


class TestArtifactSet:
    def test_aliases_resolve_to_canonical_names(self):
        assert canonical_artifact_name("Project Requirements Document") == "PRD.md"
        artifacts = ArtifactSet({"Data Model": "## User Table", "prd.md": None})
        assert artifacts.data_model == "## User Table"
        assert artifacts.requirements == ""
        assert "PRD.md" in artifacts

    def test_missing_artifact_reads_empty(self):
        assert ArtifactSet().tasks == ""

    def test_non_text_content_is_coerced(self):
        artifacts = ArtifactSet({
            "PRD.md": b"REQ-API-001: Login \xff",
            "tasks.md": bytearray(b"- [ ] Build login"),
            "data-model.md": 42,
        })
        assert artifacts.requirements == "REQ-API-001: Login \ufffd"
        assert artifacts.tasks == "- [ ] Build login"
        assert artifacts.data_model == "42"

    def test_tokenize_min_length(self):
        assert tokenize("The API for users, users!", min_length=2) == ["the", "api", "for", "users"]
        assert tokenize("The API for users", min_length=3) == ["users"]
