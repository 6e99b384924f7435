"""Artifact templates — deterministic stand-in bodies for every planned artifact.

All templates draw on the same catalog below, so requirement ids, endpoints,
entities, tasks, the stack and the dependency manifest line up across documents.
"""

import json
from typing import Callable

from specdrive.models.domain import Project

# ──────────────────────────────────────────────────────────────────────
# SHARED CATALOG
# ──────────────────────────────────────────────────────────────────────

REQUIREMENTS: list[tuple[str, str]] = [
    ("REQ-AUTH-001", "User registration and login"),
    ("REQ-AUTH-002", "Password reset via email"),
    ("REQ-DATA-001", "Store user profile information"),
    ("REQ-DATA-002", "Store project records with ownership"),
    ("REQ-API-001", "Project management endpoints"),
    ("REQ-API-002", "User profile endpoints"),
    ("REQ-UI-001", "Responsive dashboard interface"),
    ("REQ-SEC-001", "Role based access control"),
]

# (method, path, summary)
ENDPOINTS: list[tuple[str, str, str]] = [
    ("post", "/api/auth/register", "Register a new user account"),
    ("post", "/api/auth/login", "User login"),
    ("post", "/api/auth/password-reset", "Request a password reset email"),
    ("get", "/api/users/me", "Get the current user profile"),
    ("patch", "/api/users/me", "Update the current user profile"),
    ("get", "/api/projects", "List projects owned by the user"),
    ("post", "/api/projects", "Create a project"),
    ("get", "/api/projects/{id}", "Get project details"),
    ("put", "/api/projects/{id}", "Update a project"),
    ("delete", "/api/projects/{id}", "Delete a project"),
    ("get", "/api/dashboard", "Dashboard summary for the user"),
]

# entity → columns
ENTITIES: dict[str, list[str]] = {
    "User": ["id uuid pk", "email text unique", "password_hash text", "created_at timestamptz"],
    "Profile": ["id uuid pk", "user_id uuid fk", "display_name text", "avatar_url text"],
    "Project": ["id uuid pk", "owner_id uuid fk", "name text", "description text"],
    "Role": ["id uuid pk", "name text unique"],
    "Session": ["id uuid pk", "user_id uuid fk", "expires_at timestamptz"],
}

# requirement id → tasks
TASKS: dict[str, list[str]] = {
    "REQ-AUTH-001": ["Implement user registration and login flow"],
    "REQ-AUTH-002": ["Build password reset email flow"],
    "REQ-DATA-001": ["Create user and profile tables with migrations"],
    "REQ-DATA-002": ["Create project table with owner foreign key"],
    "REQ-API-001": ["Implement project CRUD endpoints"],
    "REQ-API-002": ["Implement user profile endpoints"],
    "REQ-UI-001": ["Build responsive dashboard interface"],
    "REQ-SEC-001": ["Implement role based access control middleware"],
}

# technology → why it was chosen
STACK: list[tuple[str, str]] = [
    ("Next.js", "full-stack framework with server rendering"),
    ("React", "component model for the user interface"),
    ("TypeScript", "static typing across client and server"),
    ("Tailwind", "utility-first styling"),
    ("Neon", "serverless Postgres hosting"),
    ("Drizzle", "type-safe ORM and migrations"),
    ("Better Auth", "session and credential management"),
]

DEPENDENCIES: list[tuple[str, str, str]] = [
    ("next", "14.2.3", "Framework"),
    ("react", "18.3.1", "UI"),
    ("react-dom", "18.3.1", "UI"),
    ("typescript", "5.4.5", "Language"),
    ("tailwindcss", "3.4.3", "Styling"),
    ("drizzle-orm", "0.30.10", "Database"),
    ("@neondatabase/serverless", "0.9.3", "Database"),
    ("better-auth", "0.6.2", "Authentication"),
    ("zod", "3.23.8", "Validation"),
]

EPICS: list[tuple[str, str, list[str]]] = [
    ("EPIC-1", "Accounts and access", ["REQ-AUTH-001", "REQ-AUTH-002", "REQ-SEC-001"]),
    ("EPIC-2", "Project data", ["REQ-DATA-001", "REQ-DATA-002", "REQ-API-001", "REQ-API-002"]),
    ("EPIC-3", "Dashboard experience", ["REQ-UI-001"]),
]


def _summary(project: Project) -> str:
    return project.description or project.idea or project.name


# ──────────────────────────────────────────────────────────────────────
# ANALYSIS
# ──────────────────────────────────────────────────────────────────────


def render_constitution(project: Project) -> str:
    return (
        f"# {project.name} Constitution\n\n"
        f"{_summary(project)}\n\n"
        "## Principles\n\n"
        "1. Every requirement is traceable to an endpoint, an entity or a task.\n"
        "2. User data is owned by the user and protected by role based access.\n"
        "3. Ship small, validated increments.\n"
    )


def render_project_brief(project: Project) -> str:
    return (
        f"# Project Brief: {project.name}\n\n"
        f"## Idea\n\n{project.idea or _summary(project)}\n\n"
        f"## Description\n\n{project.description or project.name}\n\n"
        "## Goals\n\n"
        "- Users register, log in and manage their profile\n"
        "- Users create and manage projects from a dashboard\n"
    )


def render_personas(project: Project) -> str:
    return (
        f"# Personas for {project.name}\n\n"
        "## Owner\n\nCreates projects and manages who can access them.\n\n"
        "## Member\n\nWorks inside projects shared with them by an owner.\n\n"
        "## Admin\n\nAssigns roles and audits access.\n"
    )


# ──────────────────────────────────────────────────────────────────────
# STACK SELECTION
# ──────────────────────────────────────────────────────────────────────


def render_plan(project: Project) -> str:
    return (
        f"# Delivery Plan: {project.name}\n\n"
        "1. Analysis\n2. Stack selection\n3. Specification\n"
        "4. Dependencies\n5. Solutioning\n"
    )


def render_readme(project: Project) -> str:
    return f"# {project.name}\n\n{_summary(project)}\n\nSee stack-proposal.md for the chosen stack.\n"


def render_stack_proposal(project: Project) -> str:
    lines = [f"# Stack Proposal for {project.name}", "", "## Technologies", ""]
    lines += [f"- **{tech}**: {reason}" for tech, reason in STACK]
    return "\n".join(lines) + "\n"


def render_stack_scorecard(project: Project) -> str:
    scorecard = {
        "project": project.name,
        "stack": [tech for tech, _ in STACK],
        "scores": {"maturity": 9, "developer_experience": 9, "operability": 8, "cost": 8},
    }
    return json.dumps(scorecard, indent=2)


# ──────────────────────────────────────────────────────────────────────
# SPEC
# ──────────────────────────────────────────────────────────────────────


def render_prd(project: Project) -> str:
    lines = [
        f"# Product Requirements Document: {project.name}",
        "",
        _summary(project),
        "",
        "## Requirements",
        "",
    ]
    lines += [f"{req_id}: {title}" for req_id, title in REQUIREMENTS]
    return "\n".join(lines) + "\n"


def render_data_model(project: Project) -> str:
    lines = [f"# Data Model for {project.name}", ""]
    for entity, columns in ENTITIES.items():
        lines += [f"## {entity} Table", ""]
        lines += [f"- {column}" for column in columns]
        lines.append("")
    return "\n".join(lines)


def render_api_spec(project: Project) -> str:
    paths: dict[str, dict] = {}
    for method, path, summary in ENDPOINTS:
        paths.setdefault(path, {})[method] = {"summary": summary}
    spec = {
        "openapi": "3.0.0",
        "info": {"title": f"{project.name} API", "version": "1.0.0"},
        "paths": paths,
    }
    return json.dumps(spec, indent=2)


def render_spec_traceability(project: Project) -> str:
    links = {
        req_id: {"title": title, "tasks": []}
        for req_id, title in REQUIREMENTS
    }
    return json.dumps({"project": project.name, "phase": "spec", "requirements": links}, indent=2)


# ──────────────────────────────────────────────────────────────────────
# DEPENDENCIES
# ──────────────────────────────────────────────────────────────────────


def render_dependencies(project: Project) -> str:
    lines = [f"# Dependencies for {project.name}", "", "## Runtime", ""]
    lines += [f"- {name}@{version} ({purpose})" for name, version, purpose in DEPENDENCIES]
    return "\n".join(lines) + "\n"


def render_dependency_proposal(project: Project) -> str:
    proposal = {
        "project": project.name,
        "dependencies": {name: version for name, version, _ in DEPENDENCIES},
    }
    return json.dumps(proposal, indent=2)


def render_sbom(project: Project) -> str:
    sbom = {
        "bomFormat": "CycloneDX",
        "specVersion": "1.5",
        "metadata": {"component": {"name": project.slug, "type": "application"}},
        "components": [
            {"type": "library", "name": name, "version": version}
            for name, version, _ in DEPENDENCIES
        ],
    }
    return json.dumps(sbom, indent=2)


# ──────────────────────────────────────────────────────────────────────
# SOLUTIONING
# ──────────────────────────────────────────────────────────────────────


def render_architecture(project: Project) -> str:
    return (
        f"# Architecture: {project.name}\n\n"
        "## Components\n\n"
        "- Web client rendering the dashboard\n"
        "- API routes for auth, users and projects\n"
        "- Postgres database holding users, profiles and projects\n"
    )


def render_epics(project: Project) -> str:
    lines = [f"# Epics for {project.name}", ""]
    for epic_id, title, req_ids in EPICS:
        lines.append(f"## {epic_id}: {title}")
        lines.append("")
        lines += [f"- {req_id}" for req_id in req_ids]
        lines.append("")
    return "\n".join(lines)


def render_tasks(project: Project) -> str:
    lines = [f"# Tasks for {project.name}", ""]
    for req_id, _ in REQUIREMENTS:
        lines += [f"- [ ] {task}" for task in TASKS.get(req_id, [])]
    return "\n".join(lines) + "\n"


def render_solution_traceability(project: Project) -> str:
    links = {
        req_id: {"title": title, "tasks": TASKS.get(req_id, [])}
        for req_id, title in REQUIREMENTS
    }
    return json.dumps({"project": project.name, "phase": "solutioning", "requirements": links}, indent=2)


# (phase, artifact name) → renderer; traceability.json differs per phase
RENDERERS: dict[tuple[str, str], Callable[[Project], str]] = {
    ("analysis", "constitution.md"): render_constitution,
    ("analysis", "project-brief.md"): render_project_brief,
    ("analysis", "personas.md"): render_personas,
    ("stack_selection", "plan.md"): render_plan,
    ("stack_selection", "README.md"): render_readme,
    ("stack_selection", "stack-proposal.md"): render_stack_proposal,
    ("stack_selection", "stack-scorecard.json"): render_stack_scorecard,
    ("spec", "PRD.md"): render_prd,
    ("spec", "data-model.md"): render_data_model,
    ("spec", "api-spec.json"): render_api_spec,
    ("spec", "traceability.json"): render_spec_traceability,
    ("dependencies", "DEPENDENCIES.md"): render_dependencies,
    ("dependencies", "dependency-proposal.json"): render_dependency_proposal,
    ("dependencies", "sbom.json"): render_sbom,
    ("solutioning", "architecture.md"): render_architecture,
    ("solutioning", "epics.md"): render_epics,
    ("solutioning", "tasks.md"): render_tasks,
    ("solutioning", "traceability.json"): render_solution_traceability,
}
