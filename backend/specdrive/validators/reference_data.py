"""Reference data — artifact aliases, keyword catalogs and technology categories.

Everything the rule checks and the traceability engine match against lives
here so that matching stays deterministic and easy to extend.
"""

# ──────────────────────────────────────────────────────────────────────
# ARTIFACT NAMES (canonical name → accepted aliases)
# ──────────────────────────────────────────────────────────────────────

REQUIREMENTS_ARTIFACT = "PRD.md"
API_SPEC_ARTIFACT = "api-spec.json"
DATA_MODEL_ARTIFACT = "data-model.md"
TASKS_ARTIFACT = "tasks.md"
STACK_PROPOSAL_ARTIFACT = "stack-proposal.md"
DEPENDENCIES_ARTIFACT = "DEPENDENCIES.md"

ARTIFACT_ALIASES: dict[str, list[str]] = {
    REQUIREMENTS_ARTIFACT: ["prd.md", "Project Requirements Document", "requirements.md"],
    API_SPEC_ARTIFACT: ["api_spec.json", "API Specification"],
    DATA_MODEL_ARTIFACT: ["data_model.md", "Data Model"],
    TASKS_ARTIFACT: ["Task Breakdown", "TASKS.md"],
    STACK_PROPOSAL_ARTIFACT: ["stack_proposal.md", "Stack Proposal"],
    DEPENDENCIES_ARTIFACT: ["dependencies.md", "Dependencies"],
}

# Which artifacts each rule type cross-checks
RULE_TYPE_ARTIFACTS: dict[str, list[str]] = {
    "requirement_api": [REQUIREMENTS_ARTIFACT, API_SPEC_ARTIFACT],
    "requirement_data": [REQUIREMENTS_ARTIFACT, DATA_MODEL_ARTIFACT],
    "requirement_task": [REQUIREMENTS_ARTIFACT, TASKS_ARTIFACT],
    "stack_dependency": [STACK_PROPOSAL_ARTIFACT, DEPENDENCIES_ARTIFACT],
}


# ──────────────────────────────────────────────────────────────────────
# REQUIREMENT CATEGORIES (first matching list wins, default "general")
# ──────────────────────────────────────────────────────────────────────

REQUIREMENT_CATEGORIES: dict[str, list[str]] = {
    "authentication": ["auth", "login", "register", "signin", "password"],
    "data": ["data", "store", "database", "entity", "model"],
    "ui": ["interface", "ui", "design", "layout", "component"],
    "api": ["api", "endpoint", "service", "integration"],
    "security": ["security", "permission", "access", "role"],
}

# Words too generic to count as evidence that a requirement maps to an endpoint
GENERIC_API_TOKENS: set[str] = {
    "api", "endpoint", "endpoints", "the", "and", "for", "with", "without",
    "requirement", "requirements", "should", "must", "shall",
    "all", "any", "each", "via", "from", "into",
}


# ──────────────────────────────────────────────────────────────────────
# STACK TECHNOLOGIES (name as written in a stack proposal → category)
# ──────────────────────────────────────────────────────────────────────

STACK_TECHNOLOGIES: dict[str, str] = {
    # Frameworks
    "Next.js": "framework",
    "FastAPI": "framework",
    "Django": "framework",
    "Flask": "framework",
    "Express": "framework",
    # UI
    "React": "ui",
    "Vue": "ui",
    "Svelte": "ui",
    # Languages shipped as packages
    "TypeScript": "language",
    # Styling
    "Tailwind": "styling",
    # Databases / ORMs
    "Neon": "database",
    "Drizzle": "database",
    "Prisma": "database",
    "PostgreSQL": "database",
    "SQLAlchemy": "database",
    "MongoDB": "database",
    # Caches
    "Redis": "cache",
    # Auth
    "Better Auth": "auth",
    "Auth0": "auth",
    "Clerk": "auth",
    # Testing
    "Jest": "testing",
    "Pytest": "testing",
}


# ──────────────────────────────────────────────────────────────────────
# DEPENDENCY CATEGORIES (package-name keyword → category, checked in order)
# ──────────────────────────────────────────────────────────────────────

# auth precedes framework so that "next-auth" is not classified as "next"
DEPENDENCY_CATEGORIES: dict[str, list[str]] = {
    "auth": ["next-auth", "better-auth", "auth0", "clerk", "authlib", "passlib"],
    "framework": ["next", "fastapi", "django", "flask", "express", "angular"],
    "ui": ["react", "vue", "svelte"],
    "language": ["typescript"],
    "styling": ["tailwind", "styled-components", "emotion", "sass"],
    "database": [
        "drizzle", "prisma", "mongoose", "sequelize", "sqlalchemy",
        "psycopg", "asyncpg", "neondatabase", "postgres",
    ],
    "cache": ["redis"],
    "testing": ["jest", "vitest", "pytest", "playwright"],
    "build": ["eslint", "prettier", "vite", "webpack"],
}
